"""Stream resolution entry point wired to the persisted credential, region and share state."""

from __future__ import annotations

import threading
from typing import Optional

from lime_streamcore.backend.information_handlers.tmdb_manager import TMDbManager
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.persistence.preferences import PreferencesStore
from lime_streamcore.backend.persistence.sqlite import KeyValueStore
from lime_streamcore.backend.streams.credentials import CredentialStore
from lime_streamcore.backend.streams.models import StreamRequest
from lime_streamcore.backend.streams.orchestrator import FallbackOrchestrator, Resolution
from lime_streamcore.backend.streams.shares import ShareReferenceStore


class StreamService:
    def __init__(
        self,
        *,
        store: Optional[KeyValueStore] = None,
        session: Optional[HttpSession] = None,
        orchestrator: Optional[FallbackOrchestrator] = None,
    ) -> None:
        store = store or KeyValueStore()
        self.credentials = CredentialStore(store)
        self.preferences = PreferencesStore(store)
        self.shares = ShareReferenceStore(store)
        if orchestrator is None:
            session = session or HttpSession()
            orchestrator = FallbackOrchestrator.default(
                session,
                external_ids=TMDbManager(session=session).imdb_id,
                share_store=self.shares,
            )
        self._orchestrator = orchestrator

    def resolve(
        self,
        request: StreamRequest,
        *,
        use_cached_share: bool = True,
        cancel: Optional[threading.Event] = None,
    ) -> Resolution:
        if use_cached_share and request.share_reference is None:
            request.share_reference = self.shares.get(request.content_id, request.media_type, request.season)
        return self._orchestrator.resolve(
            request,
            credentials=self.credentials.pool(),
            promote=self.credentials.promote,
            region=self.preferences.region(),
            cancel=cancel,
        )
