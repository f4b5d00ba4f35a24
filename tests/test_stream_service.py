from lime_streamcore.backend.persistence.preferences import PreferencesStore
from lime_streamcore.backend.streams.models import MediaKind, ShareReference, StreamRequest, TierResult
from lime_streamcore.backend.streams.orchestrator import Resolution
from lime_streamcore.backend.streams.service import StreamService


class CapturingOrchestrator:
    def __init__(self):
        self.seen = []

    def resolve(self, request, *, credentials, promote, region, cancel=None):
        self.seen.append((request, credentials, promote, region))
        return Resolution(TierResult.failure("all", "nothing"))


def test_service_wires_persisted_state(kv_store):
    orchestrator = CapturingOrchestrator()
    service = StreamService(store=kv_store, orchestrator=orchestrator)
    service.credentials.add("tok0")
    service.credentials.add("tok1")
    service.credentials.promote(1)
    PreferencesStore(kv_store).set_region("DE2")
    service.shares.save(ShareReference(1399, MediaKind.TV, "seasonTwo", season=2))

    service.resolve(StreamRequest(content_id=1399, media_type=MediaKind.TV, season=2, episode=4))

    request, credentials, promote, region = orchestrator.seen[0]
    assert request.share_reference.token == "seasonTwo"
    assert credentials.primary().secret == "tok1"
    assert region == "DE2"
    promote(0)
    assert service.credentials.primary_index() == 0


def test_service_can_skip_the_cached_share(kv_store):
    orchestrator = CapturingOrchestrator()
    service = StreamService(store=kv_store, orchestrator=orchestrator)
    service.shares.save(ShareReference(550, MediaKind.MOVIE, "movieShare"))

    service.resolve(StreamRequest(content_id=550, media_type=MediaKind.MOVIE), use_cached_share=False)

    assert orchestrator.seen[0][0].share_reference is None
