"""HTTP client for the share host (share creation, folder listing, quality listing, quota)."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import requests

from lime_streamcore.backend.common.errors import (
    AuthenticationError,
    NotFoundError,
    ParseError,
    ProviderError,
)
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.streams.credentials import QuotaSnapshot
from lime_streamcore.backend.streams.models import RemoteFile
from lime_streamcore.config.settings import get_default_region

log = get_logger(__name__)

SERVICE = "febbox"

_SHARE_TOKEN_RE = re.compile(r"/share/([A-Za-z0-9]+)")


def session_cookie(credential: str, region: str) -> str:
    return f"ui={credential}; oss_group={region}"


def parse_share_token(value: str) -> Optional[str]:
    """Accept either a bare share token or any URL containing ``/share/<token>``."""

    text = (value or "").strip()
    if not text:
        return None
    match = _SHARE_TOKEN_RE.search(text)
    if match:
        return match.group(1)
    if re.fullmatch(r"[A-Za-z0-9]+", text):
        return text
    return None


def _json(resp: requests.Response) -> Dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError as exc:
        raise ParseError(f"{SERVICE} returned non-JSON body") from exc
    if not isinstance(payload, dict):
        raise ParseError(f"{SERVICE} returned unexpected payload type {type(payload).__name__}")
    return payload


def _looks_like_html(resp: requests.Response) -> bool:
    ctype = resp.headers.get("Content-Type", "")
    return "text/html" in ctype or resp.text.lstrip().startswith("<")


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def remote_file_from_payload(item: Dict[str, Any]) -> RemoteFile:
    name = str(item.get("file_name") or item.get("name") or "")
    ext = str(item.get("ext") or "")
    if not ext and "." in name:
        ext = name.rsplit(".", 1)[-1]
    return RemoteFile(
        id=str(item.get("fid") or item.get("id") or ""),
        name=name,
        size_bytes=_to_int(item.get("file_size_bytes") or item.get("size_bytes")),
        extension=ext.lower(),
        is_directory=bool(_to_int(item.get("is_dir"))),
    )


class FebBoxClient:
    """Thin wrapper over the share host's web endpoints.

    Every call carries the credential as a session cookie together with the
    selected server region.
    """

    def __init__(self, session: Optional[HttpSession] = None, *, region: Optional[str] = None) -> None:
        self._session = session or HttpSession()
        self.region = region or get_default_region()

    @property
    def folder_page_budget(self) -> int:
        return int(self._session.urlm.service_option(SERVICE, "folder_page_budget", 3))

    def _headers(self, credential: str, region: Optional[str] = None) -> Dict[str, str]:
        return {"Cookie": session_cookie(credential, region or self.region)}

    def create_share(self, media_id: int, box_type: int, credential: str) -> str:
        path = self._session.endpoint_path(SERVICE, "create_share")
        resp = self._session.get(
            SERVICE,
            path,
            params={"box_type": box_type, "mid": media_id, "json": 1},
            headers=self._headers(credential),
        )
        payload = _json(resp)
        data = payload.get("data") or {}
        link = ""
        if isinstance(data, dict):
            link = str(data.get("link") or data.get("share_link") or "")
        token = parse_share_token(link) if link else None
        if not token:
            raise NotFoundError(str(payload.get("msg") or "Share link not available"))
        log.debug("share_created", extra={"media_id": media_id, "box_type": box_type})
        return token

    def list_folder(
        self,
        share_token: str,
        credential: str,
        *,
        parent_id: str = "0",
        page: int = 1,
    ) -> List[RemoteFile]:
        path = self._session.endpoint_path(SERVICE, "file_list")
        resp = self._session.get(
            SERVICE,
            path,
            params={"share_key": share_token, "pwd": "", "parent_id": parent_id, "page": page},
            headers=self._headers(credential),
        )
        payload = _json(resp)
        data = payload.get("data") or {}
        items = data.get("file_list") if isinstance(data, dict) else None
        if not isinstance(items, list):
            return []
        return [remote_file_from_payload(item) for item in items if isinstance(item, dict)]

    def share_page(self, share_token: str, credential: str) -> str:
        path = self._session.endpoint_path(SERVICE, "share_page", share_token=share_token)
        resp = self._session.get(SERVICE, path, headers=self._headers(credential))
        return resp.text

    def quality_listing(self, share_token: str, file_id: str, credential: str) -> str:
        path = self._session.endpoint_path(SERVICE, "quality_list")
        resp = self._session.get(
            SERVICE,
            path,
            params={"fid": file_id, "share_key": share_token},
            headers=self._headers(credential),
        )
        if _looks_like_html(resp):
            return resp.text
        payload = _json(resp)
        html = payload.get("html")
        if not isinstance(html, str) or not html.strip():
            raise NotFoundError(str(payload.get("msg") or "Quality listing is empty"))
        return html

    def traffic(self, credential: str, region: Optional[str] = None) -> QuotaSnapshot:
        path = self._session.endpoint_path(SERVICE, "traffic")
        headers = self._headers(credential, region)
        headers["Cookie"] += "; g_state={\"i_l\":0}"
        resp = self._session.get(SERVICE, path, headers=headers)
        if _looks_like_html(resp):
            raise AuthenticationError("Invalid credential (session not accepted)")
        payload = _json(resp)
        data = payload.get("data")
        if _to_int(payload.get("code")) != 1 or not isinstance(data, dict):
            raise ProviderError(str(payload.get("msg") or "Traffic query rejected"))
        return QuotaSnapshot.from_traffic(data)


__all__ = ["FebBoxClient", "parse_share_token", "remote_file_from_payload", "session_cookie"]
