"""Client for the encrypted catalog search API.

Requests are wrapped in a JSON envelope, encrypted with Triple-DES in CBC mode
(PKCS#7 padding) and signed with an MD5 integrity tag before being posted as a
form body.
"""

from __future__ import annotations

import base64
import hashlib
import json
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from lime_streamcore.backend.common.errors import ConfigError, NotFoundError, ParseError, ProviderError
from lime_streamcore.backend.common.logging import get_logger
from lime_streamcore.backend.network_handlers.session import HttpSession
from lime_streamcore.backend.streams.models import MediaKind
from lime_streamcore.config.settings import get_catalog_cipher_config

log = get_logger(__name__)

SERVICE = "showbox"

# Envelopes stay valid for twelve hours after creation.
ENVELOPE_TTL_SECONDS = 12 * 60 * 60

BOX_TYPES: Dict[MediaKind, int] = {MediaKind.MOVIE: 1, MediaKind.TV: 2}


@dataclass(slots=True, frozen=True)
class CatalogMatch:
    media_id: int
    box_type: int
    title: str = ""


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class EncryptedCatalogClient:
    def __init__(
        self,
        session: Optional[HttpSession] = None,
        *,
        cipher_config: Optional[Mapping[str, Any]] = None,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = lambda: secrets.token_hex(16),
    ) -> None:
        self._session = session or HttpSession()
        self._cfg = dict(cipher_config if cipher_config is not None else get_catalog_cipher_config())
        self._clock = clock
        self._nonce = nonce_factory

        if self.is_configured:
            if len(self._key) != 24:
                raise ConfigError("Catalog cipher key must be 24 bytes")
            if len(self._iv) != 8:
                raise ConfigError("Catalog cipher IV must be 8 bytes")

    @property
    def is_configured(self) -> bool:
        return all(str(self._cfg.get(name) or "").strip() for name in ("app_key", "key", "iv"))

    @property
    def _key(self) -> bytes:
        return str(self._cfg.get("key", "")).encode("utf-8")

    @property
    def _iv(self) -> bytes:
        return str(self._cfg.get("iv", "")).encode("utf-8")

    # -------- envelope --------

    def build_envelope(self, module: str, **params: Any) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {
            "childmode": "0",
            "app_version": str(self._cfg.get("app_version", "")),
            "appid": str(self._cfg.get("app_id", "")),
            "module": module,
            "channel": str(self._cfg.get("channel", "Website")),
            "lang": str(self._cfg.get("lang", "en")),
            "expired_date": str(int(self._clock()) + ENVELOPE_TTL_SECONDS),
            "platform": str(self._cfg.get("platform", "android")),
        }
        envelope.update({k: v for k, v in params.items() if v is not None})
        return envelope

    def encrypt(self, plaintext: str) -> str:
        padder = padding.PKCS7(TripleDES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(TripleDES(self._key), modes.CBC(self._iv)).encryptor()
        return base64.b64encode(encryptor.update(padded) + encryptor.finalize()).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        decryptor = Cipher(TripleDES(self._key), modes.CBC(self._iv)).decryptor()
        padded = decryptor.update(base64.b64decode(ciphertext)) + decryptor.finalize()
        unpadder = padding.PKCS7(TripleDES.block_size).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")

    def integrity_tag(self, ciphertext: str) -> str:
        app_key = str(self._cfg.get("app_key", ""))
        return _md5(_md5(app_key) + self._key.decode("utf-8") + ciphertext)

    def pack(self, envelope: Mapping[str, Any]) -> Dict[str, str]:
        ciphertext = self.encrypt(json.dumps(envelope, separators=(",", ":")))
        body = {
            "app_key": _md5(str(self._cfg.get("app_key", ""))),
            "verify": self.integrity_tag(ciphertext),
            "encrypt_data": ciphertext,
        }
        data = base64.b64encode(json.dumps(body, separators=(",", ":")).encode("utf-8")).decode("ascii")
        return {
            "data": data,
            "appid": "27",
            "platform": str(self._cfg.get("platform", "android")),
            "version": str(self._cfg.get("version_code", "")),
            "medium": "Website",
            "token": self._nonce(),
        }

    # -------- API --------

    def call(self, module: str, **params: Any) -> Dict[str, Any]:
        if not self.is_configured:
            raise ConfigError("Encrypted catalog credentials are not configured")

        form = self.pack(self.build_envelope(module, **params))
        path = self._session.endpoint_path(SERVICE, "search")
        resp = self._session.post(SERVICE, path, data=form)
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ParseError("catalog returned non-JSON body") from exc
        if not isinstance(payload, dict):
            raise ParseError("catalog returned unexpected payload")
        try:
            code = int(payload.get("code") or 0)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"catalog returned unreadable code {payload.get('code')!r}") from exc
        if code != 1:
            raise ProviderError(str(payload.get("msg") or "catalog request rejected"))
        return payload

    def search(self, external_id: str, media_type: MediaKind) -> List[CatalogMatch]:
        payload = self.call(
            str(self._cfg.get("search_module", "Search5")),
            keyword=external_id,
            type=media_type.value,
            page="1",
            pagelimit=str(self._cfg.get("page_limit", 20)),
        )
        data = payload.get("data")
        if isinstance(data, dict):
            data = data.get("list")
        if not isinstance(data, list):
            return []

        wanted_box = BOX_TYPES[media_type]
        exact: List[CatalogMatch] = []
        loose: List[CatalogMatch] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                media_id = int(item.get("id") or item.get("mid") or 0)
                box_type = int(item.get("box_type") or wanted_box)
            except (TypeError, ValueError):
                continue
            if not media_id or box_type != wanted_box:
                continue
            match = CatalogMatch(media_id=media_id, box_type=box_type, title=str(item.get("title") or ""))
            if str(item.get("imdb_id") or "") == external_id:
                exact.append(match)
            else:
                loose.append(match)
        return exact + loose

    def resolve(self, external_id: str, media_type: MediaKind) -> CatalogMatch:
        matches = self.search(external_id, media_type)
        if not matches:
            raise NotFoundError(f"No catalog entry for {external_id}")
        log.debug(
            "catalog_match",
            extra={"external_id": external_id, "media_id": matches[0].media_id, "box_type": matches[0].box_type},
        )
        return matches[0]


__all__ = ["BOX_TYPES", "CatalogMatch", "EncryptedCatalogClient"]
