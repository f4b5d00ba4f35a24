import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from lime_streamcore.backend.network_handlers.url_manager import URLManager
from lime_streamcore.backend.persistence.sqlite import KeyValueStore


class FakeResponse:
    def __init__(
        self,
        payload: Any = None,
        *,
        text: Optional[str] = None,
        content: bytes = b"",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self._payload = payload
        self.status_code = status_code
        self.headers = dict(headers or {})
        if text is None:
            text = json.dumps(payload) if payload is not None else content.decode("utf-8", "replace")
        else:
            self.headers.setdefault("Content-Type", "text/html; charset=utf-8")
        self.text = text
        self.content = content or text.encode("utf-8")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    """Stands in for HttpSession: real endpoint templates, scripted responses."""

    def __init__(self, handler: Callable[..., Any]) -> None:
        self.urlm = URLManager()
        self._handler = handler
        self.calls: List[Dict[str, Any]] = []

    def endpoint_path(self, service: str, key: str, **fmt: Any) -> str:
        template = self.urlm.get_endpoint(service, key)
        if template is None:
            raise ValueError(f"Unknown endpoint '{key}' for service '{service}'")
        return template.format(**fmt)

    def _dispatch(self, method: str, service: str, path: str, **kwargs: Any) -> FakeResponse:
        call = {"method": method, "service": service, "path": path, **kwargs}
        self.calls.append(call)
        result = self._handler(call)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, service, path, *, params=None, headers=None, allowed_statuses=None):
        return self._dispatch("GET", service, path, params=dict(params or {}), headers=dict(headers or {}))

    def post(self, service, path, *, data=None, json_body=None, params=None, headers=None, allowed_statuses=None):
        return self._dispatch(
            "POST", service, path, params=dict(params or {}), headers=dict(headers or {}), data=dict(data or {})
        )

    def calls_to(self, service: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["service"] == service]


@pytest.fixture
def kv_store(tmp_path):
    return KeyValueStore(tmp_path / "lime-test.db")


@pytest.fixture
def fake_session():
    def build(handler):
        return FakeSession(handler)

    return build


@pytest.fixture
def respond():
    return FakeResponse


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    home = tmp_path / "lime-home"
    monkeypatch.setenv("LIME_HOME", str(home))
    for var in (
        "LIME_DATABASE_PATH",
        "LIME_USER_SETTINGS_PATH",
        "LIME_LOG_LEVEL",
        "LIME_REQUEST_TIMEOUT",
        "LIME_RETRY_ATTEMPTS",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
