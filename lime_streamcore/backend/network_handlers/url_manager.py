from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode, urljoin

from lime_streamcore.config.settings import providers as provider_settings


@dataclass(frozen=True)
class ServiceView:
    name: str
    base_url: str
    default_headers: Dict[str, str]
    endpoints: Dict[str, str]
    raw: Dict[str, Any]  # full service block, for options such as ``folder_page_budget``


class URLManager:
    """
    Turns (service, path, params) into a request URL plus headers using the
    provider service file only; no network I/O happens here.

    - tmdb: ``api_key`` query parameter, or a bearer header when only a token is set
    - share host, legacy and fallback APIs, subtitles: default headers only;
      credentials are attached per request by the caller
    """

    def __init__(self, service_overrides: Optional[Mapping[str, Mapping[str, Any]]] = None):
        services = provider_settings.list_provider_configs()
        for name, override in (service_overrides or {}).items():
            services[name] = {**services.get(name, {}), **dict(override or {})}
        self._views: Dict[str, ServiceView] = {name: _view(name, cfg) for name, cfg in services.items()}

    @property
    def services(self) -> Tuple[str, ...]:
        return tuple(sorted(self._views))

    def build(self, service: str, path: str, params: Optional[Mapping[str, Any]] = None
              ) -> Tuple[str, Dict[str, str]]:
        """
        Absolute URLs (e.g. subtitle download links) pass through untouched apart
        from the query string; relative paths are joined onto the service base URL.
        """
        view = self._require_view(service)
        query = {k: v for k, v in dict(params or {}).items() if v is not None}
        headers = dict(view.default_headers)

        if service == "tmdb":
            api_key = view.raw.get("api_key")
            bearer = view.raw.get("bearer_token")
            if api_key:
                query.setdefault("api_key", api_key)
            elif bearer:
                headers.setdefault("Authorization", f"Bearer {bearer}")

        if path.startswith(("http://", "https://")):
            url = path
        else:
            base = view.base_url if view.base_url.endswith("/") else view.base_url + "/"
            url = urljoin(base, path.lstrip("/"))

        if query:
            url = f"{url}{'&' if '?' in url else '?'}{urlencode(query, doseq=True)}"

        return url, headers

    def get_endpoint(self, service: str, key: str) -> Optional[str]:
        return self._require_view(service).endpoints.get(key)

    def service_option(self, service: str, key: str, default: Any = None) -> Any:
        return self._require_view(service).raw.get(key, default)

    def _require_view(self, service: str) -> ServiceView:
        if service not in self._views:
            raise ValueError(f"Unknown service '{service}'. Known: {list(self._views.keys())}")

        return self._views[service]


def _view(name: str, cfg: Mapping[str, Any]) -> ServiceView:
    raw = dict(cfg or {})
    return ServiceView(
        name=name,
        base_url=str(raw.get("base_url") or ""),
        default_headers={str(k): str(v) for k, v in (raw.get("default_headers") or {}).items()},
        endpoints=dict(raw.get("endpoints") or {}),
        raw=raw,
    )
