from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel, Field


class HttpResult(BaseModel):
    """Diagnostic summary of one provider round trip (query string dropped)."""

    service: str
    url: str
    status_code: int = 0
    elapsed_ms: int = Field(default=0, ge=0)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and 0 < self.status_code < 400

    @classmethod
    def finished(
        cls,
        service: str,
        url: str,
        started: float,
        *,
        status_code: int = 0,
        error: Optional[str] = None,
    ) -> "HttpResult":
        return cls(
            service=service,
            url=url.split("?", 1)[0],
            status_code=status_code,
            elapsed_ms=max(0, int((time.monotonic() - started) * 1000)),
            error=error,
        )

    def log_fields(self) -> dict[str, object]:
        return {**self.model_dump(), "ok": self.ok}
