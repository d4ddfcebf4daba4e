from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict

from .request import Request


class LoggedRequest(BaseModel):
    """A request accepted by the logger, numbered within its session."""

    model_config = ConfigDict(frozen=True)

    sequence_id: int
    method: str
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()
    body: bytes = b""

    @classmethod
    def from_request(cls, sequence_id: int, request: Request) -> "LoggedRequest":
        return cls(
            sequence_id=sequence_id,
            method=request.method,
            url=request.url,
            headers=request.headers,
            body=request.body,
        )

    def as_request(self) -> Request:
        return Request(
            method=self.method, url=self.url, headers=self.headers, body=self.body
        )

    @property
    def scheme(self) -> str:
        return self.as_request().scheme

    @property
    def host(self) -> str:
        return self.as_request().host

    def header(self, name: str) -> Optional[str]:
        return self.as_request().header(name)

    def header_map(self) -> httpx.Headers:
        return httpx.Headers(list(self.headers))


class Rejected(str, Enum):
    NOT_LOGGING = "not_logging"
    FILTERED_OUT = "filtered_out"


@dataclass(frozen=True)
class LogResult:
    """Outcome of ``NetworkLogger.log_request``; truthy when logged."""

    logged: Optional[LoggedRequest] = None
    rejected: Optional[Rejected] = None

    @property
    def accepted(self) -> bool:
        return self.logged is not None

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def success(cls, logged: LoggedRequest) -> "LogResult":
        return cls(logged=logged)

    @classmethod
    def reject(cls, reason: Rejected) -> "LogResult":
        return cls(rejected=reason)
