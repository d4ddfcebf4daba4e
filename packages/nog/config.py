"""Logger configuration loaded from keyword arguments or ``NOG_*`` variables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

from .filters import (
    RequestFilter,
    exclude_hosts,
    host_filter,
    http_only_request_filter,
    method_filter,
)

ENV_PREFIX = "NOG_"
_FIELDS = (
    "verbose",
    "http_only",
    "allowed_hosts",
    "ignored_hosts",
    "methods",
    "console_tag",
)


class LoggerSettings(BaseModel):
    verbose: bool = True
    http_only: bool = True
    allowed_hosts: List[str] = []
    ignored_hosts: List[str] = []
    methods: List[str] = []
    console_tag: str = "Nog"

    @field_validator("allowed_hosts", "ignored_hosts", "methods", mode="before")
    @classmethod
    def _split_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, value: List[str]) -> List[str]:
        return [method.upper() for method in value]

    @field_validator("console_tag")
    @classmethod
    def _non_empty_tag(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("console_tag must not be empty")
        return value

    @classmethod
    def from_env(
        cls, env_file: Optional[Union[str, Path]] = None, prefix: str = ENV_PREFIX
    ) -> "LoggerSettings":
        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file)
        values = {}
        for name in _FIELDS:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls.model_validate(values)

    def build_filters(self) -> List[RequestFilter]:
        filters: List[RequestFilter] = []
        if self.http_only:
            filters.append(http_only_request_filter)
        if self.allowed_hosts:
            filters.append(host_filter(*self.allowed_hosts))
        if self.ignored_hosts:
            filters.append(exclude_hosts(*self.ignored_hosts))
        if self.methods:
            filters.append(method_filter(*self.methods))
        return filters
