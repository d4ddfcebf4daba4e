"""cURL command export for logged requests."""

from __future__ import annotations

import json
from typing import Iterable, List, Mapping, Optional, Tuple, Union

import httpx

from .models import LoggedRequest
from .request import Request

UNAVAILABLE = "curl command could not be created"
SEPARATOR = " \\\n\t"

Credential = Tuple[str, str]
Cookies = Union[Mapping[str, str], httpx.Cookies]


def _merge_headers(*header_sets: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Later sets override earlier ones by case-insensitive name, in place."""

    merged: List[Tuple[str, str]] = []
    for headers in header_sets:
        for name, value in headers:
            if name.lower() == "cookie":
                continue
            for index, (existing, _) in enumerate(merged):
                if existing.lower() == name.lower():
                    merged[index] = (name, value)
                    break
            else:
                merged.append((name, value))
    return merged


def _body_component(body: bytes) -> str:
    try:
        parsed = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        parsed = None
    if isinstance(parsed, dict):
        text = json.dumps(parsed, separators=(",", ":"), ensure_ascii=False)
        escaped = text.replace('"', '\\"')
    else:
        text = body.decode("utf-8", errors="replace")
        escaped = text.replace('\\"', '\\\\"').replace('"', '\\"')
    return f'-d "{escaped}"'


def curl_description(
    request: Union[Request, LoggedRequest],
    *,
    session_headers: Optional[Union[Mapping[str, str], Iterable[Tuple[str, str]]]] = None,
    cookies: Optional[Cookies] = None,
    credential: Optional[Credential] = None,
) -> str:
    if not request.host or not request.method:
        return UNAVAILABLE

    components = ["curl -v", f"-X {request.method}"]

    if credential is not None:
        user, password = credential
        components.append(f"-u {user}:{password}")

    if cookies:
        all_cookies = ";".join(f"{name}={value}" for name, value in cookies.items())
        components.append(f'-b "{all_cookies}"')

    if isinstance(session_headers, Mapping):
        session_pairs: Iterable[Tuple[str, str]] = session_headers.items()
    else:
        session_pairs = session_headers or ()

    for name, value in _merge_headers(session_pairs, request.headers):
        escaped_value = value.replace('"', '\\"')
        components.append(f'-H "{name}: {escaped_value}"')

    if request.body:
        components.append(_body_component(request.body))

    components.append(f'"{request.url}"')
    return SEPARATOR.join(components)
