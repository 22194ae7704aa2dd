"""Default HTTP fetcher; any callable with the same signature can replace it."""

from __future__ import annotations

import urllib.error
import urllib.request
from typing import Callable, Optional

from yoti_profile.types import HttpResponse

Fetcher = Callable[[str, str, dict[str, str], Optional[bytes]], HttpResponse]


def urllib_fetcher(url: str, method: str, headers: dict[str, str], body: bytes | None) -> HttpResponse:
    request = urllib.request.Request(
        url,
        method=method,
        headers=headers,
        data=body,
    )
    try:
        with urllib.request.urlopen(request) as response:
            return HttpResponse(
                status_code=response.status,
                content=response.read(),
                headers=dict(response.headers.items()),
            )
    except urllib.error.HTTPError as error:
        return HttpResponse(
            status_code=error.code,
            content=error.read(),
            headers=dict(error.headers.items()) if error.headers else None,
        )
