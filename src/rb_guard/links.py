"""HTTP reachability checks for links found in Markdown documents."""

from __future__ import annotations

import os
import ssl
from typing import NamedTuple
from urllib import error, request

USER_AGENT = "rb-guard link checker"


class LinkStatus(NamedTuple):
    """Outcome of probing a single URL."""

    url: str
    status: int | None
    error: str

    @property
    def ok(self) -> bool:
        return self.status is not None and 200 <= self.status < 400


def _build_ssl_context() -> ssl.SSLContext:
    bundle = os.getenv("RBGUARD_CA_BUNDLE") or os.getenv("SSL_CERT_FILE")
    if bundle:
        return ssl.create_default_context(cafile=bundle)
    return ssl.create_default_context()


def _request_status(url: str, method: str, timeout: float) -> int:
    req = request.Request(url=url, headers={"User-Agent": USER_AGENT}, method=method)
    with request.urlopen(req, timeout=timeout, context=_build_ssl_context()) as response:
        status: int = response.status
        return status


def check_url(url: str, timeout: float) -> LinkStatus:
    """Check url with HEAD, falling back to GET when HEAD is refused.

    Network failures are reported in the result rather than raised.
    """
    try:
        return LinkStatus(url=url, status=_request_status(url, "HEAD", timeout), error="")
    except error.HTTPError as exc:
        if exc.code not in (403, 405, 501):
            return LinkStatus(url=url, status=exc.code, error=f"HTTP {exc.code}")
    except (error.URLError, TimeoutError, ssl.SSLError) as exc:
        return LinkStatus(url=url, status=None, error=str(getattr(exc, "reason", exc)))

    try:
        return LinkStatus(url=url, status=_request_status(url, "GET", timeout), error="")
    except error.HTTPError as exc:
        return LinkStatus(url=url, status=exc.code, error=f"HTTP {exc.code}")
    except (error.URLError, TimeoutError, ssl.SSLError) as exc:
        return LinkStatus(url=url, status=None, error=str(getattr(exc, "reason", exc)))


__all__ = ["LinkStatus", "check_url"]
