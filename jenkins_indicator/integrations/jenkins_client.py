"""Jenkins status endpoint client.

One GET of ``<jenkins_url>/api/json`` per call, optionally with preemptive
basic auth (Jenkins does not send a challenge, so the header has to be on the
first request).  Failures come back as ``TransportError`` values; retrying is
left to the poller's next tick.
"""
from __future__ import annotations

from typing import Optional, Tuple, Union
from urllib.parse import urlparse

import httpx
import structlog

from ..models.result import ConfigError, TransportError, TransportKind

log = structlog.get_logger(__name__)

STATUS_PATH = "api/json"
_DEFAULT_TIMEOUT = 10.0


def url_append(base: str, path: str) -> str:
    """Join ``path`` onto ``base`` with exactly one slash between them."""
    return base.rstrip("/") + "/" + path.lstrip("/")


def status_url(jenkins_url: str) -> Union[str, ConfigError]:
    """Return the status endpoint for a server, or ``ConfigError`` if unusable."""
    url = (jenkins_url or "").strip()
    if not url:
        return ConfigError(url=url, reason="no Jenkins URL configured")
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        return ConfigError(url=url, reason=str(exc))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return ConfigError(url=url)
    return url_append(url, STATUS_PATH)


class JenkinsClient:
    """Stateless fetcher: every call opens and closes its own ``httpx.AsyncClient``.

    Usage::

        client = JenkinsClient(timeout=10)
        body = await client.fetch("https://ci.example.com/api/json", auth=("me", "token"))
        if isinstance(body, TransportError):
            ...
    """

    def __init__(
        self,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        # injectable for tests (httpx.MockTransport)
        self._transport = transport

    async def fetch(
        self,
        url: str,
        auth: Optional[Tuple[str, str]] = None,
    ) -> Union[bytes, TransportError]:
        headers = {"Accept": "application/json"}
        # httpx.BasicAuth always sends the header up front; no 401 round trip
        basic_auth = httpx.BasicAuth(*auth) if auth else None

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers=headers,
                transport=self._transport,
            ) as client:
                resp = await client.get(url, auth=basic_auth)
        except httpx.TimeoutException as exc:
            log.warning("jenkins_fetch_timeout", url=url, error=str(exc))
            return TransportError(kind=TransportKind.NETWORK, reason=f"timeout: {exc}")
        except httpx.HTTPError as exc:
            log.warning("jenkins_fetch_network_error", url=url, error=str(exc))
            return TransportError(kind=TransportKind.NETWORK, reason=str(exc) or type(exc).__name__)

        if not resp.is_success:
            log.warning("jenkins_fetch_http_error", url=url, status_code=resp.status_code)
            return TransportError(
                kind=TransportKind.HTTP,
                status_code=resp.status_code,
                reason=resp.reason_phrase,
            )

        log.debug("jenkins_fetch_ok", url=url, bytes=len(resp.content))
        return resp.content
