from __future__ import annotations

import logging
import ssl
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import httpx

from .errors import TransportError, new_http_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How a single exchange is retried when the server answers with given codes.

    ``max_retries`` does not count the initial request: a value of 3 means the
    request may be sent 4 times in total.
    """

    max_retries: int = 0
    retry_statuses: frozenset[int] = field(default_factory=frozenset)
    delay: float = 0.0

    @classmethod
    def build(
        cls, max_retries: int, retry_statuses: Iterable[int], delay: float
    ) -> RetryPolicy:
        return cls(max_retries=max_retries, retry_statuses=frozenset(retry_statuses), delay=delay)

    def is_retry_code(self, status_code: int) -> bool:
        return status_code in self.retry_statuses

    def session(self) -> RetrySession:
        return RetrySession(self)


NO_RETRY_POLICY = RetryPolicy()


class RetrySession:
    """Retry budget for exactly one logical exchange."""

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.retries_left = policy.max_retries

    def should_retry(self, status_code: int) -> bool:
        if self.retries_left > 0 and self.policy.is_retry_code(status_code):
            self.retries_left -= 1
            return True
        return False


class HttpClient:
    """Thin httpx wrapper that adds the API version header, redirects and status retry."""

    def __init__(
        self,
        base_url: str,
        *,
        cert: str | None = None,
        retry_policy: RetryPolicy = NO_RETRY_POLICY,
        timeout: float = 60.0,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy
        self._default_headers = default_headers or {}
        client_kwargs: dict[str, Any] = {"timeout": timeout, "follow_redirects": True}
        if cert:
            context = ssl.create_default_context()
            context.load_cert_chain(cert)
            client_kwargs["verify"] = context
        self._client = httpx.Client(**client_kwargs)

    def compose_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        if path.startswith("/"):
            raise ValueError(f"got absolute API path '{path}' instead of relative one")
        return f"{self.base_url}/{path}"

    def request(
        self,
        method: str,
        path: str,
        *,
        api_version: str,
        params: dict[str, Any] | None = None,
        content: bytes | str | None = None,
        content_type: str | None = None,
        raise_for_status: bool = True,
    ) -> httpx.Response:
        url = self.compose_url(path)
        headers = {**self._default_headers, "x-ms-version": api_version}
        if content_type:
            headers["Content-Type"] = content_type
        retry = self.retry_policy.session()

        logger.debug("Request: %s %s", method, url)
        if content:
            logger.debug("Request body:\n%s", content)
        while True:
            try:
                resp = self._client.request(
                    method, url, params=params, content=content, headers=headers
                )
            except httpx.RequestError as e:
                raise TransportError(f"{method} {url} failed: {e}") from e
            if not retry.should_retry(resp.status_code):
                break
            logger.debug(
                "Retrying %s %s after %s (%d retries left)",
                method,
                url,
                resp.status_code,
                retry.retries_left,
            )
            time.sleep(self.retry_policy.delay)

        logger.debug("Response: %d %s", resp.status_code, resp.reason_phrase)
        logger.debug("Response headers:\n%s", dict(resp.headers))
        if resp.content:
            logger.debug("Response body:\n%s", resp.text)

        if raise_for_status and not 200 <= resp.status_code < 300:
            raise new_http_error(resp.status_code, resp.content, f"{method} request failed")
        return resp

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""

        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
