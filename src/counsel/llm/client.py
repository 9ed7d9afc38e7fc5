"""Async streaming HTTP client shared by all providers.

Wraps ``httpx.AsyncClient`` and maps failures onto the gateway error
taxonomy.  429/5xx responses and transport failures are retried with
exponential backoff, but only while no response byte has been handed to
the caller; once streaming has started a failure is final.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator

import httpx

from counsel.errors import ProtocolError, TransportError
from counsel.llm.providers import ChatRequest

_logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = (429, 500, 502, 503, 504, 529)


class StreamingHTTPClient:
    """POST a JSON body and yield the raw response bytes as they arrive."""

    def __init__(
        self,
        timeout: float = 120,
        max_retries: int = 2,
        backoff_base: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=30, read=300),
            transport=transport,
        )

    async def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        """Yield response body chunks for *request*.

        Raises
        ------
        ProtocolError
            Non-2xx status (after retries for retryable statuses).
        TransportError
            Connection/timeout failure, or the stream broke mid-response.
        """
        attempts = self._max_retries + 1
        started = False

        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                async with self._client.stream(
                    "POST", request.url, headers=request.headers, json=request.body,
                ) as resp:
                    if resp.status_code in _RETRYABLE_STATUS and not last_attempt:
                        _logger.warning(
                            "Provider returned %d (attempt %d/%d), retrying...",
                            resp.status_code, attempt + 1, attempts,
                        )
                        await self._backoff(attempt)
                        continue
                    if not resp.is_success:
                        body = (await resp.aread()).decode(errors="replace")
                        raise ProtocolError(resp.status_code, body)

                    async for chunk in resp.aiter_bytes():
                        started = True
                        yield chunk
                return
            except httpx.TransportError as e:
                if started:
                    raise TransportError(f"stream interrupted: {e}", request.url) from e
                if last_attempt:
                    raise TransportError(_describe(e), request.url) from e
                _logger.warning(
                    "Provider transport error (attempt %d/%d): %s",
                    attempt + 1, attempts, e,
                )
                await self._backoff(attempt)
            except httpx.HTTPError as e:
                raise TransportError(_describe(e), request.url) from e

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(self._backoff_base * (2 ** attempt))

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> StreamingHTTPClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


def _describe(error: httpx.HTTPError) -> str:
    text = str(error)
    return f"{type(error).__name__}: {text}" if text else type(error).__name__
