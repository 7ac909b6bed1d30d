"""
Retrying HTTP client: rate limiting, error classification and backoff.

Every outbound call goes through RetryingClient.call():
1. Acquire a token from the shared rate limiter (Catalog API calls only)
2. Send the request with a per-call timeout
3. Classify failures as retryable (429, 5xx, timeouts, connection/DNS
   errors, GraphQL THROTTLED) or permanent (everything else)
4. Retry retryable failures in a bounded loop:
   delay = 2^n * base + jitter(0, max_jitter), THROTTLED uses a fixed delay

Permanent errors propagate immediately; exhausted retries propagate as
TransientClientError carrying the last status, body and attempt count.
"""
import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from catalog_sync.core.constants.sync import (
    BACKOFF_BASE_SECONDS,
    MAX_JITTER_SECONDS,
    RETRYABLE_STATUS_CODES,
    THROTTLE_DELAY_SECONDS,
)
from catalog_sync.core.exceptions import (
    GraphQLError,
    PermanentClientError,
    ResponseDecodeError,
    RetryableError,
    ThrottledError,
    TransientClientError,
)
from catalog_sync.utils.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger("retrying_client")

TRANSIENT_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass
class ApiRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    json: Optional[Any] = None
    params: Optional[Dict[str, Any]] = None
    rate_limited: bool = True


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code < 600


def is_throttle_error(error: Any) -> bool:
    if not isinstance(error, dict):
        return False
    code = (error.get("extensions") or {}).get("code")
    if code == "THROTTLED":
        return True
    return "throttled" in str(error.get("message", "")).lower()


class RetryingClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        limiter: TokenBucketRateLimiter,
        max_retries: int = 3,
        timeout: float = 60.0,
        throttle_delay: float = THROTTLE_DELAY_SECONDS,
        backoff_base: float = BACKOFF_BASE_SECONDS,
        max_jitter: float = MAX_JITTER_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        jitter: Callable[[float, float], float] = random.uniform,
    ) -> None:
        self._http = http
        self._limiter = limiter
        self._max_retries = max_retries
        self._timeout = timeout
        self._throttle_delay = throttle_delay
        self._backoff_base = backoff_base
        self._max_jitter = max_jitter
        self._sleep = sleep
        self._jitter = jitter

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def backoff_delay(self, retry_index: int) -> float:
        """Delay before retry number retry_index (0-based): 2^n * base + jitter."""
        return (2 ** retry_index) * self._backoff_base + self._jitter(0, self._max_jitter)

    async def call(self, request: ApiRequest) -> httpx.Response:
        """Send a request with rate limiting and retries; returns the successful response."""
        return await self._with_retries(request, self._attempt_http)

    async def call_json(self, request: ApiRequest) -> Any:
        """Like call(), but decodes the JSON body."""
        response = await self.call(request)
        return self._decode_json(response, request.url)

    async def call_graphql(
        self,
        url: str,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        POST a GraphQL document and return its `data` object.

        GraphQL errors in a 200 body are raised separately from transport
        errors: THROTTLED is retried after a fixed delay, anything else
        raises GraphQLError.
        """
        request = ApiRequest(
            method="POST",
            url=url,
            headers=headers or {},
            json={"query": query, "variables": variables or {}},
        )
        return await self._with_retries(request, self._attempt_graphql)

    async def _with_retries(self, request: ApiRequest, attempt_fn) -> Any:
        attempt = 0
        while True:
            attempt += 1
            try:
                if request.rate_limited:
                    await self._limiter.acquire()
                return await attempt_fn(request, attempt)
            except RetryableError as exc:
                if attempt > self._max_retries:
                    logger.error(
                        "request failed permanently after %s attempts: %s %s - %s",
                        attempt, request.method, request.url, exc,
                    )
                    raise TransientClientError(
                        f"Retries exhausted for {request.method} {request.url}",
                        status_code=getattr(exc, "status_code", None),
                        body=getattr(exc, "body", None) or _errors_body(exc),
                        attempts=attempt,
                        url=request.url,
                    ) from exc

                if isinstance(exc, ThrottledError):
                    delay = self._throttle_delay
                else:
                    delay = self.backoff_delay(attempt - 1)
                logger.warning(
                    "request failed (attempt %s/%s): %s %s - %s. Retrying in %.1fs",
                    attempt, self._max_retries + 1, request.method, request.url, exc, delay,
                )
                await self._sleep(delay)

    async def _attempt_http(self, request: ApiRequest, attempt: int) -> httpx.Response:
        logger.debug("request method=%s url=%s attempt=%s", request.method, request.url, attempt)
        try:
            resp = await self._http.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                json=request.json,
                params=request.params,
                timeout=self._timeout,
            )
        except TRANSIENT_TRANSPORT_ERRORS as exc:
            raise TransientClientError(
                f"{type(exc).__name__} calling {request.url}: {exc}",
                attempts=attempt,
                url=request.url,
            ) from exc
        except httpx.HTTPError as exc:
            raise PermanentClientError(
                f"{type(exc).__name__} calling {request.url}: {exc}",
                attempts=attempt,
                url=request.url,
            ) from exc

        logger.debug("response status=%s url=%s", resp.status_code, request.url)
        if resp.status_code >= 400:
            error_cls = TransientClientError if is_retryable_status(resp.status_code) else PermanentClientError
            raise error_cls(
                f"HTTP {resp.status_code} from {request.method} {request.url}",
                status_code=resp.status_code,
                body=resp.text or None,
                attempts=attempt,
                url=request.url,
            )
        return resp

    async def _attempt_graphql(self, request: ApiRequest, attempt: int) -> Dict[str, Any]:
        resp = await self._attempt_http(request, attempt)
        payload = self._decode_json(resp, request.url)
        if not isinstance(payload, dict):
            raise ResponseDecodeError("GraphQL", f"expected an object, got {type(payload).__name__}")

        errors = payload.get("errors")
        if errors:
            error_list = errors if isinstance(errors, list) else [errors]
            if any(is_throttle_error(e) for e in error_list):
                raise ThrottledError(error_list, url=request.url)
            raise GraphQLError(error_list, url=request.url, attempts=attempt)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ResponseDecodeError("GraphQL", "missing data object")
        return data

    @staticmethod
    def _decode_json(resp: httpx.Response, url: str) -> Any:
        if not resp.text:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise ResponseDecodeError(f"JSON from {url}", str(exc)) from exc


def _errors_body(exc: Exception) -> Optional[str]:
    errors = getattr(exc, "errors", None)
    return str(errors) if errors else None
