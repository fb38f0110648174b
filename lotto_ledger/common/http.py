"""HTTP client with retries, escalating timeouts, and host-aware rate limiting."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from lotto_ledger.common.constants import USER_AGENT
from lotto_ledger.common.errors import SourceError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 10.0
    read: float = 15.0
    read_increment: float = 5.0

    def for_attempt(self, attempt_number: int) -> tuple[float, float]:
        return self.connect, self.read + (attempt_number - 1) * self.read_increment


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    multiplier: float = 0.5
    max_wait: float = 5.0


class HttpRequestError(SourceError):
    error_code = "HTTP_ERROR"


class RetryableHttpError(HttpRequestError):
    pass


class HtmlPayloadError(HttpRequestError):
    """Raised when a mirror answers with an HTML page instead of JSON."""

    error_code = "HTML_PAYLOAD"


class TokenBucket:
    def __init__(self, rate_per_sec: float, capacity: float | None = None) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else rate_per_sec
        self.tokens = self.capacity
        self.updated_at = time.monotonic()
        self.lock = threading.Lock()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            with self.lock:
                now = time.monotonic()
                elapsed = now - self.updated_at
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                deficit = tokens - self.tokens
                wait_for = max(deficit / self.rate_per_sec, 0.01)
            time.sleep(wait_for)


class HostRateLimiter:
    def __init__(self, default_rate_per_sec: float) -> None:
        self.default_rate_per_sec = default_rate_per_sec
        self.rates: dict[str, float] = {}
        self.buckets: dict[str, TokenBucket] = {}
        self.lock = threading.Lock()

    def set_rate(self, host: str, rate_per_sec: float) -> None:
        with self.lock:
            self.rates[host] = rate_per_sec
            self.buckets.pop(host, None)

    def acquire(self, host: str, tokens: float = 1.0) -> None:
        with self.lock:
            bucket = self.buckets.get(host)
            if bucket is None:
                rate = self.rates.get(host, self.default_rate_per_sec)
                bucket = TokenBucket(rate_per_sec=rate, capacity=max(rate, 1.0))
                self.buckets[host] = bucket
        bucket.acquire(tokens=tokens)


def looks_like_html(text: str) -> bool:
    return text.lstrip("\ufeff \t\r\n").startswith("<")


class HttpClient:
    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        default_rate_per_sec: float = 5.0,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        self.limiter = HostRateLimiter(default_rate_per_sec=default_rate_per_sec)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def host(self, url: str) -> str:
        return urlparse(url).netloc

    def _headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        out = {"User-Agent": USER_AGENT, "Accept": "application/json,text/plain,*/*"}
        if headers:
            out.update(headers)
        return out

    def _raise_for_status_or_retry(self, response: requests.Response) -> None:
        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"Retryable HTTP status: {status}")
        if status < 200 or status >= 300:
            raise HttpRequestError(f"HTTP status: {status}")

    def _get_json_once(
        self,
        url: str,
        *,
        attempt_number: int,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
        timeout: TimeoutConfig,
    ) -> Any:
        self.limiter.acquire(self.host(url))

        try:
            response = self.session.request(
                method="GET",
                url=url,
                params=params,
                headers=self._headers(headers),
                timeout=timeout.for_attempt(attempt_number),
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise RetryableHttpError(f"Transport failure for {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise HttpRequestError(f"Request failed for {url}: {exc}") from exc

        self._raise_for_status_or_retry(response)

        text = response.text or ""
        if looks_like_html(text):
            raise HtmlPayloadError(f"HTML payload from {url}")

        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {url}") from exc

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> Any:
        req_timeout = timeout or self.timeout
        retrying = Retrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.retry.multiplier,
                max=self.retry.max_wait,
                jitter=self.retry.multiplier,
            ),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                return self._get_json_once(
                    url,
                    attempt_number=attempt.retry_state.attempt_number,
                    params=params,
                    headers=headers,
                    timeout=req_timeout,
                )
        raise HttpRequestError(f"No attempt made for {url}")
