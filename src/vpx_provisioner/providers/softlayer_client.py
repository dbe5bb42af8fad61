"""HTTP client for the SoftLayer REST API.

Calls take the form ``{endpoint}/{Service}[/{id}]/{method}.json`` with an
optional ``objectMask`` and ``objectFilter``. Auth is HTTP basic with the
account username and API key. Timeouts, 429 and 5xx responses are retried
with jittered exponential backoff; a Retry-After header wins over backoff.
"""

from __future__ import annotations

import json as jsonlib
import logging
import random
import time
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})

DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_BASE = 1.0
DEFAULT_BACKOFF_CAP = 30.0

_NOT_FOUND_CODE = "SoftLayer_Exception_ObjectNotFound"


# ── Exception hierarchy ─────────────────────────────────────────


class SoftLayerAPIError(Exception):
    """Error response (or no response) from the SoftLayer API."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        code: str = "",
        response_body: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.code = code
        self.response_body = response_body
        super().__init__(f"SoftLayer API error {status_code}: {message}")


class SoftLayerNotFoundError(SoftLayerAPIError):
    """404, or a body carrying SoftLayer_Exception_ObjectNotFound."""

    def __init__(self, message: str = "Object not found", **kwargs: Any) -> None:
        kwargs.setdefault("code", _NOT_FOUND_CODE)
        super().__init__(404, message, **kwargs)


class SoftLayerTimeoutError(SoftLayerAPIError):
    def __init__(self, message: str = "SoftLayer request timed out") -> None:
        super().__init__(0, message)


def _error_from_response(resp: httpx.Response) -> SoftLayerAPIError:
    body = resp.text
    message = body[:200] if body else f"HTTP {resp.status_code}"
    code = ""
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("error", message)
        code = payload.get("code", "")

    if resp.status_code == 404 or code == _NOT_FOUND_CODE:
        return SoftLayerNotFoundError(message=message, response_body=body)
    return SoftLayerAPIError(
        resp.status_code, message, code=code, response_body=body
    )


# ── Client ───────────────────────────────────────────────────────


class SoftLayerClient:
    """Synchronous HTTP client for the SoftLayer REST API.

    One instance is shared by every lifecycle operation through the
    ProviderContext; it holds no per-operation state.
    """

    def __init__(
        self,
        *,
        username: str,
        api_key: str,
        endpoint_url: str = "https://api.softlayer.com/rest/v3.1",
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 60.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
        backoff_cap: float = DEFAULT_BACKOFF_CAP,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not username or not api_key:
            raise ValueError("username and api_key are required")

        self._auth = (username, api_key)
        self._endpoint_url = endpoint_url.rstrip("/")
        self._client = http_client or httpx.Client()
        self._timeout = float(timeout_seconds)
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._backoff_cap = backoff_cap
        self._sleep = sleep

    def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
        retry: bool = True,
    ) -> httpx.Response:
        """Send one request, retrying transient failures when ``retry`` is set.

        Returns the last response once it is not retryable or the retries
        are used up; raises SoftLayerTimeoutError if every attempt timed out.
        With ``retry=False`` the request goes out exactly once.
        """
        url = f"{self._endpoint_url}{path}"
        attempts = self._max_retries + 1 if retry else 1

        for attempt in range(attempts):
            final = attempt == attempts - 1
            try:
                resp = self._client.request(
                    method,
                    url,
                    auth=self._auth,
                    json=json,
                    params=params,
                    timeout=self._timeout,
                )
            except httpx.TimeoutException as e:
                if final:
                    raise SoftLayerTimeoutError(str(e)) from e
                delay = self._backoff(attempt)
                logger.warning(
                    "SoftLayer %s %s timed out (attempt %d/%d), retrying in %.1fs",
                    method, path, attempt + 1, attempts, delay,
                )
                self._sleep(delay)
                continue
            except httpx.TransportError as e:
                raise SoftLayerAPIError(0, str(e)) from e

            if resp.status_code not in RETRY_STATUSES or final:
                return resp

            delay = self._delay_for(resp, attempt)
            logger.warning(
                "SoftLayer %s %s returned %d (attempt %d/%d), retrying in %.1fs",
                method, path, resp.status_code, attempt + 1, attempts, delay,
            )
            self._sleep(delay)

        raise SoftLayerAPIError(0, "no attempts made")

    def _backoff(self, attempt: int) -> float:
        ceiling = min(self._backoff_base * (2 ** attempt), self._backoff_cap)
        return random.uniform(0, ceiling)

    def _delay_for(self, resp: httpx.Response, attempt: int) -> float:
        header = resp.headers.get("retry-after")
        if header:
            try:
                return max(float(header), 0.1)
            except ValueError:
                logger.debug("Ignoring non-numeric Retry-After: %r", header)
        return self._backoff(attempt)

    # ── Public API ───────────────────────────────────────────────

    def call(
        self,
        service: str,
        method: str,
        *args: Any,
        object_id: int | None = None,
        mask: str | None = None,
        object_filter: dict[str, Any] | None = None,
        retry: bool = True,
    ) -> Any:
        """Invoke ``service.method`` and return the decoded JSON result.

        Positional ``args`` are sent as the ``parameters`` list of a POST
        body; without them the call is a GET. Pass ``retry=False`` for calls
        that must not be repeated, such as placing an order.
        """
        segments = [service] if object_id is None else [service, str(object_id)]
        path = "/" + "/".join(segments) + f"/{method}.json"

        query: dict[str, str] = {}
        if mask:
            query["objectMask"] = mask if mask.startswith("mask") else f"mask[{mask}]"
        if object_filter:
            query["objectFilter"] = jsonlib.dumps(object_filter)

        if args:
            resp = self._send(
                "POST",
                path,
                json={"parameters": list(args)},
                params=query or None,
                retry=retry,
            )
        else:
            resp = self._send("GET", path, params=query or None, retry=retry)

        if resp.status_code >= 400:
            raise _error_from_response(resp)
        if not resp.content:
            return None
        return resp.json()

    def close(self) -> None:
        self._client.close()
