"""deployer.client module.

This module defines the `WordPressClient` class, the asynchronous networking
boundary for every outbound call the deploy pipeline makes to a WordPress REST
API. Its strict focus is turning a ``(method, path, body, query params)``
request into an authenticated HTTP call with uniform error semantics, hiding
URL construction, throttling and the retry policy from the layers above.

Retries and backoff are applied per the injected `WordPressConfig`: 5xx
answers and transport failures (DNS, connection, timeout) are retried with
exponential backoff, 4xx answers fail immediately, and a malformed body on a
2xx answer is reported without retrying. Unlike a tuple-returning client, this
one raises the structured errors from :mod:`site_deployer.exceptions` so that
the media uploader and page manager can decide whether to surface or collect
them.

Examples
--------
>>> from site_deployer.pipeline.deployer.client import WordPressClient
>>> from site_deployer.pipeline.deployer.config import WordPressConfig
>>> cfg = WordPressConfig("https://example.com", "admin", "xxxx xxxx")
>>> async def main():
...     async with WordPressClient(cfg) as client:
...         pages = await client.get("/wp/v2/pages", {"per_page": 5})
...         print(len(pages))
>>> # To actually run:
>>> # import asyncio; asyncio.run(main())

Notes
-----
- The client never knows about pages, media or deployments; it only speaks HTTP.
- All limits (timeouts, retries, request rate) come from the config object.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any, Mapping
from urllib.parse import urlencode

import aiohttp
from aiolimiter import AsyncLimiter

from site_deployer.config import (
    API_ROOT_PATH,
    CURRENT_USER_ENDPOINT,
    QUERY_ROUTE_PARAM,
    RATE_LIMIT_PERIOD_SECONDS,
)
from site_deployer.exceptions import (
    ClientError,
    ResponseFormatError,
    ServerError,
    TransportError,
)

from .config import WordPressConfig
from .retry import SleepFunc, retry_async
from .schemas import WPUser, is_wp_error, parse_wp_error, parse_wp_user

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, str | int | float | bool | None]


def _format_param(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _load_error_body(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return {}
    return data if isinstance(data, dict) else {}


class WordPressClient:
    r"""Asynchronous, authenticated client for a WordPress REST API.

    The client owns an ``aiohttp.ClientSession`` unless one is injected, in
    which case the caller is responsible for closing it. It can be used as an
    async context manager.

    Parameters
    ----------
    config : WordPressConfig
        Connection settings. Validated immediately.
    session : aiohttp.ClientSession | None, optional
        Session to reuse. Tests inject fakes exposing ``request`` and ``get``.
    limiter : AsyncLimiter | None, optional
        Explicit rate limiter; by default one is built from
        ``config.target_rpm`` when that is set.
    sleep : SleepFunc | None, optional
        Awaitable used between retries; ``asyncio.sleep`` by default.

    Raises
    ------
    ConfigurationError
        If the base URL, username or application password is missing.

    See Also
    --------
    site_deployer.pipeline.deployer.retry.retry_async : The retry policy.
    site_deployer.exceptions.RemoteAPIError : Errors raised for non-2xx answers.
    """

    def __init__(
        self,
        config: WordPressConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        limiter: AsyncLimiter | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        config.validate()
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        token = base64.b64encode(
            f"{config.username}:{config.app_password}".encode("utf-8")
        ).decode("ascii")
        self._auth_header = f"Basic {token}"
        self._session = session
        self._owns_session = session is None
        if limiter is None and config.target_rpm:
            limiter = AsyncLimiter(config.target_rpm, RATE_LIMIT_PERIOD_SECONDS)
        self._limiter = limiter
        self._sleep = sleep

    async def __aenter__(self) -> WordPressClient:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        """Return the HTTP session, creating an owned one on first use."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.config.timeout_ms / 1000)

    async def close(self) -> None:
        """Close the underlying session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def build_url(self, path: str, params: QueryParams | None = None) -> str:
        """Build the absolute URL for an API path and optional query params.

        Parameters
        ----------
        path : str
            API path relative to the REST root, e.g. ``/wp/v2/pages``.
        params : QueryParams | None, optional
            Query parameters; ``None`` values are dropped and booleans are
            rendered as ``true``/``false``.

        Returns
        -------
        str
            ``{base}/wp-json{path}?{query}`` in path mode, or
            ``{base}/?rest_route={path}&{query}`` in query-string mode.

        Examples
        --------
        >>> cfg = WordPressConfig("https://example.com/", "u", "p")
        >>> WordPressClient(cfg).build_url("wp/v2/pages", {"slug": "home"})
        'https://example.com/wp-json/wp/v2/pages?slug=home'
        """
        endpoint = path if path.startswith("/") else f"/{path}"
        query = [
            (key, _format_param(value))
            for key, value in (params or {}).items()
            if value is not None
        ]
        if self.config.use_query_string_routes:
            query.insert(0, (QUERY_ROUTE_PARAM, endpoint))
            return f"{self.base_url}/?{urlencode(query, safe='/')}"
        url = f"{self.base_url}{API_ROOT_PATH}{endpoint}"
        if query:
            url = f"{url}?{urlencode(query, safe='/')}"
        return url

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        body: Any = None,
    ) -> Any:
        r"""Send one logical request, retrying transient failures.

        Parameters
        ----------
        method : str
            HTTP verb (``GET``, ``POST``, ``PUT`` or ``DELETE``).
        path : str
            API path relative to the REST root.
        params : QueryParams | None, optional
            Query parameters.
        body : Any, optional
            JSON-serializable payload, sent for ``POST`` and ``PUT`` only.

        Returns
        -------
        Any
            The decoded JSON body, or ``None`` for an empty 2xx body.

        Raises
        ------
        ClientError
            On a 4xx answer (never retried).
        ServerError
            On a 5xx answer once ``retry_attempts`` retries are exhausted.
        TransportError
            On a network failure once retries are exhausted.
        ResponseFormatError
            If a 2xx body is not valid JSON (never retried).
        """
        url = self.build_url(path, params)
        method = method.upper()

        def _log_retry(attempt: int, exc: BaseException, delay: float) -> None:
            logger.warning(
                f"{method} {path} failed ({exc}); retry {attempt}/{self.config.retry_attempts} in {delay:.2f}s"
            )

        return await retry_async(
            lambda: self._send_once(method, path, url, body),
            retries=self.config.retry_attempts,
            base_delay=self.config.retry_delay_ms / 1000,
            retry_on=(ServerError, TransportError),
            sleep=self._sleep,
            on_retry=_log_retry,
        )

    async def _send_once(self, method: str, path: str, url: str, body: Any) -> Any:
        headers = {"Authorization": self._auth_header, "Accept": "application/json"}
        kwargs: dict[str, Any] = {"headers": headers, "timeout": self.timeout}
        if body is not None and method in ("POST", "PUT"):
            headers["Content-Type"] = "application/json"
            kwargs["data"] = json.dumps(body)

        try:
            if self._limiter is not None:
                async with self._limiter:
                    status, text = await self._perform(method, url, kwargs)
            else:
                status, text = await self._perform(method, url, kwargs)
        except aiohttp.ClientError as exc:
            raise TransportError(
                str(exc) or exc.__class__.__name__, endpoint=path
            ) from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"Request timed out after {self.config.timeout_ms} ms", endpoint=path
            ) from exc

        if 200 <= status < 300:
            return self._decode_body(text, path, status)
        raise self._error_for(status, text, path)

    async def _perform(
        self, method: str, url: str, kwargs: dict[str, Any]
    ) -> tuple[int, str]:
        async with self.session.request(method, url, **kwargs) as response:
            return response.status, await response.text()

    @staticmethod
    def _decode_body(text: str, path: str, status: int) -> Any:
        if not text or not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseFormatError(
                "Response body is not valid JSON",
                context={"endpoint": path, "status": status, "body": text[:200]},
            ) from exc

    @staticmethod
    def _error_for(status: int, text: str, path: str) -> ClientError | ServerError:
        """Map a non-2xx answer onto ClientError or ServerError.

        Only 5xx answers are treated as transient; anything else that is not
        2xx (4xx, or an unfollowed 3xx) is the caller's to fix.
        """
        error_body = _load_error_body(text)
        if is_wp_error(error_body):
            parsed = parse_wp_error(error_body)
            remote_code: str | None = parsed.code
            message = parsed.message
        else:
            remote_code = error_body.get("code")
            message = error_body.get("message") or f"HTTP {status}"
        if status >= 500:
            return ServerError(
                message,
                status=status,
                endpoint=path,
                remote_code=remote_code or "server_error",
            )
        return ClientError(
            message,
            status=status,
            endpoint=path,
            remote_code=remote_code or "http_error",
        )

    async def get(self, path: str, params: QueryParams | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, body=body)

    async def delete(self, path: str, params: QueryParams | None = None) -> None:
        await self.request("DELETE", path, params=params)

    async def check_connection(self) -> WPUser:
        """Verify the credentials by fetching the authenticated user.

        Returns
        -------
        WPUser
            The user the application password belongs to.
        """
        user = parse_wp_user(await self.get(CURRENT_USER_ENDPOINT))
        logger.info(f"Authenticated against {self.base_url} as {user.slug}")
        return user
