import logging
from http.cookiejar import CookieJar
from typing import Any, Mapping, Optional

import httpx

from idlemmo.errors import DecodeError, HeaderError, TransportError
from idlemmo.infrastructure.resilient_http import CircuitBreaker, RetryPolicy, send_with_retry
from idlemmo.infrastructure.user_agent import generate_user_agent


def _header_value(name: str, value: str) -> str:
    text = str(value)
    if not text.isascii() or any(char in text for char in "\r\n\x00"):
        raise HeaderError(f"Invalid characters in {name} header value")
    return text


class GameTransport:
    """HTTP identity of one game session.

    Holds the cookie jar, the process-wide user agent and, once logged in, the
    bearer token. The ``httpx.Client`` is rebuilt as a whole whenever the
    token changes; every rebuilt client shares the same cookie jar.
    """

    BASE_URL = "https://web.idle-mmo.com/"

    def __init__(
        self,
        base_url: str = BASE_URL,
        *,
        user_agent: Optional[str] = None,
        timeout: float = 15.0,
        retries: int = 2,
        backoff_seconds: float = 0.5,
        breaker: Optional[CircuitBreaker] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.user_agent = user_agent or generate_user_agent()
        self.cookie_jar = CookieJar()
        self.api_token: Optional[str] = None
        self._timeout = timeout
        self._read_policy = RetryPolicy(retries=retries, backoff_seconds=backoff_seconds)
        self.breaker = breaker if breaker is not None else CircuitBreaker()
        self._transport = transport
        self._logger = logging.getLogger(__name__)
        self.client = self._build_client({})

    def _build_client(self, headers: Mapping[str, str]) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            headers={"User-Agent": _header_value("User-Agent", self.user_agent), **headers},
            cookies=self.cookie_jar,
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def url(self, path: str) -> str:
        return f"{self.base_url}{path.lstrip('/')}"

    def authorize(self, api_token: str) -> None:
        headers = {
            "Authorization": _header_value("Authorization", f"Bearer {api_token}"),
            "Referer": _header_value("Referer", self.base_url),
        }
        self._replace_client(headers)
        self.api_token = api_token
        self._logger.info("HTTP client rebuilt with updated default headers.")

    def deauthorize(self) -> None:
        """Forget the bearer token and every cookie so the next request is anonymous."""
        self.cookie_jar.clear()
        self._replace_client({})
        self.api_token = None
        self._logger.info("HTTP client reset to an anonymous session.")

    def _replace_client(self, headers: Mapping[str, str]) -> None:
        rebuilt = self._build_client(headers)
        self.client.close()
        self.client = rebuilt

    def load_cookie_string(self, cookie_str: str) -> None:
        """Seed the jar from a ``name=value; name2=value2`` string."""
        host = httpx.URL(self.base_url).host
        cookies = httpx.Cookies(self.cookie_jar)
        for part in _header_value("Cookie", cookie_str).split(";"):
            name, separator, value = part.strip().partition("=")
            if not separator or not name:
                continue
            cookies.set(name, value, domain=host)

    def cookie_string(self) -> str:
        host = httpx.URL(self.base_url).host
        pairs = []
        for cookie in self.cookie_jar:
            domain = cookie.domain.lstrip(".")
            if domain and not (host == domain or host.endswith(f".{domain}")):
                continue
            pairs.append(f"{cookie.name}={cookie.value}")
        return "; ".join(pairs)

    def _send(self, method: str, url: str, *, retry: bool, **kwargs: Any) -> httpx.Response:
        try:
            return send_with_retry(
                self.client,
                method,
                url,
                policy=self._read_policy if retry else RetryPolicy(),
                breaker=self.breaker,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    def get(self, url: str) -> httpx.Response:
        return self._send("GET", url, retry=True)

    def post_form(self, url: str, data: Mapping[str, Any]) -> httpx.Response:
        return self._send("POST", url, retry=False, data=dict(data))

    def post_json(self, url: str, payload: Optional[Mapping[str, Any]] = None, *, retry: bool = False) -> httpx.Response:
        if payload is None:
            return self._send("POST", url, retry=retry)
        return self._send("POST", url, retry=retry, json=dict(payload))

    @staticmethod
    def decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Response from {response.request.url} is not valid JSON") from exc

    def close(self) -> None:
        self.client.close()
