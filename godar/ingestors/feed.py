"""Feed client for Virtual Radar Server ``AircraftList.json`` endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from godar.config import Settings
from godar.models.aircraft import AircraftList

logger = logging.getLogger("godar.feed")

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
JSON_CONTENT_TYPE = "application/json"
_REDIRECT_STATUSES = {301, 302, 303, 307, 308}


class FeedError(RuntimeError):
    """Base class for failures fetching the aircraft feed."""


class FeedTransportError(FeedError):
    """DNS, connection or timeout failure talking to the feed server."""


class FeedAuthError(FeedError):
    """No authentication strategy was accepted by the feed server."""


class FeedResponseError(FeedError):
    """The feed server answered with an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FeedDecodeError(FeedError):
    """The response body was not a valid aircraft list document."""


class SessionExpiredError(FeedError):
    """The server kept redirecting to its login page after re-authentication."""


class AuthMethod(str, Enum):
    """Authentication strategies, in the order they are attempted."""

    SESSION_COOKIE = "session-cookie"
    BASIC = "basic"
    QUERY_PARAM = "query-param"
    NONE = "none"


AUTH_CHAIN = (
    AuthMethod.SESSION_COOKIE,
    AuthMethod.BASIC,
    AuthMethod.QUERY_PARAM,
    AuthMethod.NONE,
)


@dataclass
class FeedSession:
    """Authentication state negotiated with the feed server."""

    method: AuthMethod | None = None
    cookie: str | None = None

    @property
    def established(self) -> bool:
        return self.method is not None

    def reset(self) -> None:
        self.method = None
        self.cookie = None


@dataclass
class FeedFilters:
    """Server-side filters; default values are not sent."""

    aircraft_type: str = ""
    min_altitude: int = 0
    max_altitude: int = 0
    military: bool = False
    operator: str = ""
    flight_number: str = ""

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.aircraft_type:
            params["fTypQ"] = self.aircraft_type
        if self.min_altitude > 0:
            params["fAltL"] = str(self.min_altitude)
        if self.max_altitude > 0:
            params["fAltU"] = str(self.max_altitude)
        if self.military:
            params["fMilQ"] = "1"
        if self.operator:
            params["fOpQ"] = self.operator
        if self.flight_number:
            params["fCallQ"] = self.flight_number
        return params


@dataclass
class ObserverLocation:
    """Observer position; exactly 0,0 means no location is configured."""

    latitude: float = 0.0
    longitude: float = 0.0
    max_distance: float = 0.0

    @property
    def is_set(self) -> bool:
        return not (self.latitude == 0.0 and self.longitude == 0.0)

    def to_params(self) -> dict[str, str]:
        if not self.is_set:
            return {}
        params = {
            "lat": _format_float(self.latitude),
            "lng": _format_float(self.longitude),
        }
        if self.max_distance > 0:
            params["fDstU"] = _format_float(self.max_distance)
        return params


def _format_float(value: float) -> str:
    text = repr(float(value))
    if "e" in text:
        text = f"{value:.10f}".rstrip("0").rstrip(".")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _is_json(response: httpx.Response) -> bool:
    return JSON_CONTENT_TYPE in response.headers.get("content-type", "")


class FeedClient:
    """Fetch the current aircraft list, negotiating authentication as needed."""

    def __init__(
        self,
        base_url: str,
        *,
        username: str = "",
        password: str = "",
        filters: FeedFilters | None = None,
        location: ObserverLocation | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        login_path: str = "/login.php",
        session_cookie_name: str = "rauth",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.username = username
        self.password = password
        self.filters = filters or FeedFilters()
        self.location = location or ObserverLocation()
        self.timeout = timeout
        self.max_retries = max(max_retries, 0)
        self.retry_delay = retry_delay
        self.login_path = login_path
        self.session_cookie_name = session_cookie_name
        self.transport = transport
        self.session = FeedSession()

    @classmethod
    def from_settings(
        cls, config: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "FeedClient":
        return cls(
            config.server_url,
            username=config.server_username,
            password=config.server_password,
            filters=FeedFilters(
                aircraft_type=config.filter_aircraft_type,
                min_altitude=config.filter_min_altitude,
                max_altitude=config.filter_max_altitude,
                military=config.filter_military,
                operator=config.filter_operator,
                flight_number=config.filter_flight_number,
            ),
            location=ObserverLocation(
                latitude=config.latitude,
                longitude=config.longitude,
                max_distance=config.max_distance,
            ),
            timeout=config.server_timeout,
            max_retries=config.server_max_retries,
            retry_delay=config.server_retry_delay,
            login_path=config.login_path,
            session_cookie_name=config.session_cookie_name,
            transport=transport,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.username or self.password)

    @property
    def auth_method(self) -> AuthMethod | None:
        return self.session.method

    async def fetch(self) -> AircraftList:
        """Fetch and decode the aircraft list for the current poll.

        A redirect to the login page clears the session, re-authenticates and
        retries the request once; a second redirect raises
        :class:`SessionExpiredError`.
        """

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT, "Referer": self._referer()},
        ) as client:
            if self.has_credentials and not self.session.established:
                await self._authenticate(client)

            response = await self._request(client)

            if self._is_login_redirect(response):
                logger.info("Feed session expired, attempting to log in again")
                self.session.reset()
                await self._authenticate(client)
                response = await self._request(client)
                if self._is_login_redirect(response):
                    raise SessionExpiredError(
                        "Feed server redirected to login again after re-authentication"
                    )

        return self._decode(response)

    async def _authenticate(self, client: httpx.AsyncClient) -> AuthMethod:
        if not self.username or not self.password:
            raise FeedAuthError("username and password required for login")

        strategies = {
            AuthMethod.SESSION_COOKIE: self._try_form_login,
            AuthMethod.BASIC: self._try_basic_auth,
            AuthMethod.QUERY_PARAM: self._try_query_auth,
            AuthMethod.NONE: self._try_no_auth,
        }

        transport_errors: list[httpx.RequestError] = []
        for method in AUTH_CHAIN:
            logger.debug("Trying authentication method %s", method.value)
            try:
                accepted = await strategies[method](client)
            except httpx.RequestError as exc:
                logger.debug("Authentication method %s failed: %s", method.value, exc)
                transport_errors.append(exc)
                continue
            if accepted:
                self.session.method = method
                logger.info("Authenticated with feed server using %s", method.value)
                return method
            logger.debug("Authentication method %s not accepted", method.value)

        if len(transport_errors) == len(AUTH_CHAIN):
            raise FeedTransportError(
                f"feed server unreachable during authentication: {transport_errors[-1]}"
            ) from transport_errors[-1]
        raise FeedAuthError("all authentication methods failed")

    async def _try_form_login(self, client: httpx.AsyncClient) -> bool:
        login_url = httpx.URL(self.base_url).join(self.login_path)
        response = await client.post(
            login_url,
            data={"username": self.username, "password": self.password},
        )
        logger.debug(
            "Form login response: status=%s cookies=%s",
            response.status_code,
            [cookie.name for cookie in response.cookies.jar],
        )

        wanted = self.session_cookie_name.lower()
        for cookie in response.cookies.jar:
            if cookie.name.lower() == wanted:
                self.session.cookie = f"{cookie.name}={cookie.value}"
                return True
        return False

    async def _try_basic_auth(self, client: httpx.AsyncClient) -> bool:
        response = await client.get(
            self.base_url,
            params={"test": "1"},
            auth=httpx.BasicAuth(self.username, self.password),
        )
        self._log_probe("Basic auth", response)
        return _is_json(response)

    async def _try_query_auth(self, client: httpx.AsyncClient) -> bool:
        response = await client.get(self.base_url, params=self._credential_params())
        self._log_probe("Query parameter auth", response)
        return _is_json(response)

    async def _try_no_auth(self, client: httpx.AsyncClient) -> bool:
        response = await client.get(self.base_url)
        self._log_probe("No-auth", response)
        return _is_json(response)

    def _log_probe(self, name: str, response: httpx.Response) -> None:
        logger.debug(
            "%s probe response: status=%s content_type=%s",
            name,
            response.status_code,
            response.headers.get("content-type", ""),
        )

    def _credential_params(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}

    def build_params(self) -> dict[str, str]:
        """Query parameters for the poll request, including query-param auth."""

        params = self.filters.to_params()
        params.update(self.location.to_params())
        if self.session.method is AuthMethod.QUERY_PARAM:
            params.update(self._credential_params())
        return params

    def _request_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "params": self.build_params(),
            "headers": {"Accept": JSON_CONTENT_TYPE},
        }
        if self.session.method is AuthMethod.SESSION_COOKIE and self.session.cookie:
            kwargs["headers"]["Cookie"] = self.session.cookie
        elif self.session.method is AuthMethod.BASIC:
            kwargs["auth"] = httpx.BasicAuth(self.username, self.password)
        return kwargs

    async def _request(self, client: httpx.AsyncClient) -> httpx.Response:
        """Issue the poll request, retrying transport failures and 5xx answers."""

        kwargs = self._request_kwargs()
        last_error: FeedError | None = None

        for attempt in range(self.max_retries + 1):
            if attempt:
                delay = self.retry_delay * attempt
                logger.debug(
                    "Retrying feed request (attempt %s) in %.1fs: %s",
                    attempt + 1,
                    delay,
                    last_error,
                )
                await asyncio.sleep(delay)

            try:
                response = await client.get(self.base_url, **kwargs)
            except httpx.TimeoutException as exc:
                logger.warning("Feed request timed out: %s", exc)
                last_error = FeedTransportError(f"feed request timed out: {exc}")
                continue
            except httpx.RequestError as exc:
                logger.warning("Feed request failed: %s", exc)
                last_error = FeedTransportError(f"feed request failed: {exc}")
                continue

            logger.debug(
                "Feed response: status=%s content_type=%s url=%s",
                response.status_code,
                response.headers.get("content-type", ""),
                response.request.url,
            )
            if response.status_code >= 500:
                last_error = FeedResponseError(
                    f"feed server returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )
                continue
            return response

        assert last_error is not None
        raise last_error

    def _is_login_redirect(self, response: httpx.Response) -> bool:
        if response.status_code not in _REDIRECT_STATUSES:
            return False
        marker = self.login_path.rsplit("/", 1)[-1]
        return marker in response.headers.get("location", "")

    def _referer(self) -> str:
        return str(httpx.URL(self.base_url).join("/"))

    def _decode(self, response: httpx.Response) -> AircraftList:
        if response.status_code != 200:
            logger.error(
                "Feed returned non-OK status %s: %s",
                response.status_code,
                response.text[:500],
            )
            raise FeedResponseError(
                f"feed request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith(JSON_CONTENT_TYPE):
            logger.error(
                "Feed response is not JSON (content-type %r): %s",
                content_type,
                response.text[:500],
            )
            raise FeedDecodeError(f"expected JSON response, got content-type: {content_type!r}")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Failed to parse feed JSON response: %s", exc)
            raise FeedDecodeError(f"malformed JSON in feed response: {exc}") from exc

        try:
            aircraft_list = AircraftList.model_validate(payload)
        except ValidationError as exc:
            logger.error("Feed response did not match the aircraft list shape: %s", exc)
            raise FeedDecodeError(f"invalid aircraft list document: {exc}") from exc

        logger.info(
            "Fetched aircraft data: total=%s returned=%s filters=%s",
            aircraft_list.total_aircraft,
            len(aircraft_list.aircraft),
            len(self.filters.to_params()) + (1 if self.location.is_set else 0),
        )
        return aircraft_list


__all__ = [
    "AUTH_CHAIN",
    "AuthMethod",
    "FeedAuthError",
    "FeedClient",
    "FeedDecodeError",
    "FeedError",
    "FeedFilters",
    "FeedResponseError",
    "FeedSession",
    "FeedTransportError",
    "ObserverLocation",
    "SessionExpiredError",
]
