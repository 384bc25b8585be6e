"""
Transport gateway: the credentialed HTTP client for the VlogSphere API.

Wraps a single ``httpx.AsyncClient`` whose default ``Authorization`` header
is the shared credential owned by the session manager. Network failures
are retried with exponential backoff; HTTP failures become GatewayError.
Every response is normalized into the models in ``transport.models``.
"""

import asyncio
import time
from typing import Any, Optional

import httpx

from vlogsphere.config import CONFIG
from vlogsphere.logger import get_logger
from vlogsphere.transport.errors import (
    NETWORK_ERROR_MESSAGE,
    GatewayError,
    error_for_status,
)
from vlogsphere.transport.models import (
    CredentialPair,
    LoginPayload,
    Profile,
    RegisterResponse,
    ToggleResponse,
)

logger = get_logger(__name__)

# (kind, activate) -> (method, path template)
RELATION_ENDPOINTS: dict[tuple[str, bool], tuple[str, str]] = {
    ("follow", True): ("POST", "/users/{id}/follow"),
    ("follow", False): ("DELETE", "/users/{id}/follow"),
    ("bookmark", True): ("POST", "/users/bookmarks/{id}"),
    ("bookmark", False): ("DELETE", "/users/bookmarks/{id}"),
    # The server toggles reactions itself; direction does not change the call.
    ("like", True): ("PUT", "/vlogs/{id}/like"),
    ("like", False): ("PUT", "/vlogs/{id}/like"),
    ("dislike", True): ("PUT", "/vlogs/{id}/dislike"),
    ("dislike", False): ("PUT", "/vlogs/{id}/dislike"),
}


def _first(*values: Any) -> Any:
    return next((v for v in values if v), None)


def _data(body: Any) -> dict:
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return {}


def _bearer(token: str) -> str:
    return f"Bearer {token}"


class TransportGateway:
    """
    Async client for the VlogSphere REST API.

    Args:
        base_url: API root, defaults to CONFIG.API_URL.
        timeout: Per-request timeout in seconds.
        max_retries: Retries for requests that got no response at all.
        backoff_seconds: Base delay; attempt n waits backoff * 2**n.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_retries = (
            CONFIG.MAX_NETWORK_RETRIES if max_retries is None else max_retries
        )
        self.backoff_seconds = (
            CONFIG.RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds
        )
        self._client = httpx.AsyncClient(
            base_url=base_url or CONFIG.API_URL,
            timeout=CONFIG.REQUEST_TIMEOUT if timeout is None else timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    # -- Default credential --------------------------------------------------

    def set_default_credential(self, access_credential: Optional[str]) -> None:
        """Apply (or remove) the bearer token sent with every later request."""
        if access_credential:
            self._client.headers["Authorization"] = _bearer(access_credential)
        else:
            self._client.headers.pop("Authorization", None)

    @property
    def default_credential(self) -> Optional[str]:
        header = self._client.headers.get("Authorization")
        if header and header.startswith("Bearer "):
            return header[len("Bearer ") :]
        return None

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- Auth endpoints ------------------------------------------------------

    async def login(self, identifier: str, secret: str) -> LoginPayload:
        body = await self._request(
            "POST", "/auth/login", json={"email": identifier, "password": secret}
        )
        data = _data(body)
        access = _first(body.get("token"), body.get("accessToken"), data.get("token"))
        renewal = _first(
            body.get("refreshToken"),
            body.get("refresh_token"),
            data.get("refreshToken"),
        )
        user = _first(body.get("user"), data.get("user"))

        if not access or not renewal or not isinstance(user, dict):
            raise GatewayError("Invalid login response", payload=body)

        return LoginPayload(
            credentials=CredentialPair(
                access_credential=access, renewal_credential=renewal
            ),
            profile=Profile.model_validate(user),
        )

    async def register(self, details: dict[str, Any]) -> RegisterResponse:
        response = await self._send("POST", "/auth/register", json=details)
        body = self._json(response)
        ok = bool(body.get("success")) or response.status_code == 201
        return RegisterResponse(ok=ok, message=body.get("message"))

    async def who_am_i(self, access_credential: str) -> Profile:
        body = await self._request(
            "GET",
            "/auth/me",
            headers={"Authorization": _bearer(access_credential)},
        )
        user = _first(body.get("user"), _data(body).get("user"))
        if not isinstance(user, dict):
            raise GatewayError("Invalid profile response", payload=body)
        return Profile.model_validate(user)

    async def refresh(self, renewal_credential: str) -> CredentialPair:
        body = await self._request(
            "POST", "/auth/refresh", json={"refreshToken": renewal_credential}
        )
        data = _data(body)
        access = _first(body.get("accessToken"), body.get("token"), data.get("token"))
        renewal = _first(
            body.get("refreshToken"),
            body.get("refresh_token"),
            data.get("refreshToken"),
        )
        if not access:
            raise GatewayError("Invalid refresh response", payload=body)

        return CredentialPair(
            access_credential=access,
            renewal_credential=renewal or renewal_credential,
        )

    async def logout(self, access_credential: Optional[str] = None) -> None:
        headers = {"Authorization": _bearer(access_credential)} if access_credential else None
        await self._request("POST", "/auth/logout", headers=headers)

    async def update_profile(self, patch: dict[str, Any]) -> Optional[Profile]:
        body = await self._request("PUT", "/auth/updatedetails", json=patch)
        user = _first(body.get("user"), _data(body).get("user"))
        return Profile.model_validate(user) if isinstance(user, dict) else None

    async def update_secret(self, current: str, new: str) -> None:
        await self._request(
            "PUT",
            "/auth/updatepassword",
            json={"currentPassword": current, "newPassword": new},
        )

    # -- Social graph --------------------------------------------------------

    async def toggle_relation(
        self, target_id: str, kind: str, activate: bool
    ) -> ToggleResponse:
        """
        Follow/unfollow, like, dislike or (un)bookmark a target.

        Args:
            target_id: User id (follow) or vlog id (everything else).
            kind: Toggle kind name.
            activate: True to add the relation, False to remove it.
        """
        try:
            method, template = RELATION_ENDPOINTS[(kind, activate)]
        except KeyError:
            raise GatewayError(f"Unsupported relation kind: {kind}") from None

        body = await self._request(method, template.format(id=target_id))
        return ToggleResponse(ok=True, updated_fields=_data(body))

    async def get_user(self, user_id: str) -> dict[str, Any]:
        body = await self._request("GET", f"/users/{user_id}")
        data = _data(body)
        return _first(body.get("user"), data.get("user"), data) or {}

    async def get_vlog(self, vlog_id: str) -> dict[str, Any]:
        body = await self._request("GET", f"/vlogs/{vlog_id}")
        data = _data(body)
        return _first(data.get("data"), data, body.get("vlog")) or {}

    # -- Internal ------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        return self._json(await self._send(method, path, **kwargs))

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        if method == "GET":
            params = {**(params or {}), "_t": int(time.time() * 1000)}

        attempt = 0
        while True:
            try:
                response = await self._client.request(
                    method, path, json=json, params=params, headers=headers
                )
                break
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    logger.warning(f"{method} {path} failed after {attempt + 1} attempts: {e}")
                    raise GatewayError(NETWORK_ERROR_MESSAGE) from e
                delay = self.backoff_seconds * (2**attempt)
                attempt += 1
                logger.debug(f"{method} {path} network error, retry {attempt} in {delay}s")
                await asyncio.sleep(delay)

        if response.status_code >= 400:
            error = error_for_status(response.status_code, self._json(response))
            logger.debug(f"{method} {path} -> {response.status_code}: {error.message}")
            raise error

        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"data": body}
