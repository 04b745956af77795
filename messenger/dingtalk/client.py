"""DingTalk open API client: access tokens and user lookup by login code."""

from typing import Any, Dict, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from messenger.exceptions import AuthError, InvalidCredentialError, MessageError
from messenger.logging import get_logger
from messenger.logging.context import log_context

from .models import AccessToken, Credential, PlatformEnvelope, UserDetail, UserInfo
from .token_cache import AccessTokenCache
from .urls import DingTalkURLBuilder

logger = get_logger(__name__, component="dingtalk")

DEFAULT_TIMEOUT_SECONDS = 3
USER_DETAIL_LANGUAGE = "zh_CN"

ModelT = TypeVar("ModelT", bound=BaseModel)


class DingTalkClient:
    """Client for the authenticated DingTalk open API endpoints.

    Every authenticated call takes its token from the injected cache and
    fetches a fresh one on a miss. Failures of any kind (transport, decode,
    platform errcode) raise a MessageError subclass; nothing is retried.

    Attributes:
        credential: Application credential, fixed for the client's lifetime
        token_cache: Cache shared with any other client of the same process
        urls: Builder for endpoint URLs
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        credential: Credential,
        token_cache: AccessTokenCache,
        url_builder: Optional[DingTalkURLBuilder] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.credential = credential
        self.token_cache = token_cache
        self.urls = url_builder or DingTalkURLBuilder()
        self.timeout = timeout
        # An injected session belongs to the caller and is never closed here
        self._owns_session = session is None
        self._session = session or requests.Session()

    def close(self) -> None:
        """Close the HTTP session if this instance created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def fetch_access_token(self) -> AccessToken:
        """Exchange the credential for a new access token and cache it.

        Returns:
            The token as issued by the platform

        Raises:
            InvalidCredentialError: If app key or secret is empty (no request is made)
            AuthError: If the platform rejects the credential
            MessageError: On transport or decode failure
        """
        if not self.credential.is_complete():
            raise InvalidCredentialError()

        with log_context(app_key=self.credential.app_key):
            url = self.urls.access_token_url(self.credential.app_key, self.credential.app_secret)
            # The URL carries the secret, so log the endpoint name only
            envelope = self._call("GET", url, endpoint="gettoken")
            token = self._parse(AccessToken, envelope.payload, endpoint="gettoken")
            self.token_cache.put(self.credential.app_key, token.access_token)

            logger.info(
                "Fetched DingTalk access token",
                extra={"event": "dingtalk.token.fetched", "expires_in": token.expires_in},
            )
            return token

    def get_cached_token(self) -> str:
        """Return a valid access token, fetching one on a cache miss.

        An empty cached value counts as a miss.

        Raises:
            MessageError: If a fetch was needed and failed
        """
        cached = self.token_cache.get(self.credential.app_key)
        if cached:
            logger.debug(
                "Access token served from cache",
                extra={"event": "dingtalk.token.cache_hit", "app_key": self.credential.app_key},
            )
            return cached
        return self.fetch_access_token().access_token

    def resolve_user_info(self, temp_code: str) -> UserInfo:
        """Resolve a one-time login code to basic user identity.

        Args:
            temp_code: Code handed to the callback URL after login

        Raises:
            MessageError: If the token, the request or the lookup fails
        """
        access_token = self.get_cached_token()
        with log_context(app_key=self.credential.app_key):
            envelope = self._call(
                "POST",
                self.urls.user_info_by_code_url(access_token),
                endpoint="user.getuserinfo",
                json_body={"code": temp_code},
            )
            info = self._parse(UserInfo, envelope.payload.get("result"), endpoint="user.getuserinfo")
            logger.info(
                "Resolved user info from temp code",
                extra={"event": "dingtalk.user_info.resolved", "userid": info.userid},
            )
            return info

    def resolve_user_detail(self, temp_code: str) -> UserDetail:
        """Resolve a one-time login code to the full user profile.

        Runs token -> user info -> user detail in sequence; a failed user
        info lookup stops the chain before the detail request is sent.

        Raises:
            MessageError: If any step fails
        """
        access_token = self.get_cached_token()
        info = self.resolve_user_info(temp_code)

        with log_context(app_key=self.credential.app_key, userid=info.userid):
            envelope = self._call(
                "POST",
                self.urls.user_detail_url(access_token),
                endpoint="user.get",
                json_body={"userid": info.userid, "language": USER_DETAIL_LANGUAGE},
            )
            detail = self._parse(UserDetail, envelope.payload.get("result"), endpoint="user.get")
            logger.info(
                "Resolved user detail",
                extra={"event": "dingtalk.user_detail.resolved"},
            )
            return detail

    def login_url(self, state: str, callback_url: str) -> str:
        """Login URL for this application; see DingTalkURLBuilder.login_url."""
        return self.urls.login_url(self.credential.app_key, state, callback_url)

    def workbench_link(self, target_url: str) -> str:
        """Workbench deep link for this application's corp and agent."""
        return self.urls.workbench_link(
            self.credential.corp_id, self.credential.agent_id, target_url
        )

    def slide_link(self, target_url: str) -> str:
        return self.urls.slide_link(target_url)

    def _call(
        self,
        method: str,
        url: str,
        endpoint: str,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> PlatformEnvelope:
        """Send one request and decode the errcode/errmsg envelope.

        Raises:
            MessageError: On transport error or a body that is not a JSON object
            AuthError: On a non-zero errcode
        """
        logger.debug(
            f"HTTP {method} {endpoint}",
            extra={
                "event": "dingtalk.request.started",
                "endpoint": endpoint,
                "method": method,
                "timeout": self.timeout,
            },
        )

        try:
            response = self._session.request(method, url, json=json_body, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(
                f"DingTalk request to {endpoint} failed: {type(e).__name__}",
                extra={
                    "event": "dingtalk.request.failed",
                    "endpoint": endpoint,
                    "error_type": type(e).__name__,
                },
            )
            raise MessageError(f"DingTalk request to {endpoint} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(
                f"Failed to decode DingTalk response from {endpoint}",
                extra={
                    "event": "dingtalk.response.undecodable",
                    "endpoint": endpoint,
                    "status_code": response.status_code,
                },
            )
            raise MessageError("failed to decode DingTalk API response") from e

        if not isinstance(body, dict):
            raise MessageError("failed to decode DingTalk API response")

        try:
            envelope = PlatformEnvelope.from_body(body)
        except ValidationError as e:
            raise MessageError("failed to decode DingTalk API response") from e

        if not envelope.ok:
            logger.warning(
                f"DingTalk {endpoint} returned errcode {envelope.errcode}",
                extra={
                    "event": "dingtalk.request.rejected",
                    "endpoint": endpoint,
                    "errcode": envelope.errcode,
                    "errmsg": envelope.errmsg,
                },
            )
            raise AuthError(envelope.errmsg)

        return envelope

    @staticmethod
    def _parse(model: Type[ModelT], data: Any, endpoint: str) -> ModelT:
        if not isinstance(data, dict):
            raise MessageError(f"DingTalk {endpoint} response has no result object")
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MessageError(f"Unexpected DingTalk {endpoint} response: {e}") from e
