"""URL builders for the DingTalk open API and in-app deep links.

All query strings go through urlencode, so callback and target URLs that
contain reserved characters are escaped instead of corrupting the URL.
"""

from urllib.parse import urlencode

DEFAULT_API_BASE_URL = "https://oapi.dingtalk.com"
DEFAULT_CLIENT_BASE_URL = "dingtalk://dingtalkclient"


class DingTalkURLBuilder:
    """Builds every URL the messenger talks to or hands out.

    Attributes:
        api_base_url: Open API root, e.g. https://oapi.dingtalk.com
        client_base_url: Deep link root understood by the DingTalk client
    """

    def __init__(
        self,
        api_base_url: str = DEFAULT_API_BASE_URL,
        client_base_url: str = DEFAULT_CLIENT_BASE_URL,
    ) -> None:
        self.api_base_url = api_base_url.rstrip("/")
        self.client_base_url = client_base_url.rstrip("/")

    def _api(self, path: str, **params: str) -> str:
        return f"{self.api_base_url}{path}?{urlencode(params)}"

    def _client(self, path: str, **params: str) -> str:
        return f"{self.client_base_url}{path}?{urlencode(params)}"

    def access_token_url(self, app_key: str, app_secret: str) -> str:
        """GET endpoint that exchanges an app key/secret for an access token."""
        return self._api("/gettoken", appkey=app_key, appsecret=app_secret)

    def robot_send_url(self, access_token: str) -> str:
        """POST endpoint of a chat robot webhook."""
        return self._api("/robot/send", access_token=access_token)

    def user_info_by_code_url(self, access_token: str) -> str:
        """POST endpoint resolving a temp login code to basic user info."""
        return self._api("/topapi/v2/user/getuserinfo", access_token=access_token)

    def user_detail_url(self, access_token: str) -> str:
        """POST endpoint returning the full profile of a user id."""
        return self._api("/topapi/v2/user/get", access_token=access_token)

    def login_url(self, app_id: str, state: str, callback_url: str) -> str:
        """Browser login URL that redirects to callback_url with a temp code."""
        return self._api(
            "/connect/oauth2/sns_authorize",
            appid=app_id,
            response_type="code",
            scope="snsapi_auth",
            state=state,
            redirect_uri=callback_url,
            container_type="work_platform",
        )

    def workbench_link(self, corp_id: str, agent_id: str, target_url: str) -> str:
        """Deep link that opens target_url inside the DingTalk workbench."""
        return self._client(
            "/action/openapp",
            corpid=corp_id,
            container_type="work_platform",
            app_id=f"0_{agent_id}",
            redirect_type="jump",
            redirect_url=target_url,
        )

    def slide_link(self, target_url: str) -> str:
        """Deep link that opens target_url in the desktop side panel."""
        return self._client("/page/link", url=target_url, pc_slide="true")
