"""Data models for the DingTalk open API.

Response models ignore unknown fields and default missing ones, since the
platform adds fields over time and omits empty ones.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """Application credential registered on the DingTalk open platform.

    agent_id and corp_id are only needed to build workbench deep links.
    """

    model_config = ConfigDict(frozen=True)

    app_key: str = Field("", description="AppKey of the internal application")
    app_secret: str = Field("", repr=False, description="AppSecret of the application")
    agent_id: str = Field("", description="AgentId, used for workbench links")
    corp_id: str = Field("", description="CorpId, used for workbench links")

    def is_complete(self) -> bool:
        """True when both key and secret are non-empty."""
        return bool(self.app_key) and bool(self.app_secret)


class PlatformEnvelope(BaseModel):
    """Decoded response wrapper shared by every open API call.

    errcode and errmsg sit at the top level of each response; everything
    else is kept in payload for the caller to validate.
    """

    errcode: int = 0
    errmsg: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.errcode == 0

    @classmethod
    def from_body(cls, body: Dict[str, Any]) -> "PlatformEnvelope":
        payload = {k: v for k, v in body.items() if k not in ("errcode", "errmsg")}
        return cls(
            errcode=body.get("errcode", 0),
            errmsg=body.get("errmsg") or "",
            payload=payload,
        )


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AccessToken(_Response):
    """Access token issued by /gettoken."""

    access_token: str = Field(..., min_length=1)
    expires_in: int = 0


class UserInfo(_Response):
    """Basic identity resolved from a temp login code."""

    userid: str = ""
    unionid: str = ""
    associated_unionid: str = ""
    device_id: str = ""
    sys_level: int = 0
    name: str = ""
    sys: bool = False


class UserDetail(_Response):
    """Full user profile resolved from a userid."""

    userid: str = ""
    unionid: str = ""
    email: str = ""
    mobile: str = ""
    name: str = ""
    active: bool = False
    remark: str = ""
