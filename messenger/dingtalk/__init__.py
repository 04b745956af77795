"""DingTalk open API client, token cache and URL builders.

    from messenger.dingtalk import AccessTokenCache, Credential, DingTalkClient

    cache = AccessTokenCache()
    client = DingTalkClient(Credential(app_key="...", app_secret="..."), cache)
    detail = client.resolve_user_detail(temp_code)
"""

from .client import DingTalkClient
from .models import AccessToken, Credential, PlatformEnvelope, UserDetail, UserInfo
from .token_cache import AccessTokenCache, default_token_cache
from .urls import DingTalkURLBuilder

__all__ = [
    "DingTalkClient",
    "AccessTokenCache",
    "default_token_cache",
    "DingTalkURLBuilder",
    "Credential",
    "AccessToken",
    "PlatformEnvelope",
    "UserInfo",
    "UserDetail",
]
