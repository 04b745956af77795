"""DingTalk messenger: robot webhook, open API user lookup and SMTP mail.

Typical use:
    from messenger.dingtalk import AccessTokenCache, Credential, DingTalkClient
    client = DingTalkClient(Credential(app_key="...", app_secret="..."), AccessTokenCache())
    detail = client.resolve_user_detail(temp_code)
"""

from .exceptions import AuthError, InvalidCredentialError, MessageError

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "InvalidCredentialError",
    "MessageError",
    "__version__",
]
