"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List

from .models import PLATFORM_TOKEN_LIFETIME_SECONDS

# Below this a token is refetched so often it may hit the gettoken rate limit
MIN_SENSIBLE_TOKEN_TTL = 60


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Return warnings for settings that are valid but probably wrong.

    Args:
        config_dict: Raw configuration dictionary as read from YAML

    Returns:
        List of warning messages (empty when nothing looks off)
    """
    messages = []

    dingtalk = config_dict.get("dingtalk") or {}
    if not isinstance(dingtalk, dict):
        return messages

    ttl = dingtalk.get("token_ttl")
    if isinstance(ttl, int) and not isinstance(ttl, bool):
        if ttl >= PLATFORM_TOKEN_LIFETIME_SECONDS:
            messages.append(
                f"token_ttl ({ttl}s) is not shorter than the platform token lifetime "
                f"({PLATFORM_TOKEN_LIFETIME_SECONDS}s); stale tokens may be served"
            )
        elif 0 < ttl < MIN_SENSIBLE_TOKEN_TTL:
            messages.append(
                f"Short token_ttl ({ttl}s) will refetch access tokens very often"
            )

    timeout = dingtalk.get("request_timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 10:
        messages.append(
            f"Long request_timeout ({timeout}s) delays login flows when DingTalk is slow"
        )

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message through the warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
