"""Group chat robot (webhook) notifications."""

from .models import AtDirective, ChatMessage, MarkdownMessage
from .notifier import DingTalkRobot

__all__ = ["DingTalkRobot", "ChatMessage", "MarkdownMessage", "AtDirective"]
