"""Chat robot message payloads.

Only the markdown message type is supported. The robot renders a subset
of markdown:

    # heading (levels 1-6)
    > quote
    **bold** *italic*
    [link](http://example.com)
    ![](http://example.com/pic.jpg)
    - unordered item
    1. ordered item
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class AtDirective(BaseModel):
    """Who to mention: specific mobile numbers, or everyone in the group."""

    at_mobiles: List[str] = Field(default_factory=list)
    is_at_all: bool = False

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.at_mobiles:
            payload["atMobiles"] = list(self.at_mobiles)
        if self.is_at_all:
            payload["isAtAll"] = True
        return payload


class MarkdownMessage(BaseModel):
    """Markdown message with an optional mention directive.

    Empty title/text and an empty mention list are left out of the payload,
    but the "at" object itself is always sent.
    """

    msgtype: Literal["markdown"] = "markdown"
    title: str = ""
    text: str = ""
    at: Optional[AtDirective] = None

    def to_payload(self) -> Dict[str, Any]:
        markdown: Dict[str, Any] = {}
        if self.title:
            markdown["title"] = self.title
        if self.text:
            markdown["text"] = self.text
        return {
            "msgtype": self.msgtype,
            "markdown": markdown,
            "at": self.at.to_payload() if self.at else {},
        }


# Tagged union of the message types the robot accepts
ChatMessage = MarkdownMessage
