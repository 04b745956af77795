"""Chat robot webhook notifier."""

from typing import Optional

import requests

from messenger.dingtalk.urls import DingTalkURLBuilder
from messenger.exceptions import MessageError
from messenger.logging import get_logger

from .models import ChatMessage

logger = get_logger(__name__, component="robot")


class DingTalkRobot:
    """Posts messages to a group chat robot identified by its access token.

    send() is fire-and-forget: only transport failures raise. The HTTP
    status and any errcode in the response body are not inspected, unlike
    the open API calls in DingTalkClient. No timeout is set on the request.
    """

    def __init__(
        self,
        access_token: str,
        url_builder: Optional[DingTalkURLBuilder] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.access_token = access_token
        self.urls = url_builder or DingTalkURLBuilder()
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

    def send(self, message: ChatMessage) -> None:
        """Send message to the robot webhook.

        Raises:
            MessageError: If the request could not be delivered
        """
        payload = message.to_payload()
        try:
            response = self._session.post(
                self.urls.robot_send_url(self.access_token),
                json=payload,
            )
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Robot message delivery failed: {type(e).__name__}",
                extra={"event": "robot.send.failed", "msgtype": message.msgtype},
            )
            raise MessageError(str(e)) from e

        response.close()
        logger.info(
            "Robot message sent",
            extra={
                "event": "robot.send.completed",
                "msgtype": message.msgtype,
                "status_code": response.status_code,
            },
        )
