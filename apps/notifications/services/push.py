"""
Expo push gateway client.

Push messages mirror in-app notifications to the recipient's device. They
are fire-and-forget: ``push_to_user`` logs and swallows gateway failures so
the in-app notification stands on its own.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from uuid import UUID

import requests
import structlog
from django.conf import settings

from apps.accounts.services import get_push_token, UserNotFoundError

from .exceptions import PushDeliveryError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PushMessage:
    to: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)
    badge: Optional[int] = None
    sound: str = 'default'
    priority: str = 'high'

    def to_dict(self) -> Dict[str, Any]:
        message = {
            'to': self.to,
            'sound': self.sound,
            'title': self.title,
            'body': self.body,
            'data': self.data,
            'priority': self.priority,
        }
        if self.badge is not None:
            message['badge'] = self.badge
        return message


class ExpoPushGateway:
    """Send push messages through the Expo push API."""

    def __init__(self, *, url, timeout, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests

    @classmethod
    def from_settings(cls):
        return cls(url=settings.PUSH_GATEWAY_URL, timeout=settings.PUSH_GATEWAY_TIMEOUT)

    def send(self, message: PushMessage) -> Dict[str, Any]:
        """
        Send one message and return the gateway ticket.

        Raises:
            PushDeliveryError: On network failure, HTTP error or an error ticket
        """
        try:
            response = self.session.post(
                self.url,
                json=message.to_dict(),
                headers={
                    'Accept': 'application/json',
                    'Accept-Encoding': 'gzip, deflate',
                    'Content-Type': 'application/json',
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise PushDeliveryError(f"Push gateway request failed: {e}") from e

        data = body.get('data') if isinstance(body, dict) else None
        ticket = data[0] if isinstance(data, list) and data else data
        if not isinstance(ticket, dict) or ticket.get('status') != 'ok':
            raise PushDeliveryError(f"Push gateway rejected message: {ticket}")

        return ticket


def push_to_user(
    *,
    user_id: UUID,
    title: str,
    body: str,
    data: Optional[Dict[str, Any]] = None,
    badge: Optional[int] = None,
    gateway: Optional[ExpoPushGateway] = None,
) -> bool:
    """
    Mirror a notification to the user's device if they registered a token.

    Returns:
        True if the gateway accepted the message, False otherwise
    """
    try:
        token = get_push_token(user_id=user_id)
    except UserNotFoundError:
        return False
    if not token:
        return False

    gateway = gateway or ExpoPushGateway.from_settings()
    try:
        gateway.send(PushMessage(to=token, title=title, body=body, data=data or {}, badge=badge))
    except PushDeliveryError as e:
        logger.warning('push_delivery_failed', user_id=str(user_id), error=str(e))
        return False

    logger.info('push_sent', user_id=str(user_id), type=(data or {}).get('type'))
    return True
