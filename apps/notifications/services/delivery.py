"""
Notification delivery with a fixed three-tier fallback chain.

Tiers are tried strictly in order and the first success wins:

    1. primary:   HTTP call to the backend creation endpoint
                  (skipped when the runtime cannot reach the backend)
    2. secondary: privileged server-side procedure (create_notification_v2)
    3. tertiary:  direct insert under the caller's own credentials

Every tier reports a ``TierOutcome`` value instead of raising. Only the
last tier's failure becomes the visible ``DeliveryResult.error``, and
``NotificationDispatcher.deliver`` never raises, so a failed notification
cannot roll back the financial action that triggered it.

Example::

    from apps.notifications.services import NotificationPayload, get_dispatcher

    result = get_dispatcher().deliver(
        NotificationPayload(
            user_id=creator.id,
            type='split_paid',
            title='Payment Received',
            message='Alice paid their share for Dinner',
        ),
        actor=request.user,
    )
    if not result.succeeded:
        ...  # already logged; nothing to roll back
"""

import enum
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

import requests
import structlog
from django.conf import settings

from apps.accounts.models import User

from .exceptions import UnauthorizedNotificationWrite
from .procedures import create_notification_v2, insert_notification_as

logger = structlog.get_logger(__name__)

DEFAULT_BACKEND_URL = 'http://localhost:8082'
CREATE_ENDPOINT_PATH = '/api/notifications/create'
SERVICE_KEY_HEADER = 'X-Notifications-Key'


class ErrorKind(str, enum.Enum):
    UNREACHABLE = 'unreachable'
    BAD_RESPONSE = 'bad_response'
    UNAUTHORIZED = 'unauthorized'


class Tier(str, enum.Enum):
    PRIMARY = 'primary'
    SECONDARY = 'secondary'
    TERTIARY = 'tertiary'


@dataclass(frozen=True)
class NotificationPayload:
    """A notification to deliver to one user."""

    user_id: UUID
    type: str
    title: str
    message: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    split_event_id: Optional[UUID] = None
    friendship_id: Optional[UUID] = None

    def to_request_body(self) -> Dict[str, Any]:
        """JSON body for the creation endpoint."""
        return {
            'user_id': str(self.user_id),
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'metadata': self.metadata,
            'split_event_id': str(self.split_event_id) if self.split_event_id else None,
            'friendship_id': str(self.friendship_id) if self.friendship_id else None,
        }


@dataclass(frozen=True)
class TierOutcome:
    """Result of a single tier attempt."""

    tier: Tier
    succeeded: bool
    error: Optional[ErrorKind] = None
    detail: str = ''
    notification: Optional[Dict[str, Any]] = None
    skipped: bool = False


@dataclass(frozen=True)
class DeliveryResult:
    """Overall result of ``NotificationDispatcher.deliver``."""

    succeeded: bool
    tier: Optional[Tier]
    error: Optional[ErrorKind] = None
    notification: Optional[Dict[str, Any]] = None
    attempts: List[TierOutcome] = field(default_factory=list)


def resolve_backend_url(build_value: Optional[str], env: Mapping[str, str]) -> str:
    """
    Pick the backend base URL.

    Priority: build-time value, then the BACKEND_URL environment variable,
    then the development default. Trailing slashes are stripped.
    """
    for candidate in (build_value, env.get('BACKEND_URL')):
        if candidate and candidate.strip():
            return candidate.strip().rstrip('/')
    return DEFAULT_BACKEND_URL


class BackendEndpointTier:
    """
    Primary tier: POST the payload to the backend creation endpoint.

    Each request waits at most ``timeout`` seconds, or less when the
    dispatcher has less budget left.
    """

    tier = Tier.PRIMARY

    def __init__(self, *, base_url, reachable, timeout, service_key='', session=None):
        self.base_url = base_url.rstrip('/')
        self.reachable = reachable
        self.timeout = timeout
        self.service_key = service_key
        self.session = session or requests

    @property
    def endpoint(self):
        return f"{self.base_url}{CREATE_ENDPOINT_PATH}"

    def attempt(self, payload: NotificationPayload, *, actor=None, timeout=None) -> TierOutcome:
        if not self.reachable:
            return TierOutcome(
                tier=self.tier,
                succeeded=False,
                error=ErrorKind.UNREACHABLE,
                detail='backend not reachable from this runtime',
                skipped=True,
            )

        headers = {'Content-Type': 'application/json'}
        if self.service_key:
            headers[SERVICE_KEY_HEADER] = self.service_key

        try:
            response = self.session.post(
                self.endpoint,
                json=payload.to_request_body(),
                headers=headers,
                timeout=self.timeout if timeout is None else min(self.timeout, timeout),
            )
        except requests.RequestException as e:
            return TierOutcome(tier=self.tier, succeeded=False, error=ErrorKind.UNREACHABLE, detail=str(e))

        # An HTML body means we hit something that is not the API
        content_type = response.headers.get('Content-Type', '')
        if 'text/html' in content_type:
            return TierOutcome(
                tier=self.tier,
                succeeded=False,
                error=ErrorKind.BAD_RESPONSE,
                detail=f'unexpected content type {content_type}',
            )

        if response.status_code in (401, 403):
            return TierOutcome(
                tier=self.tier,
                succeeded=False,
                error=ErrorKind.UNAUTHORIZED,
                detail=f'HTTP {response.status_code}',
            )

        if not response.ok:
            return TierOutcome(
                tier=self.tier,
                succeeded=False,
                error=ErrorKind.BAD_RESPONSE,
                detail=f'HTTP {response.status_code}',
            )

        try:
            body = response.json()
        except ValueError:
            return TierOutcome(tier=self.tier, succeeded=False, error=ErrorKind.BAD_RESPONSE, detail='non-JSON body')

        if not isinstance(body, dict) or not body.get('success'):
            error = body.get('error', 'success=false') if isinstance(body, dict) else 'malformed body'
            return TierOutcome(tier=self.tier, succeeded=False, error=ErrorKind.BAD_RESPONSE, detail=str(error))

        return TierOutcome(tier=self.tier, succeeded=True, notification=body.get('notification'))


class RemoteProcedureTier:
    """Secondary tier: privileged server-side insert."""

    tier = Tier.SECONDARY

    def __init__(self, procedure=None):
        self.procedure = procedure

    def attempt(self, payload: NotificationPayload, *, actor=None, timeout=None) -> TierOutcome:
        procedure = self.procedure or create_notification_v2
        result = procedure(
            p_user_id=payload.user_id,
            p_type=payload.type,
            p_title=payload.title,
            p_message=payload.message,
            p_metadata=payload.metadata,
            p_split_event_id=payload.split_event_id,
            p_friendship_id=payload.friendship_id,
        )
        if not result.get('success'):
            return TierOutcome(
                tier=self.tier,
                succeeded=False,
                error=ErrorKind.BAD_RESPONSE,
                detail=str(result.get('error', 'procedure failed')),
            )
        return TierOutcome(tier=self.tier, succeeded=True, notification=result.get('notification'))


class DirectInsertTier:
    """Tertiary tier: insert with the caller's own credentials."""

    tier = Tier.TERTIARY

    def attempt(self, payload: NotificationPayload, *, actor=None, timeout=None) -> TierOutcome:
        from apps.notifications.serializers import NotificationSerializer

        try:
            notification = insert_notification_as(
                actor=actor,
                user_id=payload.user_id,
                type=payload.type,
                title=payload.title,
                message=payload.message,
                metadata=payload.metadata,
                split_event_id=payload.split_event_id,
                friendship_id=payload.friendship_id,
            )
        except UnauthorizedNotificationWrite as e:
            return TierOutcome(tier=self.tier, succeeded=False, error=ErrorKind.UNAUTHORIZED, detail=str(e))

        return TierOutcome(
            tier=self.tier,
            succeeded=True,
            notification=NotificationSerializer(notification).data,
        )


class NotificationDispatcher:
    """
    Deliver notifications through an ordered list of tiers.

    Args:
        tiers: Tier objects exposing ``tier`` and ``attempt(payload, actor=, timeout=)``
        total_timeout: Give-up budget in seconds across all tiers
        clock: Monotonic clock, injectable for tests
    """

    def __init__(self, tiers, *, total_timeout=5.0, clock=time.monotonic):
        self.tiers = list(tiers)
        self.total_timeout = total_timeout
        self.clock = clock

    @classmethod
    def from_settings(cls):
        backend = BackendEndpointTier(
            base_url=resolve_backend_url(settings.NOTIFICATIONS_BACKEND_URL, os.environ),
            reachable=settings.NOTIFICATIONS_BACKEND_REACHABLE,
            timeout=settings.NOTIFICATIONS_TIER_TIMEOUT,
            service_key=settings.NOTIFICATIONS_SERVICE_KEY,
        )
        return cls(
            [backend, RemoteProcedureTier(), DirectInsertTier()],
            total_timeout=settings.NOTIFICATIONS_TOTAL_TIMEOUT,
        )

    def deliver(self, payload: NotificationPayload, *, actor: Optional[User] = None) -> DeliveryResult:
        """
        Try each tier in order until one succeeds. Never raises.
        """
        deadline = self.clock() + self.total_timeout
        attempts: List[TierOutcome] = []

        for tier in self.tiers:
            remaining = deadline - self.clock()
            if remaining <= 0:
                logger.warning(
                    'notification_delivery_timed_out',
                    user_id=str(payload.user_id),
                    type=payload.type,
                    tier=tier.tier.value,
                )
                attempts.append(TierOutcome(
                    tier=tier.tier,
                    succeeded=False,
                    error=ErrorKind.UNREACHABLE,
                    detail='delivery budget exhausted',
                    skipped=True,
                ))
                break

            try:
                outcome = tier.attempt(payload, actor=actor, timeout=remaining)
            except Exception as e:
                logger.warning(
                    'notification_tier_crashed',
                    user_id=str(payload.user_id),
                    tier=tier.tier.value,
                    error=str(e),
                )
                outcome = TierOutcome(tier=tier.tier, succeeded=False, error=ErrorKind.BAD_RESPONSE, detail=str(e))

            attempts.append(outcome)

            if outcome.succeeded:
                logger.info(
                    'notification_delivered',
                    user_id=str(payload.user_id),
                    type=payload.type,
                    tier=outcome.tier.value,
                )
                return DeliveryResult(
                    succeeded=True,
                    tier=outcome.tier,
                    notification=outcome.notification,
                    attempts=attempts,
                )

            if not outcome.skipped:
                logger.info(
                    'notification_tier_failed',
                    user_id=str(payload.user_id),
                    tier=outcome.tier.value,
                    error=outcome.error.value if outcome.error else None,
                    detail=outcome.detail,
                )

        last = attempts[-1] if attempts else None
        logger.error(
            'notification_delivery_failed',
            user_id=str(payload.user_id),
            type=payload.type,
            error=last.error.value if last and last.error else None,
        )
        return DeliveryResult(
            succeeded=False,
            tier=last.tier if last else None,
            error=last.error if last else ErrorKind.UNREACHABLE,
            attempts=attempts,
        )


def get_dispatcher() -> NotificationDispatcher:
    """Build a dispatcher from the current settings."""
    return NotificationDispatcher.from_settings()
