"""
Domain-specific exceptions for the reminders app.

Per-user failures are collected into the batch report as
``PartialBatchFailure`` values; the batch itself never raises them.
"""


class RemindersServiceError(Exception):
    """Base exception for all reminders service errors."""
    pass


class PartialBatchFailure(RemindersServiceError):
    """
    One user's reminder could not be completed.

    Attributes:
        user_id: Affected user (None when the whole fetch failed)
        stage: ``fetch``, ``reminder``, ``notification`` or ``push``
        error: Human-readable cause
    """

    def __init__(self, *, user_id, stage, error):
        self.user_id = user_id
        self.stage = stage
        self.error = error
        super().__init__(f"{stage} failed for user {user_id}: {error}")

    def to_dict(self):
        return {
            'user_id': str(self.user_id) if self.user_id else None,
            'stage': self.stage,
            'error': self.error,
        }
