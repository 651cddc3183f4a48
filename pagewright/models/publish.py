from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel

from pagewright.errors import InvalidTransition
from pagewright.models.snapshot import Snapshot

PublishStatus = Literal["publishing", "live", "failed"]

TERMINAL_STATUSES = frozenset({"live", "failed"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PublishRecord(BaseModel):
    """Audit entry for a single publish attempt.

    A record starts in ``publishing`` and moves exactly once, to ``live`` or
    ``failed``.  Terminal records are never modified again; a new attempt
    always gets a new record.
    """

    id: str
    tenant_id: str
    project_id: str
    status: PublishStatus = "publishing"
    base_url: str
    artifact_root: str
    error_message: Optional[str] = None
    snapshot: Optional[Snapshot] = None
    snapshot_signature: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def with_snapshot(self, snapshot: Snapshot, signature: str) -> "PublishRecord":
        if self.is_terminal:
            raise InvalidTransition(f"Publish {self.id} is already {self.status}")
        return self.model_copy(
            update={"snapshot": snapshot, "snapshot_signature": signature, "updated_at": utcnow()}
        )

    def transition(self, status: PublishStatus, error_message: Optional[str] = None) -> "PublishRecord":
        """Return a copy of this record moved to the terminal *status*."""
        if self.is_terminal:
            raise InvalidTransition(f"Publish {self.id} is already {self.status}")
        if status not in TERMINAL_STATUSES:
            raise InvalidTransition(f"Cannot move publish {self.id} to {status}")

        if status == "live":
            error_message = None
        elif not error_message:
            error_message = "Publish failed"

        return self.model_copy(
            update={"status": status, "error_message": error_message, "updated_at": utcnow()}
        )
