from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from pagewright.models.publish import PublishRecord, PublishStatus


class PublishResponse(BaseModel):
    publish_id: str
    status: PublishStatus
    base_url: str
    error_message: Optional[str] = None
    snapshot_signature: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: PublishRecord) -> "PublishResponse":
        return cls(
            publish_id=record.id,
            status=record.status,
            base_url=record.base_url,
            error_message=record.error_message,
            snapshot_signature=record.snapshot_signature,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class PublishSummary(BaseModel):
    publish_id: str
    status: PublishStatus
    base_url: str
    created_at: datetime


class PublishListResponse(BaseModel):
    publishes: List[PublishSummary]


class UnpublishResponse(BaseModel):
    project_id: str
    latest_publish_id: Optional[str] = None
