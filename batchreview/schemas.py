"""Pydantic schemas for repository results and request/response validation."""
from datetime import datetime
from pydantic import BaseModel
from typing import List

from batchreview.models import AssetStatus


class BatchOut(BaseModel):
    """Batch output schema."""
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class AssetOut(BaseModel):
    """Asset output schema."""
    id: str
    batch_id: str
    filename: str
    filepath: str
    uploaded_at: datetime
    status: AssetStatus

    class Config:
        from_attributes = True


class CommentOut(BaseModel):
    """Comment output schema."""
    id: int
    asset_id: str
    author: str
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class BatchDetailOut(BatchOut):
    """Batch with all of its assets."""
    assets: List[AssetOut]


class AssetDetailOut(AssetOut):
    """Asset with its comments, oldest first."""
    comments: List[CommentOut]


class UploadedAsset(BaseModel):
    """One stored file of an upload."""
    id: str
    filename: str
    filepath: str


class UploadResponse(BaseModel):
    """Upload endpoint response."""
    batch_id: str
    assets: List[UploadedAsset]
    review_url: str


class StatusUpdate(BaseModel):
    """Status change request. Validated against AssetStatus by the workflow."""
    status: str


class StatusUpdateResponse(BaseModel):
    """Status change response."""
    success: bool = True
    status: AssetStatus


class CommentCreate(BaseModel):
    """Comment creation request."""
    author: str
    content: str


class ReviewSummary(BaseModel):
    """Per-batch review progress."""
    batch_id: str
    total: int
    pending: int
    approved: int
    rejected: int
