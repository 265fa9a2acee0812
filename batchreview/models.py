"""SQLAlchemy models for batches, assets and comments."""
import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from batchreview.db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored by SQLite."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AssetStatus(str, enum.Enum):
    """Review status of an asset. Every transition between values is allowed."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Batch(Base):
    """A group of assets uploaded together, sharing one review link."""
    __tablename__ = "batches"

    id = Column(String, primary_key=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    assets = relationship("Asset", back_populates="batch")


class Asset(Base):
    """Asset model representing an uploaded image under review."""
    __tablename__ = "assets"

    id = Column(String, primary_key=True)
    batch_id = Column(String, ForeignKey("batches.id"), nullable=False, index=True)
    filename = Column(String, nullable=False)  # Original display name
    filepath = Column(String, nullable=False)  # Storage key, opaque here
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)
    status = Column(String, default=AssetStatus.PENDING.value, nullable=False)

    # Relationships
    batch = relationship("Batch", back_populates="assets")
    comments = relationship("Comment", back_populates="asset")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_assets_status",
        ),
    )


class Comment(Base):
    """Comment model: an authored note attached to an asset."""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(String, ForeignKey("assets.id"), nullable=False)
    author = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    asset = relationship("Asset", back_populates="comments")

    # Indexes
    __table_args__ = (
        Index("idx_comment_asset_created", "asset_id", "created_at", "id"),
        {"sqlite_autoincrement": True},
    )
