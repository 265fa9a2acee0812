"""Repositories for batches, assets and comments over a StorageEngine."""
import logging
from typing import Dict, List, Optional, Union

from sqlalchemy import exc as sa_exc
from sqlalchemy import func, literal_column, select

from batchreview.db import StorageEngine
from batchreview.exceptions import (
    BatchReviewError,
    DuplicateKeyError,
    IntegrityError,
    NotFoundError,
    ValidationError,
)
from batchreview.models import Asset, AssetStatus, Batch, Comment, utcnow
from batchreview.schemas import AssetOut, BatchOut, CommentOut

logger = logging.getLogger(__name__)


def _translate_integrity_error(e: sa_exc.IntegrityError) -> BatchReviewError:
    """Map a SQLite constraint failure onto the package error kinds."""
    message = str(e.orig)
    if "UNIQUE" in message or "PRIMARY KEY" in message:
        return DuplicateKeyError(message)
    if "CHECK" in message:
        return ValidationError(message)
    return IntegrityError(message)


def _require_text(name: str, value: Optional[str]) -> None:
    if value is None or value == "":
        raise ValidationError(f"{name} is required")


def parse_status(status: Union[str, AssetStatus]) -> AssetStatus:
    """
    Coerce a status value to AssetStatus.

    Raises:
        ValidationError: If the value is not one of pending/approved/rejected
    """
    try:
        return AssetStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in AssetStatus)
        raise ValidationError(f"Invalid status {status!r}; expected one of: {allowed}")


class BatchRepository:
    def __init__(self, engine: StorageEngine):
        self.engine = engine

    def create_batch(self, batch_id: str) -> None:
        """Create a batch. Raises DuplicateKeyError if the id is taken."""
        try:
            with self.engine.transaction() as session:
                if session.get(Batch, batch_id) is not None:
                    raise DuplicateKeyError(f"Batch with id '{batch_id}' already exists.")
                session.add(Batch(id=batch_id, created_at=utcnow()))
        except sa_exc.IntegrityError as e:
            raise _translate_integrity_error(e) from e
        logger.info("Created batch %s", batch_id)

    def get_batch(self, batch_id: str) -> Optional[BatchOut]:
        with self.engine.session() as session:
            batch = session.get(Batch, batch_id)
            return BatchOut.model_validate(batch) if batch else None


class AssetRepository:
    def __init__(self, engine: StorageEngine):
        self.engine = engine

    def create_asset(self, asset_id: str, batch_id: str, filename: str, filepath: str) -> None:
        """
        Create a pending asset inside an existing batch.

        Raises:
            IntegrityError: If the batch does not exist
            DuplicateKeyError: If the asset id is taken
        """
        try:
            with self.engine.transaction() as session:
                if session.get(Batch, batch_id) is None:
                    raise IntegrityError(f"Batch with id '{batch_id}' does not exist.")
                if session.get(Asset, asset_id) is not None:
                    raise DuplicateKeyError(f"Asset with id '{asset_id}' already exists.")
                session.add(Asset(
                    id=asset_id,
                    batch_id=batch_id,
                    filename=filename,
                    filepath=filepath,
                    uploaded_at=utcnow(),
                    status=AssetStatus.PENDING.value,
                ))
        except sa_exc.IntegrityError as e:
            raise _translate_integrity_error(e) from e
        logger.info("Created asset %s in batch %s", asset_id, batch_id)

    def get_assets_by_batch(self, batch_id: str) -> List[AssetOut]:
        """Assets of a batch in upload order. Empty if the batch is unknown."""
        with self.engine.session() as session:
            result = session.execute(
                select(Asset)
                .where(Asset.batch_id == batch_id)
                .order_by(Asset.uploaded_at, literal_column("assets.rowid"))
            )
            return [AssetOut.model_validate(a) for a in result.scalars().all()]

    def get_asset(self, asset_id: str) -> Optional[AssetOut]:
        with self.engine.session() as session:
            asset = session.get(Asset, asset_id)
            return AssetOut.model_validate(asset) if asset else None

    def update_asset_status(self, asset_id: str, status: Union[str, AssetStatus]) -> AssetOut:
        """
        Set the review status of an asset. Setting the current value again succeeds.

        Returns:
            The asset as written by this update

        Raises:
            ValidationError: If status is not a known value
            NotFoundError: If the asset does not exist
        """
        new_status = parse_status(status)
        with self.engine.transaction() as session:
            asset = session.get(Asset, asset_id)
            if asset is None:
                raise NotFoundError(f"Asset with id '{asset_id}' not found.")
            previous = asset.status
            asset.status = new_status.value
            updated = AssetOut.model_validate(asset)
        logger.debug("Asset %s status %s -> %s", asset_id, previous, new_status.value)
        return updated

    def count_by_status(self, batch_id: str) -> Dict[AssetStatus, int]:
        """Number of assets in each status for a batch (zero-filled)."""
        rows = self.engine.query(
            select(Asset.status, func.count(Asset.id))
            .where(Asset.batch_id == batch_id)
            .group_by(Asset.status)
        )
        counts = {status: 0 for status in AssetStatus}
        for status, count in rows:
            counts[AssetStatus(status)] = count
        return counts


class CommentRepository:
    def __init__(self, engine: StorageEngine):
        self.engine = engine

    def create_comment(self, asset_id: str, author: str, content: str) -> CommentOut:
        """
        Attach a comment to an asset and return the stored row.

        The id comes from the insert itself, under the same lock as the
        flush, so no other write can interleave between insert and return.

        Raises:
            ValidationError: If author or content is empty
            IntegrityError: If the asset does not exist
        """
        _require_text("author", author)
        _require_text("content", content)
        try:
            with self.engine.transaction() as session:
                if session.get(Asset, asset_id) is None:
                    raise IntegrityError(f"Asset with id '{asset_id}' does not exist.")
                comment = Comment(
                    asset_id=asset_id,
                    author=author,
                    content=content,
                    created_at=utcnow(),
                )
                session.add(comment)
                session.flush()
                created = CommentOut.model_validate(comment)
        except sa_exc.IntegrityError as e:
            raise _translate_integrity_error(e) from e
        logger.info("Created comment %s on asset %s", created.id, asset_id)
        return created

    def get_comments_by_asset(self, asset_id: str) -> List[CommentOut]:
        """Comments of an asset, oldest first; same-instant comments in id order."""
        with self.engine.session() as session:
            result = session.execute(
                select(Comment)
                .where(Comment.asset_id == asset_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
            )
            return [CommentOut.model_validate(c) for c in result.scalars().all()]
