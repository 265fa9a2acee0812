"""Review status state machine for assets."""
import logging
from typing import Union

from batchreview.models import AssetStatus
from batchreview.repositories import AssetRepository, parse_status
from batchreview.schemas import AssetOut, ReviewSummary

logger = logging.getLogger(__name__)


class ReviewWorkflow:
    """
    Transitions an asset between pending, approved and rejected.

    Every state is reachable from every other state; approved and rejected
    are final only in the sense that reviewers usually stop there. Counts and
    notifications are derived by callers from the current set of assets.
    """

    def __init__(self, assets: AssetRepository):
        self.assets = assets

    def set_status(self, asset_id: str, target: Union[str, AssetStatus]) -> AssetOut:
        """
        Move an asset to the target status and return it as written.

        Raises:
            ValidationError: If target is not a known status
            NotFoundError: If the asset does not exist
        """
        target_status = parse_status(target)
        asset = self.assets.update_asset_status(asset_id, target_status)
        logger.info("Asset %s marked %s", asset_id, target_status.value)
        return asset

    def approve(self, asset_id: str) -> AssetOut:
        return self.set_status(asset_id, AssetStatus.APPROVED)

    def reject(self, asset_id: str) -> AssetOut:
        return self.set_status(asset_id, AssetStatus.REJECTED)

    def reset(self, asset_id: str) -> AssetOut:
        return self.set_status(asset_id, AssetStatus.PENDING)

    def summarize(self, batch_id: str) -> ReviewSummary:
        """Review progress of a batch. All zero for an unknown or empty batch."""
        counts = self.assets.count_by_status(batch_id)
        return ReviewSummary(
            batch_id=batch_id,
            total=sum(counts.values()),
            pending=counts[AssetStatus.PENDING],
            approved=counts[AssetStatus.APPROVED],
            rejected=counts[AssetStatus.REJECTED],
        )
