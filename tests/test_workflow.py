"""Tests for the review status state machine."""
import pytest

from batchreview.exceptions import NotFoundError, ValidationError
from batchreview.models import AssetStatus


@pytest.fixture
def asset_id(batches, assets):
    batches.create_batch("b1")
    assets.create_asset("a1", "b1", "cat.png", "f1.png")
    return "a1"


@pytest.mark.parametrize("path", [
    ["approved", "rejected"],
    ["rejected", "approved"],
    ["approved", "pending"],
    ["rejected", "pending", "approved"],
])
def test_every_transition_is_allowed(workflow, asset_id, path):
    for target in path:
        asset = workflow.set_status(asset_id, target)
        assert asset.status == target


def test_helpers(workflow, asset_id):
    assert workflow.approve(asset_id).status is AssetStatus.APPROVED
    assert workflow.reject(asset_id).status is AssetStatus.REJECTED
    assert workflow.reset(asset_id).status is AssetStatus.PENDING


def test_repeat_transition_succeeds(workflow, asset_id):
    first = workflow.approve(asset_id)
    second = workflow.approve(asset_id)

    assert first == second


def test_unknown_target_rejected(workflow, asset_id, assets):
    with pytest.raises(ValidationError):
        workflow.set_status(asset_id, "archived")

    assert assets.get_asset(asset_id).status == "pending"


def test_missing_asset(workflow):
    with pytest.raises(NotFoundError):
        workflow.approve("ghost")


def test_transition_survives_restart(workflow, asset_id, reopen):
    from batchreview.repositories import AssetRepository

    workflow.reject(asset_id)

    assert AssetRepository(reopen()).get_asset(asset_id).status == "rejected"


def test_summarize_counts_statuses(workflow, batches, assets):
    batches.create_batch("b1")
    for n in range(4):
        assets.create_asset(f"a{n}", "b1", "x.png", f"{n}.png")
    workflow.approve("a0")
    workflow.approve("a1")
    workflow.reject("a2")

    summary = workflow.summarize("b1")

    assert summary.batch_id == "b1"
    assert (summary.total, summary.pending, summary.approved, summary.rejected) == (4, 1, 2, 1)


def test_summarize_unknown_batch_is_all_zero(workflow):
    summary = workflow.summarize("nope")

    assert (summary.total, summary.pending, summary.approved, summary.rejected) == (0, 0, 0, 0)
