"""API endpoints for uploading batches and reviewing assets."""
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from batchreview.db import StorageEngine, get_storage_engine
from batchreview.image_utils import is_allowed_image
from batchreview.repositories import AssetRepository, BatchRepository, CommentRepository
from batchreview.schemas import (
    AssetDetailOut, BatchDetailOut, CommentCreate, CommentOut, ReviewSummary,
    StatusUpdate, StatusUpdateResponse, UploadedAsset, UploadResponse
)
from batchreview.settings import settings
from batchreview.storage import StorageAdapter, get_storage_adapter, make_storage_key
from batchreview.workflow import ReviewWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.API_PREFIX)


def get_batch_repository(engine: StorageEngine = Depends(get_storage_engine)) -> BatchRepository:
    return BatchRepository(engine)


def get_asset_repository(engine: StorageEngine = Depends(get_storage_engine)) -> AssetRepository:
    return AssetRepository(engine)


def get_comment_repository(engine: StorageEngine = Depends(get_storage_engine)) -> CommentRepository:
    return CommentRepository(engine)


def get_review_workflow(assets: AssetRepository = Depends(get_asset_repository)) -> ReviewWorkflow:
    return ReviewWorkflow(assets)


@router.post("/upload", response_model=UploadResponse)
async def upload_images(
    images: List[UploadFile] = File(default=[]),
    batches: BatchRepository = Depends(get_batch_repository),
    assets: AssetRepository = Depends(get_asset_repository),
    storage: StorageAdapter = Depends(get_storage_adapter)
):
    """
    Upload images as a new batch and return its review link.

    Every file is validated before anything is stored, so a rejected
    upload leaves no batch behind. Repository calls run in the threadpool
    because each one flushes the database file.
    """
    if not images:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files uploaded"
        )
    if len(images) > settings.MAX_FILES_PER_UPLOAD:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.MAX_FILES_PER_UPLOAD} files per upload"
        )

    # Read and validate all files first
    payloads = []
    for image in images:
        data = await image.read()
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File size exceeds maximum of {settings.MAX_UPLOAD_BYTES} bytes"
            )
        filename = image.filename or "unknown"
        if not is_allowed_image(filename, data):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only image files are allowed"
            )
        payloads.append((filename, data))

    batch_id = str(uuid.uuid4())
    await run_in_threadpool(batches.create_batch, batch_id)

    uploaded = []
    for filename, data in payloads:
        filepath = await storage.save(make_storage_key(filename), data)
        asset_id = str(uuid.uuid4())
        await run_in_threadpool(assets.create_asset, asset_id, batch_id, filename, filepath)
        uploaded.append(UploadedAsset(id=asset_id, filename=filename, filepath=filepath))

    logger.info("Uploaded batch %s with %d assets", batch_id, len(uploaded))

    return UploadResponse(
        batch_id=batch_id,
        assets=uploaded,
        review_url=f"{settings.REVIEW_URL_PREFIX}/{batch_id}"
    )


@router.get("/batches/{batch_id}", response_model=BatchDetailOut)
def get_batch(
    batch_id: str,
    batches: BatchRepository = Depends(get_batch_repository),
    assets: AssetRepository = Depends(get_asset_repository)
):
    """Get batch by ID with all of its assets."""
    batch = batches.get_batch(batch_id)
    if batch is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found"
        )

    return BatchDetailOut(**batch.model_dump(), assets=assets.get_assets_by_batch(batch_id))


@router.get("/batches/{batch_id}/summary", response_model=ReviewSummary)
def get_batch_summary(
    batch_id: str,
    batches: BatchRepository = Depends(get_batch_repository),
    workflow: ReviewWorkflow = Depends(get_review_workflow)
):
    """Counts of pending, approved and rejected assets in a batch."""
    if batches.get_batch(batch_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found"
        )

    return workflow.summarize(batch_id)


@router.get("/assets/{asset_id}", response_model=AssetDetailOut)
def get_asset(
    asset_id: str,
    assets: AssetRepository = Depends(get_asset_repository),
    comments: CommentRepository = Depends(get_comment_repository)
):
    """Get asset by ID with its comments."""
    asset = assets.get_asset(asset_id)
    if asset is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Asset not found"
        )

    return AssetDetailOut(**asset.model_dump(), comments=comments.get_comments_by_asset(asset_id))


@router.post("/assets/{asset_id}/status", response_model=StatusUpdateResponse)
def update_asset_status(
    asset_id: str,
    request: StatusUpdate,
    workflow: ReviewWorkflow = Depends(get_review_workflow)
):
    """Approve, reject or reset an asset. Errors map to 400 (bad status) and 404."""
    asset = workflow.set_status(asset_id, request.status)
    return StatusUpdateResponse(status=asset.status)


@router.post("/assets/{asset_id}/comments", response_model=CommentOut)
def add_comment(
    asset_id: str,
    request: CommentCreate,
    comments: CommentRepository = Depends(get_comment_repository)
):
    """Add a comment to an asset. A missing asset is reported as 404."""
    return comments.create_comment(asset_id, request.author, request.content)
