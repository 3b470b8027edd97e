from fastapi import APIRouter, Depends, UploadFile, File
from fastapi.concurrency import run_in_threadpool
import logging

from pos_app.schemas.bill import CameraStatusResponse, ScanResponse
from pos_app.services.billing_session import (
    BillingSession,
    get_billing_session,
    line_to_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scanner", tags=["scanner"])


@router.post("/image", response_model=ScanResponse)
async def scan_image(
    file: UploadFile = File(...),
    session: BillingSession = Depends(get_billing_session),
):
    """Decode one barcode from an uploaded photo and add the product to the bill"""
    content = await file.read()
    logger.info(f"Image scan upload: {file.filename} ({len(content)} bytes, {file.content_type})")
    try:
        change = await run_in_threadpool(session.image_source.scan, content, file.content_type)
    finally:
        await file.close()
    return ScanResponse(
        action=change.action,
        line_index=change.line_index,
        item=line_to_response(change.line_index, change.item),
        bill=session.bill_response(),
    )


@router.get("/camera", response_model=CameraStatusResponse)
def camera_status(session: BillingSession = Depends(get_billing_session)):
    return session.camera_source.status()


@router.post("/camera/start", response_model=CameraStatusResponse)
def start_camera(session: BillingSession = Depends(get_billing_session)):
    """Start continuous scanning on the first available camera"""
    session.camera_source.start()
    return session.camera_source.status()


@router.post("/camera/stop", response_model=CameraStatusResponse)
def stop_camera(session: BillingSession = Depends(get_billing_session)):
    """Stop continuous scanning and release the camera"""
    session.camera_source.stop()
    return session.camera_source.status()
