import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.dependencies import get_trip_store
from app.auth import require_token
from trips.store import TripStore

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadResponse(BaseModel):
    """Result of ingesting a workbook."""

    message: str
    rows: int


@router.post("/upload", response_model=UploadResponse, dependencies=[Depends(require_token)])
async def upload_workbook(
    file: Optional[UploadFile] = File(default=None),
    store: TripStore = Depends(get_trip_store),
):
    """
    Replace the trip data with the uploaded workbook.

    Multipart form with one `file` field (.xlsx). The workbook must contain a
    "Trip Data" sheet; "Checked in User ID's" and "Customer Demographics" are
    optional and only add checkedInUserID / Age.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        content = await file.read()
        snapshot = await store.ingest(content, source=file.filename or "upload")
    except Exception as exc:
        logger.exception("upload error")
        return JSONResponse(status_code=500, content={"error": str(exc) or repr(exc)})

    return UploadResponse(message="File processed and embeddings created", rows=snapshot.row_count)
