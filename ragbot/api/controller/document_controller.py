"""HTTP controller for uploaded documents."""

import logging
from typing import Optional

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse

from ragbot.ingestion.exceptions import (
    DocumentTooLargeError,
    ExtractionError,
    UnsupportedTypeError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


@router.post("/upload")
async def upload_document(request: Request, file: Optional[UploadFile] = File(None)):
    """Ingest one uploaded file (multipart field ``file``)."""
    if file is None or not file.filename:
        return JSONResponse(status_code=400, content={"error": "No file uploaded"})

    pipeline = request.app.state.container.ingestion
    max_bytes = request.app.state.container.config.ingestion.max_upload_bytes

    # Read at most one byte past the limit
    file_bytes = await file.read(max_bytes + 1)

    try:
        summary = await pipeline.ingest(file_bytes, file.filename, file.content_type)
    except DocumentTooLargeError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        return JSONResponse(status_code=413, content={"error": "File too large"})
    except (UnsupportedTypeError, ExtractionError) as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})

    return {
        "success": True,
        "message": "File uploaded successfully",
        "document": summary.to_dict(),
    }


@router.get("/documents")
async def list_documents(request: Request):
    catalog = request.app.state.container.catalog
    return {"documents": [summary.to_dict() for summary in catalog.list()]}


@router.delete("/documents/{document_id}")
async def delete_document(document_id: str, request: Request):
    deleted = await request.app.state.container.ingestion.delete(document_id)
    if not deleted:
        return JSONResponse(status_code=404, content={"error": "Document not found"})
    return {"message": "Document deleted successfully"}
