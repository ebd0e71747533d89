"""Conversion API endpoints.

This module provides the FastAPI router for PDF upload, conversion and
download of converted files.

Endpoints:
- POST /convert: Upload a batch of PDFs and convert them
- GET /download/{filename}: Download a converted file
- GET /storage/stats: Temporary storage statistics
"""

import asyncio
import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import FileResponse

from pdf_word_converter.config import DOCX_CONTENT_TYPE
from pdf_word_converter.services.conversion_service import (
    BatchConverter,
    UploadValidator,
)
from pdf_word_converter.services.temp_storage_service import TempStorageService
from pdf_word_converter.web.schemas import (
    ConvertResponse,
    ErrorResponse,
    StorageStatsResponse,
    storage_stats_from_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_temp_storage(request: Request) -> TempStorageService:
    return request.app.state.storage


def get_batch_converter(request: Request) -> BatchConverter:
    return request.app.state.batch_converter


def get_upload_validator(request: Request) -> UploadValidator:
    return request.app.state.validator


def _measure(upload: UploadFile) -> int:
    """Get an upload's size, falling back to seeking its spool file."""
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


@router.post(
    "/convert",
    response_model=ConvertResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def convert_files(
    files: Optional[List[UploadFile]] = File(None, description="PDF files to convert"),
    storage: TempStorageService = Depends(get_temp_storage),
    batch_converter: BatchConverter = Depends(get_batch_converter),
    validator: UploadValidator = Depends(get_upload_validator),
):
    """
    Upload PDFs and convert them.

    This endpoint:
    1. Rejects the whole batch if it is empty or any part is not a PDF
       within the size limit
    2. Saves every part to the uploads area
    3. Converts each file in upload order; a failing file is reported
       inline and does not stop the rest
    4. Returns one result per uploaded file
    """
    files = files or []
    validator.validate_batch([
        (f.filename, f.content_type, _measure(f)) for f in files
    ])

    uploads = []
    try:
        for f in files:
            await f.seek(0)
            uploads.append(await asyncio.to_thread(
                storage.save_upload, f.filename, f.file, f.content_type
            ))
    except Exception:
        logger.error(f"Saving uploads failed after {len(uploads)} of {len(files)} files")
        for upload in uploads:
            storage.remove_file(upload.path)
        raise

    # In-flight conversions are not cancelled if the client goes away
    results = await asyncio.shield(batch_converter.convert_batch(uploads))
    return ConvertResponse(results=results)


@router.get(
    "/download/{filename}",
    response_class=FileResponse,
    responses={404: {"model": ErrorResponse}},
)
async def download_file(
    filename: str,
    name: Optional[str] = None,
    storage: TempStorageService = Depends(get_temp_storage),
):
    """
    Download a converted file by its generated name.

    The optional ``name`` query parameter is suggested as the save name;
    otherwise the generated name is used.
    """
    path = storage.get_converted_file(filename)
    return FileResponse(
        path,
        media_type=DOCX_CONTENT_TYPE,
        filename=name or filename,
    )


@router.get("/storage/stats", response_model=StorageStatsResponse)
async def storage_stats(storage: TempStorageService = Depends(get_temp_storage)):
    """Get temporary storage statistics."""
    return storage_stats_from_dict(storage.get_storage_stats())
