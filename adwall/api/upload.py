# FILE: adwall/api/upload.py

from fastapi import APIRouter, File, UploadFile
from fastapi.concurrency import run_in_threadpool

from adwall.services import upload_service

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post("")
async def upload_file(file: UploadFile = File(...)):
    return await run_in_threadpool(
        upload_service.save_upload,
        file.file,
        file.filename or "",
        file.content_type,
    )


@router.get("")
async def list_files():
    return {"files": upload_service.list_uploads()}


@router.delete("/{filename}")
async def delete_file(filename: str):
    upload_service.delete_upload(filename)
    return {"message": "File deleted"}
