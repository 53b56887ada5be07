from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool
from giftshop.core.config import Settings, get_settings
from giftshop.api.deps import get_upload_service
from giftshop.services.storage import UploadedFile, UploadService

router = APIRouter()

def _too_large(settings: Settings) -> HTTPException:
    limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
    return HTTPException(status_code=413, detail=f"File too large. Please upload an image smaller than {limit_mb}MB.")

@router.post("/uploads")
async def upload_image(file: UploadFile = File(...),
                       uploader: UploadService = Depends(get_upload_service),
                       settings: Settings = Depends(get_settings)):
    # checked here, before the upload service ever sees the file
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=422, detail="Invalid file type. Please upload an image file.")
    if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
        raise _too_large(settings)
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise _too_large(settings)
    f = UploadedFile(name=file.filename or "upload", size_bytes=len(content),
                     mime_type=file.content_type, data=content)
    url = await run_in_threadpool(uploader.upload, f)
    return {"url": url}
