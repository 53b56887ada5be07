from typing import Optional
from fastapi import Depends
from sqlalchemy.orm import Session
from giftshop.core.config import Settings, get_settings
from giftshop.db.session import SessionLocal
from giftshop.services.auth_client import AuthClient
from giftshop.services.storage import MinioStorage, ObjectStorage, UploadService
from giftshop.store.orders import OrderStore

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()

def get_store(db: Session = Depends(get_db)) -> OrderStore:
    return OrderStore(db)

def get_storage(settings: Settings = Depends(get_settings)) -> Optional[ObjectStorage]:
    if not settings.S3_ENDPOINT:
        return None
    return MinioStorage(settings.S3_ENDPOINT, settings.S3_ACCESS_KEY, settings.S3_SECRET_KEY,
                        secure=settings.S3_SECURE, public_base=settings.S3_PUBLIC_BASE)

def get_upload_service(storage: Optional[ObjectStorage] = Depends(get_storage),
                       settings: Settings = Depends(get_settings)) -> UploadService:
    return UploadService(storage, settings.bucket_order, preview_mode=settings.PREVIEW_MODE)

def get_auth_client(settings: Settings = Depends(get_settings)) -> AuthClient:
    return AuthClient(settings.AUTH_BASE, settings.AUTH_API_KEY)
