from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from typing import Any, Dict, List, Literal, Optional, Tuple, get_args, get_origin
import logging

from giftshop.api.catalog import PRODUCT_TITLES
from giftshop.api.deps import get_store, get_upload_service
from giftshop.core.auth import User, get_current_user
from giftshop.core.config import Settings, get_settings
from giftshop.core.errors import IntakeValidationError, PersistenceError
from giftshop.db.models import OrderStatus, ProductType
from giftshop.schemas import BookInput, PoetryInput, PortraitInput, SongInput, SubmitResponse
from giftshop.services.intake import (
    LIST_FIELDS, PHOTO_FIELDS, is_synthetic_order_id, submit_order, synthetic_product_type,
)
from giftshop.services.storage import UploadedFile, UploadService
from giftshop.store.orders import OrderStore

logger = logging.getLogger(__name__)

router = APIRouter()

INPUT_MODELS = {
    ProductType.SONG: SongInput,
    ProductType.PORTRAIT: PortraitInput,
    ProductType.POETRY: PoetryInput,
    ProductType.BOOK: BookInput,
}
OPTIONAL_EXTRAS = {ProductType.PORTRAIT: ["shippingAddress", "phoneNumber"]}

def _product_or_404(product_type: str) -> ProductType:
    try:
        return ProductType(product_type)
    except ValueError:
        raise HTTPException(status_code=404, detail="Product not found")

def form_descriptor(product_type: ProductType) -> Dict[str, Any]:
    fields = []
    for name, f in INPUT_MODELS[product_type].model_fields.items():
        entry: Dict[str, Any] = {"name": f.alias or name, "required": f.is_required()}
        if get_origin(f.annotation) is Literal:
            entry["choices"] = list(get_args(f.annotation))
        for m in f.metadata:
            if getattr(m, "min_length", None) is not None:
                entry["min_length"] = m.min_length
        fields.append(entry)
    for extra in OPTIONAL_EXTRAS.get(product_type, []):
        fields.append({"name": extra, "required": False})
    photo = PHOTO_FIELDS.get(product_type)
    return {
        "product_type": product_type,
        "title": PRODUCT_TITLES[product_type],
        "fields": fields,
        "file_field": photo[0] if photo else None,
    }

async def _read_submission(request: Request, max_bytes: int) -> Tuple[Dict[str, Any], Dict[str, List[UploadedFile]]]:
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise IntakeValidationError({"__all__": "Malformed JSON body."})
        if not isinstance(body, dict):
            raise IntakeValidationError({"__all__": "Expected a JSON object."})
        return body, {}

    form = await request.form()
    fields: Dict[str, Any] = {}
    files: Dict[str, List[UploadedFile]] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if value.size is not None and value.size > max_bytes:
                # left unread, check_image rejects it on size
                data, size = b"", value.size
            else:
                data = await value.read()
                size = len(data)
            files.setdefault(key, []).append(UploadedFile(
                name=value.filename or "", size_bytes=size,
                mime_type=value.content_type or "", data=data))
        elif key.startswith("shippingAddress."):
            fields.setdefault("shippingAddress", {})[key.split(".", 1)[1]] = value
        elif key in LIST_FIELDS:
            fields.setdefault(key, []).append(value)
        else:
            fields[key] = value
    return fields, files

@router.get("/create/{product_type}")
def get_form(product_type: str):
    return form_descriptor(_product_or_404(product_type))

@router.post("/create/{product_type}", response_model=SubmitResponse, status_code=201)
async def submit(product_type: str, request: Request,
                 user: Optional[User] = Depends(get_current_user),
                 store: OrderStore = Depends(get_store),
                 uploader: UploadService = Depends(get_upload_service),
                 settings: Settings = Depends(get_settings)):
    pt = _product_or_404(product_type)
    fields, files = await _read_submission(request, settings.MAX_UPLOAD_BYTES)
    try:
        result = await run_in_threadpool(
            submit_order, pt, fields, files,
            user=user, store=store, uploader=uploader, settings=settings,
        )
    except PersistenceError:
        logger.error("Order submission failed for %s (fallback disabled)", pt.value)
        raise HTTPException(status_code=503, detail="Your order could not be submitted. Please try again.")
    return SubmitResponse(order_id=result.order_id, persisted=result.persisted, redirect_to=result.redirect_to)

@router.get("/preview/{order_id}")
def preview(order_id: str, store: OrderStore = Depends(get_store)):
    if is_synthetic_order_id(order_id):
        pt, status, persisted = synthetic_product_type(order_id), OrderStatus.PROCESSING, False
    else:
        order = store.get_order_by_id(order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        pt, status, persisted = order.product_type, order.status, True
    title = PRODUCT_TITLES[pt]
    return {
        "order_id": order_id,
        "product_type": pt,
        "product_title": title,
        "status": status,
        "persisted": persisted,
        "next_steps": [
            f"Our agents are working with AI tooling to create your custom {title.lower()}.",
            "You'll receive an email when your order is ready.",
            "Track progress and download the result from your dashboard.",
        ],
    }
