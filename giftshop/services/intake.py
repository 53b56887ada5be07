"""Order intake: validate a product-specific submission, upload its photos,
create the order, and tell the caller where to go next.

A submission that passes validation always yields an order id. When there is
no session, or the store write fails, and ``PREVIEW_FALLBACK`` is on, the id is
a synthetic ``preview-<product>-<epoch-ms>`` that was never persisted.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from giftshop.core.auth import User
from giftshop.core.config import Settings
from giftshop.core.errors import IntakeValidationError, LoginRequired, PersistenceError
from giftshop.db.models import ProductType
from giftshop.schemas import FIELD_MESSAGES, submission_adapter
from giftshop.services.storage import UploadedFile, UploadService
from giftshop.store.orders import OrderStore

logger = logging.getLogger(__name__)

SYNTHETIC_PREFIX = "preview-"

# form key for uploaded files -> input_data key receiving their URLs
PHOTO_FIELDS = {
    ProductType.PORTRAIT: ("photo", "photoUrl"),
    ProductType.BOOK: ("photos", "photoUrls"),
}
LIST_FIELDS = {"photoUrls"}
OUTSIDE_INPUT = {"shippingAddress": "shipping_address", "phoneNumber": "phone_number"}

@dataclass
class IntakeResult:
    order_id: str
    persisted: bool

    @property
    def redirect_to(self) -> str:
        return f"/preview/{self.order_id}"

def synthetic_order_id(product_type: ProductType) -> str:
    return f"{SYNTHETIC_PREFIX}{ProductType(product_type).value}-{int(time.time() * 1000)}"

def is_synthetic_order_id(order_id: str) -> bool:
    return order_id.startswith(SYNTHETIC_PREFIX)

def synthetic_product_type(order_id: str) -> ProductType:
    for pt in ProductType:
        if order_id.startswith(f"{SYNTHETIC_PREFIX}{pt.value}-"):
            return pt
    return ProductType.SONG

def check_image(file: UploadedFile, max_bytes: int) -> Optional[str]:
    """Caller-side upload precondition. Returns an error message or None."""
    if not (file.mime_type or "").startswith("image/"):
        return "Please upload an image file."
    if file.size_bytes > max_bytes:
        return f"Please upload an image smaller than {max_bytes // (1024 * 1024)}MB."
    return None

def validate_submission(product_type: ProductType, fields: Mapping[str, Any]):
    """Single dispatch point: the product_type tag selects the schema."""
    raw: Dict[str, Any] = {"product_type": ProductType(product_type).value, "input_data": {}}
    for k, v in fields.items():
        if k in OUTSIDE_INPUT:
            if v not in (None, "", {}):
                raw[OUTSIDE_INPUT[k]] = v
        else:
            raw["input_data"][k] = v
    try:
        return submission_adapter.validate_python(raw)
    except ValidationError as e:
        raise IntakeValidationError(_field_errors(e)) from e

def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = [p for p in err["loc"] if isinstance(p, str)]
        name = None
        if "input_data" in loc and loc.index("input_data") + 1 < len(loc):
            name = loc[loc.index("input_data") + 1]
        elif "shipping_address" in loc:
            name = "shippingAddress"
        elif "phone_number" in loc:
            name = "phoneNumber"
        if name is None:
            name = "__all__"
        errors.setdefault(name, FIELD_MESSAGES.get(name, err["msg"]))
    return errors

def submit_order(
    product_type: ProductType,
    fields: Mapping[str, Any],
    files: Optional[Mapping[str, List[UploadedFile]]],
    *,
    user: Optional[User],
    store: Optional[OrderStore],
    uploader: UploadService,
    settings: Settings,
) -> IntakeResult:
    product_type = ProductType(product_type)
    fields = dict(fields)
    files = files or {}
    photos: List[UploadedFile] = []
    target = None

    if product_type in PHOTO_FIELDS:
        file_key, target = PHOTO_FIELDS[product_type]
        photos = [f for f in files.get(file_key, []) if f.name]
        for f in photos:
            problem = check_image(f, settings.MAX_UPLOAD_BYTES)
            if problem:
                raise IntakeValidationError({target: problem})
        if photos:
            # validate everything else before anything leaves the process
            validate_submission(product_type, _with_photo_urls(fields, target, [f"upload:{f.name}" for f in photos]))

    if not photos:
        submission = validate_submission(product_type, fields)
    else:
        urls = [uploader.upload(f) for f in photos]
        submission = validate_submission(product_type, _with_photo_urls(fields, target, urls))

    input_data = submission.input_data.model_dump(by_alias=True)
    shipping = getattr(submission, "shipping_address", None)
    phone = getattr(submission, "phone_number", None)

    if settings.PREVIEW_MODE:
        logger.info("Preview mode, not persisting %s order", product_type.value)
        return IntakeResult(synthetic_order_id(product_type), persisted=False)

    if user is None:
        if not settings.PREVIEW_FALLBACK:
            raise LoginRequired(f"/create/{product_type.value}")
        logger.info("No user found, returning synthetic %s order id", product_type.value)
        return IntakeResult(synthetic_order_id(product_type), persisted=False)

    try:
        order_id = store.create_order(
            user.id, product_type, input_data,
            shipping_address=shipping.model_dump() if shipping else None,
            phone_number=phone,
        )
    except PersistenceError:
        if not settings.PREVIEW_FALLBACK:
            raise
        logger.warning("Order creation failed, returning synthetic %s order id", product_type.value)
        return IntakeResult(synthetic_order_id(product_type), persisted=False)
    return IntakeResult(order_id, persisted=True)

def _with_photo_urls(fields: Dict[str, Any], target: str, urls: List[str]) -> Dict[str, Any]:
    out = dict(fields)
    if target in LIST_FIELDS:
        existing = out.get(target) or []
        if isinstance(existing, str):
            existing = [existing]
        out[target] = list(existing) + urls
    else:
        out[target] = urls[0]
    return out
