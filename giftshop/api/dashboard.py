from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from typing import Any, Dict, List, Optional
import logging

from giftshop.api.catalog import PRODUCT_TITLES
from giftshop.api.deps import get_auth_client, get_store
from giftshop.core.auth import User, get_session_token, require_user
from giftshop.core.errors import AuthProviderError
from giftshop.db.models import OrderStatus, ProductType
from giftshop.schemas import OrderRecord, OrderSummary, ProfileUpdate
from giftshop.services.auth_client import AuthClient
from giftshop.store.orders import OrderStore

logger = logging.getLogger(__name__)

router = APIRouter()

# (input_data key, label) rendered on the order detail page
DETAIL_FIELDS = {
    ProductType.SONG: [("recipientName", "Recipient's Name"), ("funFacts", "Fun Facts"),
                       ("occasion", "Occasion"), ("musicStyle", "Music Style")],
    ProductType.PORTRAIT: [("style", "Style"), ("photoUrl", "Photo")],
    ProductType.POETRY: [("subject", "Subject"), ("details", "Details"),
                         ("tone", "Tone"), ("style", "Style")],
    ProductType.BOOK: [("title", "Title"), ("premise", "Premise"),
                       ("style", "Illustration Style"), ("photoUrls", "Photos")],
}

STATUS_LABELS = {OrderStatus.PROCESSING: "In Progress", OrderStatus.COMPLETE: "Completed"}

def summarize(order: OrderRecord) -> OrderSummary:
    return OrderSummary(
        id=order.id,
        product_type=order.product_type,
        product_title=PRODUCT_TITLES[order.product_type],
        status=order.status,
        created_at=order.created_at,
        # only offered for download once complete
        output_url=order.output_url if order.status == OrderStatus.COMPLETE else None,
    )

def filter_orders(orders: List[OrderRecord], status: Optional[OrderStatus]) -> List[OrderRecord]:
    if status is None:
        return orders
    return [o for o in orders if o.status == status]

def render_detail(order: OrderRecord) -> Dict[str, Any]:
    data = order.input_data or {}
    details = [{"key": k, "label": label, "value": data.get(k)}
               for k, label in DETAIL_FIELDS[order.product_type] if data.get(k) not in (None, "", [])]
    return {
        "id": order.id,
        "product_type": order.product_type,
        "product_title": PRODUCT_TITLES[order.product_type],
        "status": order.status,
        "status_label": STATUS_LABELS[order.status],
        "created_at": order.created_at,
        "details": details,
        "shipping_address": order.shipping_address,
        "phone_number": order.phone_number,
        "output_url": order.output_url if order.status == OrderStatus.COMPLETE else None,
    }

@router.get("")
def dashboard(user: User = Depends(require_user), store: OrderStore = Depends(get_store)):
    orders = store.list_orders_by_owner(user.id)
    return {
        "greeting": f"Welcome back, {user.display_name}",
        "total": len(orders),
        "in_progress": len(filter_orders(orders, OrderStatus.PROCESSING)),
        "completed": len(filter_orders(orders, OrderStatus.COMPLETE)),
        "recent": [summarize(o) for o in orders[:5]],
    }

@router.get("/orders", response_model=List[OrderSummary])
def list_orders(status: Optional[OrderStatus] = Query(default=None),
                user: User = Depends(require_user), store: OrderStore = Depends(get_store)):
    return [summarize(o) for o in filter_orders(store.list_orders_by_owner(user.id), status)]

@router.get("/orders/{order_id}")
def order_detail(order_id: str, user: User = Depends(require_user), store: OrderStore = Depends(get_store)):
    order = store.get_order_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.owner_id != user.id:
        logger.info("User %s attempted to view order %s owned by someone else", user.id, order_id)
        return RedirectResponse("/dashboard/orders", status_code=303)
    return render_detail(order)

@router.get("/profile")
def profile(user: User = Depends(require_user)):
    return {"id": user.id, "email": user.email, "full_name": user.metadata.get("full_name"),
            "avatar_url": user.metadata.get("avatar_url")}

@router.post("/profile")
def update_profile(payload: ProfileUpdate, user: User = Depends(require_user),
                   token: Optional[str] = Depends(get_session_token),
                   auth: AuthClient = Depends(get_auth_client)):
    try:
        auth.update_user(token, {"data": {"full_name": payload.full_name}})
    except AuthProviderError as e:
        logger.error("Profile update failed for %s: %s", user.id, e)
        raise HTTPException(status_code=502 if e.status_code >= 500 else e.status_code, detail=str(e))
    return {"status": "ok", "full_name": payload.full_name}

@router.get("/settings")
def settings_page(user: User = Depends(require_user)):
    return {"email": user.email, "can_delete_account": True}

@router.post("/settings/delete-account")
def delete_account(user: User = Depends(require_user)):
    # placeholder: orders are kept and nothing is forwarded to the identity provider
    logger.info("Account deletion requested by %s", user.id)
    return {"status": "requested", "detail": "Account deletion has been requested. Your orders are kept."}
