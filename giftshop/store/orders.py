"""Order store: typed access to the ``orders`` table.

Everything leaving this module is an ``OrderRecord``. Rows and raw mappings
(snake_case from the database, camelCase from older clients) are funnelled
through ``normalize_order`` so no other layer sees either persisted shape.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from giftshop.core.errors import PersistenceError
from giftshop.db.models import Order, OrderStatus, ProductType, utcnow
from giftshop.schemas import OrderRecord

logger = logging.getLogger(__name__)

def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None:
            return v
    return default

def normalize_order(raw: Union[Order, Mapping[str, Any]]) -> OrderRecord:
    if isinstance(raw, Order):
        return OrderRecord(
            id=raw.id,
            owner_id=raw.user_id,
            product_type=raw.product_type,
            input_data=raw.input_data or {},
            shipping_address=raw.shipping_address,
            phone_number=raw.phone_number,
            status=raw.status or OrderStatus.PROCESSING,
            output_url=raw.output_url,
            created_at=raw.created_at,
        )
    return OrderRecord(
        id=str(raw["id"]),
        owner_id=str(_pick(raw, "owner_id", "user_id", "ownerId", "userId", default="")),
        product_type=_pick(raw, "product_type", "productType", default=ProductType.SONG),
        input_data=_pick(raw, "input_data", "inputData", default={}),
        shipping_address=_pick(raw, "shipping_address", "shippingAddress"),
        phone_number=_pick(raw, "phone_number", "phoneNumber"),
        status=_pick(raw, "status", default=OrderStatus.PROCESSING),
        output_url=_pick(raw, "output_url", "outputUrl"),
        created_at=_pick(raw, "created_at", "createdAt", default=utcnow()),
    )

class OrderStore:
    def __init__(self, db: Session):
        self.db = db

    def create_order(
        self,
        owner_id: str,
        product_type: ProductType,
        input_data: Dict[str, Any],
        shipping_address: Optional[Dict[str, Any]] = None,
        phone_number: Optional[str] = None,
    ) -> str:
        order = Order(
            user_id=owner_id,
            product_type=ProductType(product_type),
            input_data=input_data,
            shipping_address=shipping_address,
            phone_number=phone_number,
            status=OrderStatus.PROCESSING,
        )
        try:
            self.db.add(order); self.db.flush()
            order_id = order.id
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Error creating %s order for user %s", ProductType(product_type).value, owner_id)
            raise PersistenceError(str(e)) from e
        logger.info("Created order %s (%s) for user %s", order_id, ProductType(product_type).value, owner_id)
        return order_id

    def get_order_by_id(self, order_id: str) -> Optional[OrderRecord]:
        # no ownership check here, callers compare owner_id themselves
        try:
            obj = self.db.get(Order, order_id)
        except SQLAlchemyError:
            logger.exception("Error getting order %s", order_id)
            return None
        return normalize_order(obj) if obj else None

    def list_orders_by_owner(self, owner_id: str) -> List[OrderRecord]:
        stmt = (
            select(Order)
            .where(Order.user_id == owner_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return self._list(stmt)

    def list_all_orders(self, limit: int = 200) -> List[OrderRecord]:
        stmt = select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        return self._list(stmt)

    def _list(self, stmt) -> List[OrderRecord]:
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError:
            logger.exception("Error getting orders")
            return []
        return [normalize_order(r) for r in rows]
