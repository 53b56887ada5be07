from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, JSON, Index, Enum as SAEnum
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
import uuid
from giftshop.db.session import Base

class ProductType(str, Enum):
    SONG = "song"
    PORTRAIT = "portrait"
    POETRY = "poetry"
    BOOK = "book"

class OrderStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETE = "complete"

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def _enum_values(e):
    return [m.value for m in e]

class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (Index("ix_orders_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    product_type: Mapped[ProductType] = mapped_column(
        SAEnum(ProductType, name="product_type", values_callable=_enum_values), nullable=False)
    input_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    shipping_address: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name="order_status", values_callable=_enum_values), default=OrderStatus.PROCESSING)
    output_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(), default=utcnow)
