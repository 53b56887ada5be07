from fastapi import APIRouter, Depends, Query
from typing import List
from giftshop.api.deps import get_store
from giftshop.core.auth import User, require_admin
from giftshop.schemas import OrderRecord
from giftshop.store.orders import OrderStore

router = APIRouter()

@router.get("/orders", response_model=List[OrderRecord])
def all_orders(limit: int = Query(default=200, ge=1, le=1000),
               _: User = Depends(require_admin), store: OrderStore = Depends(get_store)):
    return store.list_all_orders(limit=limit)
