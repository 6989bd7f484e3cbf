from typing import List

from fastapi import APIRouter, Depends

from order_service.config.dependencies import get_current_user, get_order_service
from order_service.order.domain.models import Order
from order_service.order.domain.service import OrderService
from order_service.order.web.schemas import OrderRequest

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=List[Order])
async def get_all_orders(
    identity: str = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.list_orders(identity)


@router.post("", response_model=Order)
async def submit_order(
    order_request: OrderRequest,
    identity: str = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.submit_order(order_request.isbn, order_request.quantity, identity)
