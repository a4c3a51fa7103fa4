# auradhom/routers/orders.py
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from auradhom.core.auth import require_admin
from auradhom.core.config import get_settings
from auradhom.deps import get_backup_service, get_order_service
from auradhom.models.order import Order, OrderStatus
from auradhom.schemas.order import (
    CheckoutResponse,
    OrderCounts,
    OrderCreate,
    OrderFilters,
    OrderReject,
    ResyncResult,
    WhatsAppLink,
)
from auradhom.services.backup_service import BackupService
from auradhom.services.message_service import format_order_message, whatsapp_link
from auradhom.services.order_service import OrderService, generate_order_number

router = APIRouter(prefix="/orders", tags=["Orders"])


# -------- Storefront endpoints --------


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    payload: OrderCreate,
    service: OrderService = Depends(get_order_service),
):
    """
    Place an order.

    The response always carries the order. sync_pending=True means the
    order is placed but the durable store did not accept it yet.
    Invalid input is a 400; an already used order_number is a 409 with
    the existing order.
    """
    order_number = payload.order_number or generate_order_number()

    message = payload.outbound_message
    if message is None:
        subtotal = sum(item.line_total for item in payload.items)
        message = format_order_message(
            payload.customer,
            payload.items,
            subtotal,
            payload.shipping_cost,
            subtotal + payload.shipping_cost,
            order_number,
        )

    result = service.create_order(
        payload.customer,
        payload.items,
        message,
        shipping_cost=payload.shipping_cost,
        order_number=order_number,
    )
    return CheckoutResponse(
        order=result.order,
        sync_pending=result.sync_pending,
        warning=str(result.warning) if result.warning else None,
        whatsapp_url=whatsapp_link(
            get_settings().WHATSAPP_PHONE, result.order.outbound_message
        ),
    )


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[Order],
    dependencies=[Depends(require_admin)],
)
def list_orders(
    status_: OrderStatus | None = Query(default=None, alias="status"),
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    order_number: str | None = None,
    customer_name: str | None = None,
    service: OrderService = Depends(get_order_service),
):
    """
    Search orders (admin only). Filters combine with AND, newest first.
    """
    filters = OrderFilters(
        status=status_,
        date_from=date_from,
        date_to=date_to,
        order_number=order_number,
        customer_name=customer_name,
    )
    return service.filter_orders(filters)


@router.get(
    "/counts",
    response_model=OrderCounts,
    dependencies=[Depends(require_admin)],
)
def order_counts(service: OrderService = Depends(get_order_service)):
    return OrderCounts(**service.counts())


@router.get(
    "/export",
    dependencies=[Depends(require_admin)],
)
def export_orders(backup: BackupService = Depends(get_backup_service)):
    """
    Download every backed-up order as one JSON file, bucketed by status.
    """
    return JSONResponse(
        content=backup.export_all(),
        headers={
            "Content-Disposition": f'attachment; filename="{backup.export_filename()}"'
        },
    )


@router.post(
    "/resync",
    response_model=ResyncResult,
    dependencies=[Depends(require_admin)],
)
def resync_orders(service: OrderService = Depends(get_order_service)):
    """
    Push orders that were placed while the store was failing.
    """
    return ResyncResult(**service.resync_orders())


@router.post(
    "/refresh",
    response_model=OrderCounts,
    dependencies=[Depends(require_admin)],
)
def refresh_orders(service: OrderService = Depends(get_order_service)):
    """
    Reload the order views from the store.
    """
    service.refresh_from_store()
    return OrderCounts(**service.counts())


@router.get(
    "/{order_id}",
    response_model=Order,
    dependencies=[Depends(require_admin)],
)
def get_order(
    order_id: str,
    service: OrderService = Depends(get_order_service),
):
    order = service.get_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return order


@router.get(
    "/{order_id}/whatsapp-link",
    response_model=WhatsAppLink,
    dependencies=[Depends(require_admin)],
)
def order_whatsapp_link(
    order_id: str,
    service: OrderService = Depends(get_order_service),
):
    """
    Link that reopens the stored order summary in a chat with the customer.
    """
    order = service.get_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Order not found",
        )
    return WhatsAppLink(url=whatsapp_link(order.customer.phone, order.outbound_message))


@router.post(
    "/{order_id}/validate",
    response_model=Order,
)
def validate_order(
    order_id: str,
    actor: str = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """
    pending -> validated, recorded under the authenticated admin.
    """
    return service.validate_order(order_id, actor)


@router.post(
    "/{order_id}/reject",
    response_model=Order,
)
def reject_order(
    order_id: str,
    payload: OrderReject,
    actor: str = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
):
    """
    pending -> rejected with a mandatory reason.
    """
    return service.reject_order(order_id, actor, payload.reason)
