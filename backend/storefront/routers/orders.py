import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.core.deps import get_db, get_notifier
from storefront.models.campaign import Campaign
from storefront.models.order import Order, OrderStatus
from storefront.schemas.order import (
    OrderItemResponse,
    OrderNotesUpdate,
    OrderResponse,
    OrderStatusUpdate,
)
from storefront.services.email import EmailNotifier

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_order(db: Session, order_id: str) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _order_to_response(order: Order) -> OrderResponse:
    items = []
    for it in order.items:
        variant = it.variant
        items.append(
            OrderItemResponse(
                id=it.id,
                variant_id=it.variant_id,
                sku=variant.sku if variant else None,
                option_combo=variant.option_combo if variant else {},
                customization_value=it.customization_value,
                quantity=it.quantity,
                unit_price_cents=it.unit_price_cents,
                total_price_cents=it.total_price_cents,
            )
        )
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        campaign_id=order.campaign_id,
        customer_email=order.customer_email,
        customer_name=order.customer_name,
        customer_phone=order.customer_phone,
        subtotal_cents=order.subtotal_cents,
        tax_cents=order.tax_cents,
        total_cents=order.total_cents,
        status=order.status,
        notes=order.notes,
        items=items,
        created_at=order.created_at,
    )


@router.get("", response_model=list[OrderResponse])
def list_orders(
    store_id: Optional[str] = Query(None),
    campaign_id: Optional[str] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    search: Optional[str] = Query(None, description="Matches customer email, name or order number"),
    db: Session = Depends(get_db),
):
    """List orders, newest first, with optional filters."""
    q = db.query(Order)
    if store_id:
        q = q.join(Campaign, Order.campaign_id == Campaign.id).filter(Campaign.store_id == store_id)
    if campaign_id:
        q = q.filter(Order.campaign_id == campaign_id)
    if status:
        q = q.filter(Order.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Order.customer_email.ilike(pattern),
                Order.customer_name.ilike(pattern),
                Order.order_number.ilike(pattern),
            )
        )
    orders = q.order_by(Order.created_at.desc(), Order.order_number).all()
    return [_order_to_response(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return _order_to_response(_get_order(db, order_id))


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
):
    """Fulfillment status change. Marking shipped emails the customer."""
    order = _get_order(db, order_id)
    if body.status == OrderStatus.refunded:
        raise HTTPException(status_code=400, detail="Refunds are recorded from the payment processor")
    if order.status == OrderStatus.refunded:
        raise HTTPException(status_code=400, detail="Order has been refunded")
    was_shipped = order.status == OrderStatus.shipped
    order.status = body.status
    db.commit()
    db.refresh(order)

    if body.status == OrderStatus.shipped and not was_shipped:
        sent = notifier.send(
            order.customer_email,
            "order_shipped",
            {"order_number": order.order_number, "customer_name": order.customer_name},
        )
        if not sent:
            logger.warning("Shipping email not sent for order %s", order.order_number)
    return _order_to_response(order)


@router.patch("/{order_id}/notes", response_model=OrderResponse)
def update_order_notes(order_id: str, body: OrderNotesUpdate, db: Session = Depends(get_db)):
    order = _get_order(db, order_id)
    order.notes = body.notes
    db.commit()
    db.refresh(order)
    return _order_to_response(order)
