"""Campaign analytics, computed by iterating over order rows."""
from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from storefront.models.order import OrderStatus

# Orders that count as revenue
COUNTED_STATUSES = {OrderStatus.paid, OrderStatus.shipped}


def campaign_summary(campaign_id: str, orders: Iterable[Any]) -> dict:
    order_count = 0
    revenue = 0
    units_by_sku: Counter = Counter()
    for order in orders:
        if order.status not in COUNTED_STATUSES:
            continue
        order_count += 1
        revenue += order.total_cents
        for it in order.items:
            sku = it.variant.sku if it.variant else it.variant_id
            units_by_sku[sku] += it.quantity

    average = 0
    if order_count:
        average = int((Decimal(revenue) / order_count).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return {
        "campaign_id": campaign_id,
        "order_count": order_count,
        "revenue_cents": revenue,
        "units_sold": sum(units_by_sku.values()),
        "average_order_cents": average,
        "units_by_sku": dict(units_by_sku),
    }
