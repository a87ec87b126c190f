from storefront.core.database import Base
from storefront.models.store import Store
from storefront.models.campaign import Campaign
from storefront.models.campaign_product import CampaignProduct
from storefront.models.variant import Variant
from storefront.models.pending_checkout import PendingCheckout
from storefront.models.order import Order
from storefront.models.order_item import OrderItem

__all__ = [
    "Base",
    "Store",
    "Campaign",
    "CampaignProduct",
    "Variant",
    "PendingCheckout",
    "Order",
    "OrderItem",
]
