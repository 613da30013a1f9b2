"""
Platform-specific column vocabularies.

THIS FILE CONTAINS PLATFORM-SPECIFIC HARDCODED LABELS. Marketplaces
rename columns between export versions; when an import stops resolving a
field, add the new label here, most specific first.
"""

from enum import Enum

from reconciler.fields import LabelTable


class Platform(str, Enum):
    """Supported marketplaces. The value is what ledger keys store."""

    SHOPEE = "Shopee"
    TIKTOK = "Tiktok"

    @classmethod
    def parse(cls, raw: str) -> "Platform":
        """Accept "shopee", "TikTok", "tiktok shop" and the like."""
        text = str(raw).strip().lower().replace(" ", "")
        for platform in cls:
            if text.startswith(platform.value.lower()):
                return platform
        raise ValueError(f"Unknown platform: {raw!r}")


ORDER_ID_LABELS = ["Order ID", "Order Number", "Order No", "OrderID", "Order number"]
STATUS_LABELS = ["Status", "Order Status", "order status"]
PRODUCT_LABELS = ["Product Name", "Product", "Products"]
VARIATION_LABELS = ["Variation Name", "Variation", "Variant", "SKU Options"]
# "quanity" is misspelled in real exports
QUANTITY_LABELS = ["Quantity", "Qty", "quanity"]
DATE_LABELS = [
    "DATE",
    "Date",
    "delivered date / estimated payout date",
    "PAYOUT COMPLETED DATE",
]
BUYER_LABELS = ["Buyer Username", "buyer username", "Buyer Name", "Buyer"]


SHOPEE_LABELS = LabelTable(
    order_id=ORDER_ID_LABELS,
    status=STATUS_LABELS,
    product=PRODUCT_LABELS,
    variation=VARIATION_LABELS,
    quantity=QUANTITY_LABELS,
    date=DATE_LABELS,
    tax=["Tax"],
    item_price=["Item Price", "Price"],
    buyer=BUYER_LABELS,
    buyer_payment=["Total Buyer Payment"],
)

TIKTOK_LABELS = LabelTable(
    order_id=ORDER_ID_LABELS,
    status=STATUS_LABELS,
    product=PRODUCT_LABELS,
    variation=VARIATION_LABELS,
    quantity=QUANTITY_LABELS,
    # TikTok exports without a payout date only carry the creation time
    date=DATE_LABELS + ["Created Time"],
    tax=["Tax"],
    item_price=["Item Price", "Price"],
    buyer=BUYER_LABELS,
    buyer_payment=["Total Buyer Payment"],
)

PLATFORM_LABELS: dict[str, LabelTable] = {
    Platform.SHOPEE.value: SHOPEE_LABELS,
    Platform.TIKTOK.value: TIKTOK_LABELS,
}


def get_labels(platform: Platform | str) -> LabelTable:
    """Label table for a platform (enum or raw name)."""
    if not isinstance(platform, Platform):
        platform = Platform.parse(platform)
    return PLATFORM_LABELS[platform.value]
