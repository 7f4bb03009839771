from typing import Optional

from ramp_fitment.models.base import CamelModel


class QuoteLineItem(CamelModel):
    sku: str
    name: str
    quantity: int
    unit_price: float
    total: float
    required: bool = True


class QuoteBreakdown(CamelModel):
    line_items: list[QuoteLineItem]
    quantity: int
    subtotal: float
    discount_percent: float
    discount: float
    subtotal_after_discount: float
    tax_rate: float
    tax: float
    processing_fee_rate: float
    processing_fee: float
    shipping: float
    free_shipping: bool
    total: float
    currency: str = "USD"
    notes: Optional[list[str]] = None
