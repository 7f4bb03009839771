"""Quote builder: turns a successful recommendation into a priced breakdown.

Money is rounded to cents at each step. Tax and the processing fee apply
to the discounted subtotal; shipping is a flat rate waived at the
free-shipping threshold.
"""

import logging

from ramp_fitment.core.enums import AccessoryId
from ramp_fitment.models.fitment import FitmentResult, RampRecommendation
from ramp_fitment.models.quote import QuoteBreakdown, QuoteLineItem
from ramp_fitment.services.accessories import filter_compatible_accessories
from ramp_fitment.services.config_store import (
    get_accessory,
    get_bulk_discount,
    get_pricing_config,
    get_ramp_model,
)

logger = logging.getLogger(__name__)


def _money(amount: float) -> float:
    return round(amount + 1e-9, 2)


def build_line_items(
    recommendation: RampRecommendation,
    quantity: int = 1,
    extras: list[AccessoryId | str] | None = None,
) -> list[QuoteLineItem]:
    """Ramp plus required accessories, then any compatible optional extras."""
    ramp = get_ramp_model(recommendation.ramp_id)
    items = [
        QuoteLineItem(
            sku=ramp.sku,
            name=ramp.name,
            quantity=quantity,
            unit_price=ramp.price,
            total=_money(ramp.price * quantity),
        )
    ]
    for req in recommendation.required_accessories:
        accessory = get_accessory(req.accessory_id)
        items.append(
            QuoteLineItem(
                sku=accessory.sku,
                name=req.name,
                quantity=quantity,
                unit_price=req.price,
                total=_money(req.price * quantity),
            )
        )

    required_ids = {r.accessory_id for r in recommendation.required_accessories}
    for extra_id in filter_compatible_accessories(extras or [], recommendation.ramp_id):
        if extra_id in required_ids:
            continue
        accessory = get_accessory(extra_id)
        items.append(
            QuoteLineItem(
                sku=accessory.sku,
                name=accessory.name,
                quantity=quantity,
                unit_price=accessory.price,
                total=_money(accessory.price * quantity),
                required=False,
            )
        )
    return items


def build_quote(
    result: FitmentResult,
    quantity: int = 1,
    extras: list[AccessoryId | str] | None = None,
) -> QuoteBreakdown | None:
    """Price the primary recommendation; None for a failed fitment."""
    if not result.success or result.primary_recommendation is None:
        return None
    if quantity < 1:
        raise ValueError("quantity must be at least 1")

    pricing = get_pricing_config()
    items = build_line_items(result.primary_recommendation, quantity, extras)

    subtotal = _money(sum(i.total for i in items))
    discount_percent = get_bulk_discount(quantity)
    discount = _money(subtotal * discount_percent / 100)
    discounted = _money(subtotal - discount)
    tax = _money(discounted * pricing.tax_rate)
    fee = _money(discounted * pricing.processing_fee_rate)
    free_shipping = discounted >= pricing.free_shipping_threshold
    shipping = 0.0 if free_shipping else pricing.shipping_cost

    quote = QuoteBreakdown(
        line_items=items,
        quantity=quantity,
        subtotal=subtotal,
        discount_percent=discount_percent,
        discount=discount,
        subtotal_after_discount=discounted,
        tax_rate=pricing.tax_rate,
        tax=tax,
        processing_fee_rate=pricing.processing_fee_rate,
        processing_fee=fee,
        shipping=shipping,
        free_shipping=free_shipping,
        total=_money(discounted + tax + fee + shipping),
        currency=pricing.currency,
    )
    logger.debug("Built quote %s total=%.2f", result.input_hash, quote.total)
    return quote
