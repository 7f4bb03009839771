"""Presentation helpers for fitment results.

Turns a FitmentResult (and optional quote) into labeled rows and a
plain-text summary. Labels come from messages.json so copy changes need
no code change.
"""

from typing import Any

from ramp_fitment.core.enums import UnitSystem
from ramp_fitment.models.fitment import CalculatedValues, FitmentResult, RampRecommendation
from ramp_fitment.models.quote import QuoteBreakdown
from ramp_fitment.services.bed_length import get_category_display_info
from ramp_fitment.services.config_store import get_message
from ramp_fitment.utils.converters import (
    format_angle,
    format_currency,
    format_length,
    format_percent,
)


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def build_calculated_values_summary(
    values: CalculatedValues, unit_system: UnitSystem = UnitSystem.IMPERIAL
) -> list[dict[str, str]]:
    """Labeled display rows for the calculated values, skipping unknowns."""
    rows = [
        ("usableBedLength", format_length(values.usable_bed_length, unit_system)),
        ("tonneauPenalty", format_length(values.tonneau_penalty, unit_system)),
    ]
    if values.bed_category is not None:
        info = get_category_display_info(values.bed_category)
        rows.append(("bedCategory", f"{info['name']} ({info['range']})"))
    rows.append(
        ("tailgateCloseWithLoadPossible", _yes_no(values.tailgate_close_with_load_possible))
    )
    rows.append(
        ("exceedsBedExtensionThreshold", _yes_no(values.exceeds_bed_extension_threshold))
    )
    if values.loading_angle is not None:
        rows.append(("loadingAngle", format_angle(values.loading_angle)))
    return [
        {"key": key, "label": get_message(f"labels.{key}"), "value": value}
        for key, value in rows
    ]


def build_failure_display(result: FitmentResult) -> dict[str, Any] | None:
    if result.success or result.failure is None:
        return None
    failure = result.failure
    return {
        "kind": failure.kind.value,
        "title": failure.message,
        "details": failure.details,
        "suggestion": failure.suggestion,
    }


def _recommendation_lines(label: str, rec: RampRecommendation) -> list[str]:
    lines = [f"{label}: {rec.name} ({format_currency(rec.price)})"]
    for req in rec.required_accessories:
        lines.append(f"  + {req.name} ({format_currency(req.price)}) - {req.reason}")
    lines.append(f"  Total with required accessories: {format_currency(rec.total_with_required)}")
    lines.extend(f"  - {reason}" for reason in rec.reasons)
    lines.extend(f"  ! {warning}" for warning in rec.warnings)
    return lines


def build_plain_text_summary(
    result: FitmentResult, quote: QuoteBreakdown | None = None
) -> str:
    """Human-readable summary suitable for email or a support ticket."""
    lines: list[str] = []
    failure = build_failure_display(result)
    if failure is not None:
        lines.append(failure["title"])
        if failure["details"]:
            lines.append(failure["details"])
        lines.append(failure["suggestion"])
    else:
        if result.primary_recommendation:
            lines.extend(_recommendation_lines("Recommended", result.primary_recommendation))
        if result.alternative_recommendation:
            lines.extend(_recommendation_lines("Alternative", result.alternative_recommendation))

    lines.append("")
    for row in build_calculated_values_summary(result.calculated_values):
        lines.append(f"{row['label']}: {row['value']}")
    if result.angle_warning:
        lines.append(result.angle_warning)
    lines.extend(result.tonneau_notes)

    if quote is not None:
        lines.append("")
        for item in quote.line_items:
            lines.append(f"{item.quantity} x {item.name}: {format_currency(item.total, quote.currency)}")
        lines.append(f"Subtotal: {format_currency(quote.subtotal, quote.currency)}")
        if quote.discount:
            lines.append(
                f"Bulk discount ({quote.discount_percent:g}%): -{format_currency(quote.discount, quote.currency)}"
            )
        lines.append(
            f"Tax ({format_percent(quote.tax_rate)}): {format_currency(quote.tax, quote.currency)}"
        )
        lines.append(
            f"Processing fee ({format_percent(quote.processing_fee_rate)}): "
            f"{format_currency(quote.processing_fee, quote.currency)}"
        )
        shipping = "Free" if quote.free_shipping else format_currency(quote.shipping, quote.currency)
        lines.append(f"Shipping: {shipping}")
        lines.append(f"Total: {format_currency(quote.total, quote.currency)}")

    lines.append(f"Reference: {result.input_hash}")
    return "\n".join(lines)
