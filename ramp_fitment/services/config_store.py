"""Engine configuration store.

Loads the five JSON configuration documents (engine settings, ramp models,
accessories, bed categories, messages), validates them into an immutable
``FitmentConfig`` handle, and caches it for the life of the process.

``reload_config()`` swaps the cached handle. It is not safe to call while
evaluations are in flight on other threads; callers that reload in a
multi-threaded host must serialize reloads against evaluations themselves.
"""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ramp_fitment.config import get_settings
from ramp_fitment.core.enums import (
    AccessoryCategory,
    AccessoryId,
    BedCategory,
    RampModelId,
)
from ramp_fitment.models.config import (
    Accessory,
    AccessoryCatalog,
    BedCategoryCatalog,
    BedCategoryConfig,
    EngineSettings,
    FitmentConfig,
    MessageCatalog,
    PricingConfig,
    QuickFlowOption,
    RampCatalog,
    RampModel,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent.parent / "data"

# document name -> (file, model)
CONFIG_DOCUMENTS: dict[str, tuple[str, type]] = {
    "engine_settings": ("engine-settings.json", EngineSettings),
    "ramp_models": ("ramp-models.json", RampCatalog),
    "accessories": ("accessories.json", AccessoryCatalog),
    "bed_categories": ("bed-categories.json", BedCategoryCatalog),
    "messages": ("messages.json", MessageCatalog),
}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class ConfigError(Exception):
    """Raised when a configuration document is missing or malformed."""

    def __init__(self, document: str, problem: str) -> None:
        self.document = document
        self.problem = problem
        super().__init__(f"{document}: {problem}")


# =============================================================================
# Loading
# =============================================================================


def _read_document(path: Path) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(path.name, "file not found") from None
    except json.JSONDecodeError as e:
        raise ConfigError(path.name, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(path.name, "top-level value must be an object")
    return data


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def load_config(config_dir: Path | str | None = None) -> FitmentConfig:
    """Load and validate every configuration document from a directory.

    Does not touch the process-wide cache. Raises ``ConfigError`` naming the
    offending document on the first problem found.
    """
    directory = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    parsed: dict[str, Any] = {}
    for key, (filename, model) in CONFIG_DOCUMENTS.items():
        raw = _read_document(directory / filename)
        try:
            parsed[key] = model.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(filename, _format_validation_error(e)) from e

    try:
        config = FitmentConfig(**parsed, source=str(directory))
    except ValidationError as e:
        raise ConfigError("bed-categories.json", _format_validation_error(e)) from e

    logger.info(
        "Loaded fitment config version=%s from %s",
        config.engine_settings.version,
        directory,
    )
    return config


@lru_cache(maxsize=1)
def get_config() -> FitmentConfig:
    """Return the cached configuration handle, loading it on first use."""
    return load_config(get_settings().config_dir)


def reload_config() -> FitmentConfig:
    """Drop the cached handle and load a fresh one.

    The new documents are validated before the cache is cleared, so a bad
    edit raises ``ConfigError`` and leaves the current handle in place.
    """
    load_config(get_settings().config_dir)
    get_config.cache_clear()
    return get_config()


def validate_config(config: FitmentConfig | None = None) -> tuple[bool, list[str]]:
    """Sanity-check a loaded handle beyond what the schema enforces."""
    config = config or get_config()
    errors: list[str] = []

    if not get_active_ramp_models(config):
        errors.append("No active ramp models defined")
    for ramp_id in RampModelId:
        if not get_compatible_accessories(ramp_id, config):
            errors.append(f"Ramp model {ramp_id.value} has no compatible accessories")
    for path in ("errors.hardFailure.message", "errors.hardFailure.suggestion"):
        if get_message(path, config=config) == path:
            errors.append(f"Message template {path} is missing")

    return (len(errors) == 0, errors)


# =============================================================================
# Lookups
# =============================================================================


def get_engine_settings(config: FitmentConfig | None = None) -> EngineSettings:
    return (config or get_config()).engine_settings


def get_ramp_model(
    ramp_id: RampModelId, config: FitmentConfig | None = None
) -> RampModel:
    return (config or get_config()).ramp_models.models[ramp_id]


def get_active_ramp_models(config: FitmentConfig | None = None) -> list[RampModel]:
    models = (config or get_config()).ramp_models.models
    return [m for m in models.values() if m.active]


def get_accessory(
    accessory_id: AccessoryId | str, config: FitmentConfig | None = None
) -> Accessory | None:
    """Look up an accessory; unknown ids return None."""
    if not isinstance(accessory_id, AccessoryId):
        accessory_id = AccessoryId.from_string(accessory_id)
        if accessory_id is None:
            return None
    return (config or get_config()).accessories.accessories.get(accessory_id)


def get_all_accessories(config: FitmentConfig | None = None) -> list[Accessory]:
    return list((config or get_config()).accessories.accessories.values())


def get_compatible_accessories(
    ramp_id: RampModelId, config: FitmentConfig | None = None
) -> list[Accessory]:
    config = config or get_config()
    entry = config.accessories.compatibility_matrix.get(ramp_id)
    if entry is None:
        return []
    return [config.accessories.accessories[a] for a in entry.compatible]


def is_accessory_compatible(
    accessory_id: AccessoryId, ramp_id: RampModelId, config: FitmentConfig | None = None
) -> bool:
    entry = (config or get_config()).accessories.compatibility_matrix.get(ramp_id)
    return entry is not None and accessory_id in entry.compatible


def get_optional_catalog_items(
    ramp_id: RampModelId, config: FitmentConfig | None = None
) -> list[Accessory]:
    return [
        a
        for a in get_compatible_accessories(ramp_id, config)
        if a.category == AccessoryCategory.OPTIONAL
    ]


def get_bed_category(
    category: BedCategory, config: FitmentConfig | None = None
) -> BedCategoryConfig:
    return (config or get_config()).bed_categories.categories[category]


def get_quick_flow_bed_options(
    config: FitmentConfig | None = None,
) -> list[QuickFlowOption]:
    return list((config or get_config()).bed_categories.quick_flow_options)


def get_pricing_config(config: FitmentConfig | None = None) -> PricingConfig:
    return (config or get_config()).engine_settings.pricing


def get_bulk_discount(quantity: int, config: FitmentConfig | None = None) -> float:
    """Discount percent for the highest tier whose minimum quantity is met."""
    tiers = (config or get_config()).engine_settings.bulk_discounts
    for tier in sorted(tiers, key=lambda t: t.min_quantity, reverse=True):
        if quantity >= tier.min_quantity:
            return tier.discount_percent
    return 0.0


# =============================================================================
# Messages
# =============================================================================


def get_message(
    path: str, config: FitmentConfig | None = None, **replacements: Any
) -> str:
    """Look up a message template by dotted path and fill ``{name}`` placeholders.

    Args:
        path: Dotted path into messages.json, e.g. ``"warnings.tonneau.hinged"``
        config: Handle to read from (defaults to the cached one)
        **replacements: Values substituted for matching placeholders

    Returns:
        The rendered message, or ``path`` itself when no template exists there

    Examples:
        >>> get_message("warnings.tonneau.rollsIntoBed", penalty=10)
        'Roll-up covers that roll into the bed take up about 10" of usable bed length'
        >>> get_message("no.such.message")
        'no.such.message'
    """
    current: Any = (config or get_config()).messages.model_dump()
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return path
    if not isinstance(current, str):
        return path
    return render_message(current, **replacements)


def render_message(template: str, **replacements: Any) -> str:
    """Substitute ``{name}`` placeholders; unknown placeholders are left as-is."""

    def _sub(match: re.Match) -> str:
        key = match.group(1)
        return str(replacements[key]) if key in replacements else match.group(0)

    return _PLACEHOLDER.sub(_sub, template)
