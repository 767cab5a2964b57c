"""Upgrade persisted project records to the current schema.

Records are plain dicts as read from a store. Each migration step takes a
record at version ``n`` and returns it at ``n + 1``; records written before
versioning existed are treated as version 1.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Tuple

from .colors import DEFAULT_BRAND_COLORS
from .models import CURRENT_SCHEMA_VERSION, ProjectState

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

LEGACY_SCHEMA_VERSION = 1


def migrate_brand_identity(brand: Record) -> Record:
    """Map a four-slot palette (primary/secondary/accent/background) onto eight slots.

    Brand identities that already carry ``primary1`` are returned unchanged.
    """
    colors = brand.get("colors") or {}
    if colors.get("primary1"):
        return brand

    accent = colors.get("accent")
    typography = brand.get("typography") or {}
    heading = typography.get("headingFont") or typography.get("heading_font")
    body = typography.get("bodyFont") or typography.get("body_font")

    migrated = dict(brand)
    migrated["colors"] = {
        "primary1": colors.get("primary") or DEFAULT_BRAND_COLORS["primary1"],
        "primary2": colors.get("secondary") or DEFAULT_BRAND_COLORS["primary2"],
        "accent1": accent or DEFAULT_BRAND_COLORS["accent1"],
        "accent2": accent or DEFAULT_BRAND_COLORS["accent2"],
        "neutral_white": DEFAULT_BRAND_COLORS["neutral_white"],
        "neutral_black": colors.get("background") or DEFAULT_BRAND_COLORS["neutral_black"],
        "neutral_gray": DEFAULT_BRAND_COLORS["neutral_gray"],
        "highlight_neon": accent or DEFAULT_BRAND_COLORS["highlight_neon"],
    }
    migrated["typography"] = {
        "heading_font": heading or "Inter",
        "body_font": body or heading or "Inter",
        "reasoning": typography.get("reasoning") or "",
    }
    return migrated


def _v1_to_v2(record: Record) -> Record:
    brand = record.get("brand_identity")
    if brand:
        record["brand_identity"] = migrate_brand_identity(brand)
    return record


MIGRATIONS: List[Tuple[int, Callable[[Record], Record]]] = [
    (1, _v1_to_v2),
]


def migrate_record(record: Record) -> Record:
    """Apply every pending migration step to a raw record (input is not mutated)."""
    record = copy.deepcopy(record)
    version = int(record.get("schema_version") or LEGACY_SCHEMA_VERSION)

    if version > CURRENT_SCHEMA_VERSION:
        logger.warning(
            f"Project {record.get('id')} has schema version {version}, "
            f"newer than supported {CURRENT_SCHEMA_VERSION}"
        )
        return record

    for from_version, step in MIGRATIONS:
        if version == from_version:
            logger.debug(f"Migrating project {record.get('id')} from v{from_version}")
            record = step(record)
            version = from_version + 1

    record["schema_version"] = max(version, CURRENT_SCHEMA_VERSION)
    return record


def migrate_project(record: Record) -> ProjectState:
    """Migrate and validate a stored record into a ``ProjectState``."""
    return ProjectState.model_validate(migrate_record(record))
