"""
Column mapping for the bulk import: validation, suggestion and the row
transform (a plain key rename from source columns to lot fields).
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from parkdesk.bulk_import.fields import FIELDS_BY_KEY, LOT_IMPORT_FIELDS, PARK_NAME_FIELD, SKIP, required_fields
from parkdesk.exceptions import MissingMappingError, ValidationError
from parkdesk.logging_config import get_logger

logger = get_logger(__name__)

PARK_NAME_HINT = "parkName (required - Park ID alone is not sufficient)"


def _is_mapped(value: str | None) -> bool:
    return bool(value) and value != SKIP


def missing_required(mapping: Mapping[str, str], *, require_park_name: bool | None = None) -> list[str]:
    """Required fields that are unmapped or set to ``SKIP``, in display form."""
    missing = []
    for key in required_fields(require_park_name):
        if not _is_mapped(mapping.get(key)):
            missing.append(PARK_NAME_HINT if key == PARK_NAME_FIELD else key)
    return missing


def validate_mapping(
    mapping: Mapping[str, str],
    headers: Iterable[str],
    *,
    require_park_name: bool | None = None,
) -> dict[str, str]:
    """
    Check a target-field → source-column mapping.

    Returns the mapping with ``SKIP`` / empty entries removed.

    Raises:
        MissingMappingError: a required field is not mapped.
        ValidationError: unknown target field or a column the file does not have.
    """
    header_set = set(headers)
    unknown = sorted(k for k in mapping if k not in FIELDS_BY_KEY)
    if unknown:
        raise ValidationError("unknown import field", field="mapping", detail=", ".join(unknown))

    missing = missing_required(mapping, require_park_name=require_park_name)
    if missing:
        raise MissingMappingError(missing)

    active = {k: v for k, v in mapping.items() if _is_mapped(v)}
    absent = sorted(v for v in active.values() if v not in header_set)
    if absent:
        raise ValidationError("column not found in file", field="mapping", detail=", ".join(absent))

    logger.info("mapping_validated", extra={"mapped_fields": len(active), "skipped_fields": len(mapping) - len(active)})
    return active


def apply_mapping(rows: Iterable[Mapping[str, Any]], mapping: Mapping[str, str]) -> list[dict[str, Any]]:
    """
    Rename source columns to lot fields for every row.

    ``SKIP`` targets are left out, as are columns a row does not carry.
    Values pass through unchanged.
    """
    active = [(target, source) for target, source in mapping.items() if _is_mapped(source)]
    transformed = []
    for row in rows:
        record = {}
        for target, source in active:
            if source in row:
                record[target] = row[source]
        transformed.append(record)
    return transformed


# =============================================================================
# Mapping suggestions
# =============================================================================


def normalize_column_name(raw_name: str) -> str:
    cleaned = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", str(raw_name or "").strip())
    cleaned = cleaned.lower()
    cleaned = re.sub(r"[\s\-./#()*]+", "_", cleaned)
    while "__" in cleaned:
        cleaned = cleaned.replace("__", "_")
    return cleaned.strip("_")


def _candidate_score(target: str, source: str) -> int:
    if not target or not source:
        return 0
    if source == target:
        return 100
    if source.endswith(f"_{target}"):
        return 88
    if source in target or target in source:
        return 82

    target_tokens = [token for token in target.split("_") if token]
    source_tokens = [token for token in source.split("_") if token]
    if target_tokens and all(token in source_tokens for token in target_tokens):
        return 76
    return 0


def mapping_score(field_key: str, header: str) -> int:
    """How well a source column matches a lot field (0-100)."""
    field = FIELDS_BY_KEY[field_key]
    source = normalize_column_name(header)
    targets = [normalize_column_name(field.key), normalize_column_name(field.label)]
    targets += [normalize_column_name(alias) for alias in field.aliases]
    best = max(_candidate_score(target, source) for target in targets)
    # Short aliases ("br", "ba") only count on an exact hit.
    if best == 82 and len(source) <= 3:
        return 0
    return best


def suggest_mapping(headers: Iterable[str], *, threshold: int = 76) -> dict[str, str]:
    """
    Pre-fill a mapping from header names.

    Highest-scoring (field, column) pairs are taken first; each field and
    each column is used at most once. Unmatched fields map to ``SKIP``.
    """
    header_list = list(headers)
    pairs = []
    for position, field in enumerate(LOT_IMPORT_FIELDS):
        for column_index, header in enumerate(header_list):
            score = mapping_score(field.key, header)
            if score >= threshold:
                pairs.append((-score, position, column_index, field.key, header))
    pairs.sort()

    mapping = {field.key: SKIP for field in LOT_IMPORT_FIELDS}
    used_columns: set[str] = set()
    assigned: set[str] = set()
    for _, _, _, key, header in pairs:
        if key in assigned or header in used_columns:
            continue
        mapping[key] = header
        assigned.add(key)
        used_columns.add(header)
    return mapping
