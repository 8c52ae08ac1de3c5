"""Deterministic naming for generated database objects.

Every name is a pure function of the mapping, so the "remove" compiler can
target exactly what the "add" compiler created without a stored record.
"""

from __future__ import annotations

import hashlib

# PostgreSQL truncates identifiers at 63 bytes; stay under it everywhere
MAX_IDENTIFIER_LENGTH = 63


def truncate_name(name: str, max_length: int = MAX_IDENTIFIER_LENGTH) -> str:
    """Shorten a name deterministically, keeping it unique via a hash suffix.

    Args:
        name: Full identifier
        max_length: Maximum identifier length

    Returns:
        The name unchanged if short enough, else a truncated name ending in
        an 8-character md5 digest of the full name
    """
    if len(name) <= max_length:
        return name
    digest = hashlib.md5(name.encode("utf-8")).hexdigest()[:8]
    return f"{name[: max_length - 9]}_{digest}"


def _join(prefix: str | None, default: str, column: str) -> str:
    if prefix:
        return truncate_name(f"{prefix.rstrip('_')}_{column}")
    return truncate_name(f"{default}_{column}")


def foreign_key_name(table: str, column: str, prefix: str | None = None) -> str:
    """Name of the foreign key constraint for a relation column."""
    return _join(prefix, f"fk_{table}", column)


def index_name(table: str, column: str, prefix: str | None = None) -> str:
    """Name of the index on a relation column."""
    return _join(prefix, f"ix_{table}", column)


def exclusivity_name(table: str, role: str) -> str:
    """Base name of the exclusivity trigger (and its function, where needed)."""
    return truncate_name(f"exclusive_{table}_{role}")


def singularize(table: str) -> str:
    """Derive a short relation name from a table name.

    Examples:
        "employees" -> "employee", "categories" -> "category",
        "addresses" -> "address", "boxes" -> "box", "staff" -> "staff"
    """
    lowered = table.lower()
    if lowered.endswith("ies") and len(table) > 3:
        return table[:-3] + "y"
    if lowered.endswith(("sses", "xes", "ches", "shes", "zes")):
        return table[:-2]
    if lowered.endswith("s") and not lowered.endswith(("ss", "us", "is")):
        return table[:-1]
    return table
