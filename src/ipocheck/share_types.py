"""Canonical share types and the free-text classifier shared by all providers."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class ShareType(str, Enum):
    """Investor category an offering slice is reserved for."""

    ORDINARY = "ordinary"
    LOCAL = "local"
    MIGRANT_WORKERS = "migrant_workers"
    MUTUAL_FUND = "mutual_fund"
    EMPLOYEES = "employees"
    PROMOTER = "promoter"
    FOREIGN = "foreign"
    RIGHT_SHARE = "right_share"

    def __str__(self) -> str:
        return self.value


DEFAULT_SHARE_TYPE = ShareType.ORDINARY

# Evaluated top to bottom, first hit wins. "foreign employment" has to be seen
# before the generic "foreign" rule and "right share" before "local"/"fund".
_CLASSIFICATION_RULES: tuple[tuple[ShareType, tuple[str, ...]], ...] = (
    (ShareType.MIGRANT_WORKERS, ("foreign employment", "migrant", "remittance")),
    (
        ShareType.RIGHT_SHARE,
        ("right share", "rights share", "right issue", "rights issue", "(right)", "(rights)"),
    ),
    (ShareType.LOCAL, ("local", "affected", "resident")),
    (ShareType.MUTUAL_FUND, ("fund",)),
    (ShareType.EMPLOYEES, ("staff", "employee")),
    (ShareType.PROMOTER, ("promoter",)),
    (ShareType.FOREIGN, ("foreign",)),
)

# Spellings found in stored IPO rows and older API payloads.
_ALIASES: dict[str, ShareType] = {
    "ordinary_shares": ShareType.ORDINARY,
    "ordinary_share": ShareType.ORDINARY,
    "general_public": ShareType.ORDINARY,
    "public": ShareType.ORDINARY,
    "project_affected_locals": ShareType.LOCAL,
    "locals": ShareType.LOCAL,
    "foreign_employment": ShareType.MIGRANT_WORKERS,
    "mutual_funds": ShareType.MUTUAL_FUND,
    "employee": ShareType.EMPLOYEES,
    "staff": ShareType.EMPLOYEES,
    "promoters": ShareType.PROMOTER,
    "right": ShareType.RIGHT_SHARE,
    "rights": ShareType.RIGHT_SHARE,
    "right_shares": ShareType.RIGHT_SHARE,
}


def classify_share_type(raw_text: str | None) -> ShareType:
    """Classify provider free text (usually the offering name) into a share type.

    The function is total: ``None``, empty strings and anything unmatched map to
    :data:`ShareType.ORDINARY`.
    """

    if not raw_text:
        return DEFAULT_SHARE_TYPE

    lowered = str(raw_text).lower()
    for share_type, keywords in _CLASSIFICATION_RULES:
        if any(keyword in lowered for keyword in keywords):
            return share_type
    return DEFAULT_SHARE_TYPE


def classify_with_overrides(
    raw_text: str | None,
    overrides: Iterable[tuple[str, ShareType]] = (),
) -> ShareType:
    """Apply provider specific ``(substring, share type)`` pairs before the shared rules."""

    if raw_text:
        lowered = str(raw_text).lower()
        for needle, share_type in overrides:
            if needle.lower() in lowered:
                return share_type
    return classify_share_type(raw_text)


def parse_share_type(value: ShareType | str | None) -> ShareType:
    """Coerce caller input (enum, stored value, display text or free text) to a share type."""

    if isinstance(value, ShareType):
        return value
    if value is None:
        return DEFAULT_SHARE_TYPE

    key = "_".join(str(value).strip().lower().replace("-", " ").split())
    if not key:
        return DEFAULT_SHARE_TYPE
    try:
        return ShareType(key)
    except ValueError:
        pass
    alias = _ALIASES.get(key)
    if alias is not None:
        return alias
    return classify_share_type(str(value))


def format_share_type(value: ShareType | str | None) -> str:
    """Render a share type for display, e.g. ``migrant_workers`` -> ``Migrant Workers``."""

    if value is None or value == "":
        return ""
    share_type = parse_share_type(value)
    return " ".join(word.capitalize() for word in share_type.value.split("_"))


__all__ = [
    "DEFAULT_SHARE_TYPE",
    "ShareType",
    "classify_share_type",
    "classify_with_overrides",
    "format_share_type",
    "parse_share_type",
]
