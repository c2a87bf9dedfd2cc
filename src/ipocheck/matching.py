"""Resolve a caller supplied company name and share type to one provider script."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from .models import Script
from .share_types import ShareType
from .utils.logging_setup import setup_logger

_BASE_LOGGER = setup_logger()
LOGGER = _BASE_LOGGER.getChild("matching")


def resolve_script(
    scripts: Sequence[Script],
    company_name: str,
    share_type: ShareType,
    normalize: Callable[[str], str],
    *,
    provider_id: str = "",
) -> Script | None:
    """Pick the script matching *company_name*.

    Candidates are the scripts whose normalised name equals the normalised
    input. Among several candidates the one with the same share type wins,
    otherwise the first one in provider order.
    """

    wanted = normalize(company_name)
    if not wanted:
        return None

    candidates = [script for script in scripts if script.company_name == wanted]
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    same_type = [script for script in candidates if script.share_type == share_type]
    chosen = same_type[0] if same_type else candidates[0]
    LOGGER.debug(
        "%s: %s Skripte normalisieren zu %r (Aktientyp %s, %s davon passend), nehme %r",
        provider_id or "provider",
        len(candidates),
        wanted,
        share_type.value,
        len(same_type),
        chosen.raw_name,
    )
    return chosen


__all__ = ["resolve_script"]
