"""Zentrale Exporte für das ``ipocheck``-Paket."""

from .config import Settings, load_settings
from .exceptions import ConfigError, IpoCheckError, TransportError, UnsupportedProvider
from .models import BulkSummary, CheckResult, ProviderDescriptor, Script, TransportFamily
from .normalize import CompanyNameNormalizer, normalize_company_name
from .orchestrator import BulkCheckOrchestrator, summarize
from .registry import get_all_checkers, get_checker
from .service import check_across_providers, check_bulk, check_single, list_providers
from .share_types import ShareType, classify_share_type, format_share_type, parse_share_type
from .utils.logging_setup import setup_logger

__all__ = [
    "BulkCheckOrchestrator",
    "BulkSummary",
    "CheckResult",
    "CompanyNameNormalizer",
    "ConfigError",
    "IpoCheckError",
    "ProviderDescriptor",
    "Script",
    "Settings",
    "ShareType",
    "TransportError",
    "TransportFamily",
    "UnsupportedProvider",
    "check_across_providers",
    "check_bulk",
    "check_single",
    "classify_share_type",
    "format_share_type",
    "get_all_checkers",
    "get_checker",
    "list_providers",
    "load_settings",
    "normalize_company_name",
    "parse_share_type",
    "setup_logger",
    "summarize",
]
