"""Provider-Implementierungen für ``ipocheck``."""

from .base import BaseProvider, ProviderAdapter
from .global_ime_capital import GlobalImeCapitalProvider
from .http import ApiProvider
from .kumari_capital import KumariCapitalProvider
from .ls_capital import LsCapitalProvider
from .nabil_invest import NabilInvestProvider
from .nepal_sbi import NepalSbiProvider
from .nimb_ace_capital import NimbAceCapitalProvider
from .nmb_capital import NmbCapitalProvider
from .sanima_capital import SanimaCapitalProvider
from .session import SessionProvider

__all__ = [
    "ApiProvider",
    "BaseProvider",
    "GlobalImeCapitalProvider",
    "KumariCapitalProvider",
    "LsCapitalProvider",
    "NabilInvestProvider",
    "NepalSbiProvider",
    "NimbAceCapitalProvider",
    "NmbCapitalProvider",
    "ProviderAdapter",
    "SanimaCapitalProvider",
    "SessionProvider",
]
