"""
Client synchronisation package.

Public API:
- ClientSession (subscriptions, services, derived views, banner-aware writes)
- AppState, Banner, BannerKind, WriteOutcome
- SystemSettings singleton helpers
"""
from .session import ClientSession
from .settings import SETTINGS_DOC_ID, SystemSettings, load_settings, save_settings, settings_query
from .state import AppState, Banner, BannerKind, WriteOutcome

__all__ = [
    "ClientSession",
    "SETTINGS_DOC_ID",
    "SystemSettings",
    "load_settings",
    "save_settings",
    "settings_query",
    "AppState",
    "Banner",
    "BannerKind",
    "WriteOutcome",
]
