"""Shouyutong - sign language lookup with a curated override library."""

__version__ = "0.1.0"

from shouyutong.core.config import ShouyutongConfig, config
from shouyutong.core.orchestrator import SignOrchestrator
from shouyutong.core.store import EntryStore

__all__ = [
    "EntryStore",
    "ShouyutongConfig",
    "SignOrchestrator",
    "config",
]
