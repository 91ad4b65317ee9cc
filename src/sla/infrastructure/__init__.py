"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for SLA tracking:
- External: settings persistence (YAML), JSON export/import, file watcher
"""

from sla.infrastructure.external import SLASettingsStore, SettingsFileHandler

__all__ = [
    "SLASettingsStore",
    "SettingsFileHandler",
]
