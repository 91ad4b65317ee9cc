"""
SLA Settings Store
==================

Mutable, persisted home of the active ``SLASettings``:
- YAML file persistence (atomic replace)
- JSON export/import
- Config file watcher for hot reload
"""

import json
import os
import tempfile
import threading
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from config import Priority
from core.exceptions import ConfigurationException, ResourceNotFoundException
from shared.infrastructure.logging import get_logger
from sla.application.services import ISLASettingsProvider
from sla.domain.value_objects import BusinessHours, SLARule, SLASettings

logger = get_logger(__name__)

SettingsChanges = Dict[str, Any]


class SettingsFileHandler(FileSystemEventHandler):
    """
    Watchdog event handler for SLA settings file changes.

    Editors and the store itself save by writing a temporary file and
    renaming it over the settings file, so moves and creations count as
    changes too.
    """

    def __init__(self, store: "SLASettingsStore", settings_path: Path):
        self.store = store
        self.settings_path = settings_path
        super().__init__()

    def _changed(self, path: str) -> None:
        if Path(path).resolve() == self.settings_path.resolve():
            logger.info(f"Settings file changed: {path}")
            self.store.reload()

    def on_modified(self, event):
        """Handle file modification event."""
        if not event.is_directory:
            self._changed(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._changed(event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self._changed(event.dest_path)


def _to_date(value: Union[date, str]) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ConfigurationException(
            f"Invalid holiday date: {value!r}", {"holiday": value}
        ) from None


def _validation_errors(e: ValidationError) -> dict:
    return {"errors": e.errors(include_url=False, include_context=False, include_input=False)}


class SLASettingsStore(ISLASettingsProvider):
    """
    Thread-safe SLA settings store with persistence and hot-reload support.

    Hands out immutable ``SLASettings`` snapshots. Every mutation reads the
    current snapshot, merges its change, validates, persists and swaps the
    result in while holding one lock, so concurrent writers never lose each
    other's updates and the file never lags behind memory.
    """

    def __init__(self, initial: Optional[SLASettings] = None):
        self._settings = initial or SLASettings()
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    # ========== Persistence ==========

    def load(self, path: Path) -> SLASettings:
        """Initial settings load; a missing file means defaults."""
        self._path = Path(path)
        with self._lock:
            self._settings = self._load_from_file(self._path)
            return self._settings

    def _load_from_file(self, path: Path) -> SLASettings:
        """Load and validate the YAML settings file."""
        if not path.exists():
            logger.warning(f"SLA settings file not found: {path}, using defaults")
            return SLASettings()

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Malformed YAML in {path}: {e}") from e

        if data is None:
            raise ConfigurationException(f"SLA settings file is empty: {path}")

        try:
            return SLASettings.model_validate(data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid SLA settings in {path}", _validation_errors(e)
            ) from e

    def _persist(self, snapshot: SLASettings) -> None:
        """Write ``snapshot`` to a sibling temp file and rename it into place."""
        if self._path is None:
            return
        data = snapshot.model_dump(mode="json", by_alias=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(data, f, sort_keys=False)
            os.replace(tmp_name, self._path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def reload(self) -> bool:
        """
        Reload settings from file.

        Returns False and keeps the current settings when the file is
        unreadable, empty or invalid.
        """
        if self._path is None:
            return False

        with self._lock:
            try:
                new_settings = self._load_from_file(self._path)
            except (ConfigurationException, OSError) as e:
                logger.error(f"Failed to reload SLA settings: {e}")
                return False

            if new_settings == self._settings:
                return True
            self._settings = new_settings

        logger.info("SLA settings reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching the settings file for changes.

        Skipped when the file doesn't exist or the platform has no file
        notification support.
        """
        if self._path is None:
            raise RuntimeError("Settings not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(
                f"Settings file doesn't exist, skipping file watch: {self._path}"
            )
            return

        try:
            self._observer = Observer()
            handler = SettingsFileHandler(self, self._path)
            self._observer.schedule(
                handler,
                str(self._path.parent),
                recursive=False
            )
            self._observer.start()
            logger.info(f"Started watching settings file: {self._path}")
        except OSError as e:
            logger.warning(
                f"File watching not available, using static settings: {e}"
            )
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching the settings file (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def is_watching(self) -> bool:
        return self._observer is not None

    # ========== Accessors ==========

    @property
    def settings(self) -> SLASettings:
        """Current settings snapshot."""
        with self._lock:
            return self._settings

    @property
    def rules(self):
        return self.settings.rules

    def get_settings(self) -> SLASettings:
        return self.settings

    # ========== Mutations ==========

    def _replace(self, snapshot: SLASettings) -> None:
        """Persist then swap in; caller holds the lock."""
        self._persist(snapshot)
        self._settings = snapshot

    def _apply(self, reason: str, mutate: Callable[[SLASettings], SettingsChanges]) -> SLASettings:
        """
        Merge ``mutate(current)`` into the current snapshot and swap it in.

        ``mutate`` runs under the lock and returns the top-level fields to
        replace. Validation or persistence failures leave the current
        snapshot in place.
        """
        with self._lock:
            data = self._settings.model_dump()
            data.update(mutate(self._settings))
            try:
                updated = SLASettings.model_validate(data)
            except ValidationError as e:
                raise ConfigurationException(
                    f"Invalid SLA settings update: {reason}", _validation_errors(e)
                ) from e
            self._replace(updated)

        logger.info("SLA settings updated", extra={"change": reason})
        return updated

    def update_rule(self, priority: Union[Priority, str], **changes: Any) -> SLARule:
        """
        Merge ``changes`` into the rule of one priority.

        Raises:
            ConfigurationException: unknown priority or invalid values
        """
        try:
            priority = Priority(priority)
        except ValueError:
            raise ConfigurationException(
                f"Unknown priority: {priority}", {"priority": str(priority)}
            ) from None
        rule_changes = {k: v for k, v in changes.items() if v is not None}

        def merge_rule(current: SLASettings) -> SettingsChanges:
            rules = {p: r.model_dump() for p, r in current.rules.items()}
            rule_data = rules.get(priority, {})
            rule_data.update(rule_changes)
            rule_data["priority"] = priority
            rules[priority] = rule_data
            return {"rules": rules}

        updated = self._apply(f"rule {priority.value}", merge_rule)
        return updated.rules[priority]

    def update_business_hours(self, **changes: Any) -> BusinessHours:
        hours_changes = {k: v for k, v in changes.items() if v is not None}

        def merge_hours(current: SLASettings) -> SettingsChanges:
            return {"business_hours": {**current.business_hours.model_dump(), **hours_changes}}

        return self._apply("business hours", merge_hours).business_hours

    def add_holiday(self, holiday: Union[date, str]) -> SLASettings:
        day = _to_date(holiday)
        return self._apply(
            f"add holiday {day.isoformat()}",
            lambda current: {"holidays": list(current.holidays) + [day]},
        )

    def remove_holiday(self, holiday: Union[date, str]) -> SLASettings:
        day = _to_date(holiday)

        def without_day(current: SLASettings) -> SettingsChanges:
            if day not in current.holidays:
                raise ResourceNotFoundException("Holiday", day.isoformat())
            return {"holidays": [d for d in current.holidays if d != day]}

        return self._apply(f"remove holiday {day.isoformat()}", without_day)

    def set_project_key(self, key: str) -> SLASettings:
        return self._apply("project key", lambda current: {"project_key": key})

    def reset_settings(self) -> SLASettings:
        defaults = SLASettings()
        with self._lock:
            self._replace(defaults)
        logger.info("SLA settings reset to defaults")
        return defaults

    # ========== Export / Import ==========

    def export_settings(self) -> str:
        """Serialise rules, business hours, holidays and project key as JSON."""
        return self.settings.model_dump_json(by_alias=True, indent=2)

    def import_settings(self, payload: str) -> bool:
        """
        Replace the settings with an exported JSON document.

        Sections absent from the document fall back to defaults; present
        ones are taken as-is, empty lists included. Returns False and keeps
        the current settings when the document is not valid.
        """
        try:
            data = json.loads(payload)
            if not isinstance(data, dict):
                raise ValueError("settings document must be a JSON object")
            defaults = SLASettings()
            imported = SLASettings.model_validate({
                "rules": data["rules"] if "rules" in data else defaults.rules,
                "business_hours": (
                    data["businessHours"] if "businessHours" in data else defaults.business_hours
                ),
                "holidays": data["holidays"] if "holidays" in data else defaults.holidays,
                "project_key": data["projectKey"] if "projectKey" in data else defaults.project_key,
            })
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to import SLA settings: {e}")
            return False

        with self._lock:
            self._replace(imported)
        logger.info("SLA settings imported")
        return True
