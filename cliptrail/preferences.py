"""User preferences for ClipTrail.

Loads settings from ~/.cliptrail/preferences.yaml.
Falls back to sensible defaults if the file doesn't exist or is invalid.
Creates a default file on first run so users can discover and edit it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .log import logger
from .models import FILTER_ALL, Category

CLIPTRAIL_HOME = Path.home() / ".cliptrail"
PREFS_PATH = CLIPTRAIL_HOME / "preferences.yaml"
DEFAULT_STORE_PATH = CLIPTRAIL_HOME / "history.json"

_DEFAULT_YAML = """\
# ClipTrail Preferences
# Delete this file to reset to defaults.

history:
  page_size: 10                  # entries fetched per page
  max_entries: 1000              # oldest entries are dropped beyond this
  store_path: ""                 # empty = ~/.cliptrail/history.json
  active_filter: "all"           # all, text, url, code or image

search:
  debounce_ms: 300               # quiet period before a search applies

viewport:
  item_height: 3                 # terminal rows per history entry
  overscan: 4                    # extra rows rendered below the viewport
  load_more_buffer: 3            # fetch the next page this close to the end

capture:
  enabled: true                  # watch the system clipboard
  poll_seconds: 0.5              # clipboard polling interval
"""

VALID_FILTERS: tuple[str, ...] = (FILTER_ALL, *(c.value for c in Category))


@dataclass
class HistoryPreferences:
    """Paging and storage settings."""

    page_size: int = 10
    max_entries: int = 1000
    store_path: str = ""  # Empty means DEFAULT_STORE_PATH
    active_filter: str = FILTER_ALL

    @property
    def resolved_store_path(self) -> Path:
        return Path(self.store_path).expanduser() if self.store_path else DEFAULT_STORE_PATH


@dataclass
class SearchPreferences:
    debounce_ms: int = 300

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


@dataclass
class ViewportPreferences:
    """Row geometry for the virtualized history list."""

    item_height: int = 3
    overscan: int = 4
    load_more_buffer: int = 3


@dataclass
class CapturePreferences:
    enabled: bool = True
    poll_seconds: float = 0.5


@dataclass
class Preferences:
    """Top-level ClipTrail preferences."""

    history: HistoryPreferences = field(default_factory=HistoryPreferences)
    search: SearchPreferences = field(default_factory=SearchPreferences)
    viewport: ViewportPreferences = field(default_factory=ViewportPreferences)
    capture: CapturePreferences = field(default_factory=CapturePreferences)


def _positive_int(value: object, fallback: int) -> int:
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def _non_negative_int(value: object, fallback: int) -> int:
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return fallback
    return number if number >= 0 else fallback


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from YAML file.

    Falls back to sensible defaults if the file doesn't exist or is invalid.
    Creates a default preferences file on first run.
    """
    path = path or PREFS_PATH
    prefs = Preferences()

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError):
            logger.debug("Unreadable preferences file %s", path, exc_info=True)
            return prefs
        if not isinstance(data, dict):
            return prefs

        if isinstance(data.get("history"), dict):
            hdata = data["history"]
            hp = prefs.history
            hp.page_size = _positive_int(hdata.get("page_size"), hp.page_size)
            hp.max_entries = _positive_int(hdata.get("max_entries"), hp.max_entries)
            if "store_path" in hdata:
                hp.store_path = str(hdata["store_path"] or "")
            if str(hdata.get("active_filter", "")) in VALID_FILTERS:
                hp.active_filter = str(hdata["active_filter"])
        if isinstance(data.get("search"), dict):
            sp = prefs.search
            sp.debounce_ms = _non_negative_int(data["search"].get("debounce_ms"), sp.debounce_ms)
        if isinstance(data.get("viewport"), dict):
            vdata = data["viewport"]
            vp = prefs.viewport
            vp.item_height = _positive_int(vdata.get("item_height"), vp.item_height)
            vp.overscan = _non_negative_int(vdata.get("overscan"), vp.overscan)
            vp.load_more_buffer = _non_negative_int(
                vdata.get("load_more_buffer"), vp.load_more_buffer
            )
        if isinstance(data.get("capture"), dict):
            cdata = data["capture"]
            if "enabled" in cdata:
                prefs.capture.enabled = bool(cdata["enabled"])
            try:
                seconds = float(cdata.get("poll_seconds", prefs.capture.poll_seconds))
            except (TypeError, ValueError):
                seconds = prefs.capture.poll_seconds
            if seconds > 0:
                prefs.capture.poll_seconds = seconds
    else:
        # Create default file for user to customize
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(_DEFAULT_YAML, encoding="utf-8")
        except OSError:
            logger.debug("Could not write default preferences to %s", path, exc_info=True)

    return prefs


def save_active_filter(category: str, path: Path | None = None) -> None:
    """Persist the active category filter to the preferences file.

    Surgically updates only the active_filter value, preserving the rest of
    the file (including user comments) as-is.
    """
    if category not in VALID_FILTERS:
        raise ValueError(f"unknown filter {category!r}")
    path = path or PREFS_PATH
    try:
        if path.exists():
            text = path.read_text(encoding="utf-8")
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            text = _DEFAULT_YAML

        value = f'"{category}"'
        if re.search(r"^\s+active_filter:", text, re.MULTILINE):
            text = re.sub(
                r'^(\s+active_filter:)\s*(?:"[^"]*"|\S+)(.*?)$',
                rf"\1 {value}\2",
                text,
                count=1,
                flags=re.MULTILINE,
            )
        elif re.search(r"^history:", text, re.MULTILINE):
            # history section exists but no active_filter key
            text = re.sub(
                r"^(history:.*)$",
                f"\\1\n  active_filter: {value}",
                text,
                count=1,
                flags=re.MULTILINE,
            )
        else:
            text = text.rstrip() + f"\n\nhistory:\n  active_filter: {value}\n"

        path.write_text(text, encoding="utf-8")
    except OSError:
        logger.debug("Could not save active filter to %s", path, exc_info=True)
