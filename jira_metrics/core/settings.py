"""Load report settings from YAML (with fallbacks)."""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path

import yaml

from .config import DEFAULT_SETTINGS_FILENAME, ReportSettings
from .errors import ConfigurationError

_CACHE: dict[Path, ReportSettings] = {}


def load_report_settings(base_path: str | Path | None = None, *, use_cache: bool = True) -> ReportSettings:
    """Read ``jira_metrics.yaml`` from ``base_path`` (default: current directory).

    Missing file or missing keys fall back to ``ReportSettings`` defaults.
    Unreadable YAML or values of the wrong type raise ``ConfigurationError``.
    """
    base = Path(base_path or Path.cwd())
    yaml_path = base / DEFAULT_SETTINGS_FILENAME if base.is_dir() else base
    if use_cache and yaml_path in _CACHE:
        return _CACHE[yaml_path]

    if not yaml_path.exists():
        settings = ReportSettings()
    else:
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Unable to parse {yaml_path}: {exc}") from exc
        settings = settings_from_dict(data.get("report", data), source=str(yaml_path))

    if use_cache:
        _CACHE[yaml_path] = settings
    return settings


def settings_from_dict(data: dict, *, source: str = "settings") -> ReportSettings:
    defaults = ReportSettings()
    known = {f.name for f in fields(ReportSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown settings in {source}: {', '.join(unknown)}")
    try:
        return ReportSettings(
            timezone=str(data.get("timezone", defaults.timezone)),
            project_id=int(data["project_id"]) if data.get("project_id") is not None else None,
            percentile=int(data.get("percentile", defaults.percentile)),
            stalled_threshold_days=int(data.get("stalled_threshold_days", defaults.stalled_threshold_days)),
            expedited_priority=str(data.get("expedited_priority", defaults.expedited_priority)),
            blocked_statuses=list(data.get("blocked_statuses") or []),
            status_category_mappings=list(data.get("status_category_mappings") or []),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value in {source}: {exc}") from exc


def clear_settings_cache() -> None:
    _CACHE.clear()
