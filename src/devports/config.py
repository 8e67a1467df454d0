"""Configuration management for devports."""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import platformdirs
import yaml

from .console import warning
from .models import FilterMode, GroupBy, ViewMode

DEFAULT_HISTORY_LIMIT = 500


def get_data_dir() -> Path:
    """Get the data directory for devports.

    Returns:
        Path to data directory
    """
    data_dir = Path(platformdirs.user_data_dir("devports", "devports"))
    data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
    return data_dir


def get_db_path() -> Path:
    """Get the database file path.

    Returns:
        Path to database file
    """
    return get_data_dir() / "registry.db"


def get_config_path() -> Path:
    """Get the YAML configuration file path.

    Returns:
        Path to configuration file (may not exist yet)
    """
    return Path(platformdirs.user_config_dir("devports")) / "config.yaml"


@dataclass
class Settings:
    """Engine configuration, read-only to the engine."""

    group_by: GroupBy = GroupBy.CATEGORY
    view_mode: ViewMode = ViewMode.TREE
    filter_mode: FilterMode = FilterMode.NONE
    auto_refresh: int = 0  # Seconds, 0 disables
    show_only_workspace: bool = False
    strict_workspace: bool = False
    show_system_processes: bool = True
    port_labels: dict[int, str] = field(default_factory=dict)
    groups: dict[str, list[int]] = field(default_factory=dict)
    workspace_paths: list[str] = field(default_factory=list)
    workspace_roots: list[str] = field(default_factory=list)
    history_limit: int = DEFAULT_HISTORY_LIMIT

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain YAML-friendly values."""
        data = asdict(self)
        data["group_by"] = self.group_by.value
        data["view_mode"] = self.view_mode.value
        data["filter_mode"] = self.filter_mode.value
        return data


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file.

    A missing file yields defaults. Malformed values are coerced or skipped,
    never raised.

    Args:
        path: Config file path. Defaults to the user config location.

    Returns:
        Settings instance
    """
    path = path or get_config_path()
    if not path.exists():
        return Settings()

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        warning(f"Could not read {path}: {e}")
        return Settings()

    if not isinstance(data, dict):
        return Settings()
    return settings_from_dict(data)


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Write settings back to the YAML file.

    Args:
        settings: Settings to persist
        path: Config file path. Defaults to the user config location.

    Returns:
        Path written
    """
    path = path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(settings.to_dict(), f, sort_keys=False)
    return path


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build settings from raw mapping values, coercing bad entries."""
    defaults = Settings()
    return Settings(
        group_by=_coerce_enum(GroupBy, data.get("group_by"), defaults.group_by),
        view_mode=_coerce_enum(ViewMode, data.get("view_mode"), defaults.view_mode),
        filter_mode=_coerce_enum(FilterMode, data.get("filter_mode"), defaults.filter_mode),
        auto_refresh=max(0, _coerce_int(data.get("auto_refresh"), 0)),
        show_only_workspace=_coerce_bool(
            data.get("show_only_workspace"), defaults.show_only_workspace
        ),
        strict_workspace=_coerce_bool(
            data.get("strict_workspace"), defaults.strict_workspace
        ),
        show_system_processes=_coerce_bool(
            data.get("show_system_processes"), defaults.show_system_processes
        ),
        port_labels=parse_port_labels(data.get("port_labels")),
        groups=parse_groups(data.get("groups")),
        workspace_paths=_coerce_str_list(data.get("workspace_paths")),
        workspace_roots=_coerce_str_list(data.get("workspace_roots")),
        history_limit=max(
            1, _coerce_int(data.get("history_limit"), DEFAULT_HISTORY_LIMIT)
        ),
    )


def parse_port(value: Any) -> int | None:
    """Coerce a port number, or None if it is not a valid TCP port."""
    if isinstance(value, bool):
        return None
    try:
        port = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if 1 <= port <= 65535:
        return port
    return None


def parse_port_labels(raw: Any) -> dict[int, str]:
    """Parse port label overrides, skipping non-numeric keys.

    Args:
        raw: Mapping of port (int or numeric string) to label

    Returns:
        Mapping of port number to label
    """
    if not isinstance(raw, dict):
        return {}
    labels: dict[int, str] = {}
    for key, label in raw.items():
        port = parse_port(key)
        if port is not None and label:
            labels[port] = str(label)
    return labels


def parse_groups(raw: Any) -> dict[str, list[int]]:
    """Parse custom groups, keeping order and skipping invalid ports.

    Args:
        raw: Mapping of group name to a list of ports

    Returns:
        Mapping of group name to ordered, de-duplicated port list
    """
    if not isinstance(raw, dict):
        return {}
    groups: dict[str, list[int]] = {}
    for name, entries in raw.items():
        if not isinstance(entries, (list, tuple)):
            entries = [entries]
        ports: list[int] = []
        for entry in entries:
            port = parse_port(entry)
            if port is not None and port not in ports:
                ports.append(port)
        groups[str(name)] = ports
    return groups


def _coerce_enum(enum_type: Any, value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        return enum_type(str(value).lower())
    except ValueError:
        return default


def _coerce_bool(value: Any, default: bool) -> bool:
    # Only YAML booleans count; a quoted "false" is not a boolean
    return value if isinstance(value, bool) else default


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v]
