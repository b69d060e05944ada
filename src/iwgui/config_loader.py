"""Load IwguiConfig from iwgui.yaml / iwgui.toml if present.

Merges file config with keyword overrides. Overrides take precedence.
"""

from __future__ import annotations

from pathlib import Path

from iwgui.config import IwguiConfig

_KNOWN_KEYS = (
    "host", "port", "tick_interval", "event_policy",
    "max_inbox", "serve_index", "max_events",
)


def load_config(root: Path, **overrides: object) -> IwguiConfig:
    """Load IwguiConfig from root, optionally merging iwgui.yaml.

    Looks for iwgui.yaml, iwgui.yml, or iwgui.toml in root. If found, loads
    and merges with overrides. Overrides set to ``None`` are ignored so CLI
    flags that were not given fall through to the file value.
    """
    file_config = _read_iwgui_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    return IwguiConfig(**merged)  # type: ignore[arg-type]


def _read_iwgui_config(root: Path) -> dict[str, object]:
    """Read iwgui config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("iwgui.yaml", "iwgui.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "iwgui.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    import yaml

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError:
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_iwgui_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError:
        return {}
    return _flatten_iwgui_section(data)


def _flatten_iwgui_section(data: dict[str, object]) -> dict[str, object]:
    """Extract iwgui.* keys into top-level config, dropping unknown keys."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("iwgui")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result
