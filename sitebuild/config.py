from __future__ import annotations

import json
import sys
from pathlib import Path

import yaml

try:
    import tomllib as toml
except ImportError:  # Python < 3.11
    import tomli as toml


class ConfigError(ValueError):
    pass


def parse_config_text(text: str, suffix: str) -> dict:
    suffix = suffix.lower()
    try:
        if suffix == ".toml":
            data = toml.loads(text)
        elif suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (toml.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config must be a mapping")
    return data


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        return parse_config_text(path.read_text(encoding="utf-8"), path.suffix)
    except ConfigError as exc:
        print(f"{exc} ({path})", file=sys.stderr)
        sys.exit(1)


def resolve_relative(value: str, args: object) -> Path:
    path = Path(value)
    if not path.is_absolute():
        config_path = Path(getattr(args, "config", "site.toml")).resolve()
        path = config_path.parent / path
    return path


def resolve_snippet(args: object, html_attr: str, file_attr: str) -> str:
    """Inline HTML wins over a snippet file; a missing file resolves to ""."""
    html_snippet = (getattr(args, html_attr, "") or "").strip()
    if html_snippet:
        return html_snippet
    file_value = (getattr(args, file_attr, "") or "").strip()
    if not file_value:
        return ""
    path = resolve_relative(file_value, args)
    if not path.exists():
        print(f"Snippet file not found: {path}", file=sys.stderr)
        return ""
    return path.read_text(encoding="utf-8")


def resolve_head_content(args: object) -> str:
    return resolve_snippet(args, "head_html", "head_file")


def resolve_body_scripts(args: object) -> str:
    return resolve_snippet(args, "scripts_html", "scripts_file")
