"""Loading page models from site files written by the editor."""

from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .models import ComponentInstance, Page
from .registry import FieldSchemaCatalog


@dataclass
class SiteDefinition:
    pages: list[tuple[Page, list[ComponentInstance]]] = field(default_factory=list)
    schemas: FieldSchemaCatalog = field(default_factory=FieldSchemaCatalog)


def normalize_timestamp(value: object) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value.isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return str(value).strip() or None


def parse_component(data: dict, fallback_id: Optional[str] = None) -> ComponentInstance:
    if not isinstance(data, dict):
        raise ValueError(f"Component entry must be a mapping, got {type(data).__name__}")
    component_id = str(data.get("id") or fallback_id or "").strip()
    if not component_id:
        raise ValueError("Component entry is missing an id")
    component_type = data.get("type")
    if not component_type:
        raise ValueError(f"Component {component_id} is missing a type")
    props = data.get("props") or {}
    if not isinstance(props, dict):
        raise ValueError(f"Component {component_id} props must be a mapping")
    zones: dict[str, list[str]] = {}
    for name, child_ids in (data.get("zones") or {}).items():
        zones[str(name)] = [str(child) for child in child_ids or []]
    if data.get("children"):
        zones.setdefault("default", []).extend(str(child) for child in data["children"])
    return ComponentInstance(id=component_id, type=str(component_type), props=props, zones=zones)


def parse_components(raw: object) -> list[ComponentInstance]:
    if isinstance(raw, dict):
        return [parse_component(item, key) for key, item in raw.items()]
    if isinstance(raw, list):
        return [parse_component(item) for item in raw]
    if raw is None:
        return []
    raise ValueError("Page components must be a list or a mapping keyed by id")


def parse_editor_content(content: dict) -> tuple[list[str], list[ComponentInstance]]:
    """Read the editor's stored shape: ``root.children``, id-keyed components, ``parent:zone`` zones."""
    components = parse_components(content.get("components"))
    by_id = {component.id: component for component in components}
    for zone_key, child_ids in (content.get("zones") or {}).items():
        parent_id, _, zone_name = str(zone_key).partition(":")
        parent = by_id.get(parent_id)
        if parent is None:
            continue
        parent.zones.setdefault(zone_name or "default", []).extend(str(child) for child in child_ids or [])
    root = content.get("root") or {}
    root_ids = [str(child) for child in root.get("children") or []]
    return root_ids, components


def parse_page(data: dict) -> tuple[Page, list[ComponentInstance]]:
    if not isinstance(data, dict):
        raise ValueError("Page entry must be a mapping")
    page_id = str(data.get("id") or "").strip()
    if not page_id:
        raise ValueError("Page entry is missing an id")
    content = data.get("content")
    if isinstance(content, dict):
        root_ids, components = parse_editor_content(content)
        root_props = (content.get("root") or {}).get("props") or {}
    else:
        root_zone = data.get("rootZone") or {}
        root_ids = [str(child) for child in root_zone.get("componentIds") or []]
        components = parse_components(data.get("components"))
        root_props = {}
    page = Page(
        id=page_id,
        slug=str(data.get("slug") or "").strip().strip("/"),
        title=str(data.get("title") or root_props.get("title") or ""),
        root_component_ids=root_ids,
        description=data.get("description") or root_props.get("description"),
        updated_at=normalize_timestamp(data.get("updatedAt")),
    )
    return page, components


def parse_site(data: object) -> SiteDefinition:
    if isinstance(data, list):
        data = {"pages": data}
    if not isinstance(data, dict):
        raise ValueError("Site file must contain a mapping or a list of pages")
    site = SiteDefinition()
    for entry in data.get("pages") or []:
        site.pages.append(parse_page(entry))
    for component_type, fields in (data.get("schemas") or {}).items():
        site.schemas.declare(str(component_type), {str(key): str(kind) for key, kind in fields.items()})
    return site


def load_site(path: Path) -> SiteDefinition:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    return parse_site(data or {})
