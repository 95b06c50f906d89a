"""Lookup services the build core consumes: component renderers and field schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Optional, Protocol

URL_FIELD_KINDS = frozenset({"image", "video", "link", "file", "font", "url"})


@dataclass(frozen=True)
class RenderContext:
    """Per-component information handed to a renderer."""

    component_id: str
    component_type: str
    class_name: str
    minify: bool = False


class Renderer(Protocol):
    def __call__(self, props: dict, children: Mapping[str, str], context: RenderContext) -> str: ...


class RendererRegistry:
    """Read-only view from component type to its render capability."""

    def __init__(self, renderers: Optional[Mapping[str, Renderer]] = None):
        self._renderers: dict[str, Renderer] = dict(renderers or {})

    def register(self, component_type: str) -> Callable[[Renderer], Renderer]:
        def decorator(func: Renderer) -> Renderer:
            self._renderers[component_type] = func
            return func

        return decorator

    def get(self, component_type: str) -> Optional[Renderer]:
        return self._renderers.get(component_type)

    def __contains__(self, component_type: object) -> bool:
        return component_type in self._renderers

    def __iter__(self) -> Iterator[str]:
        return iter(self._renderers)

    def __len__(self) -> int:
        return len(self._renderers)


@dataclass
class FieldSchemaCatalog:
    """Per component type, the kind of each declared prop key.

    Kinds listed in ``URL_FIELD_KINDS`` mark a prop as URL-bearing. Keys are
    matched at any nesting depth, so a schema entry for ``image`` also covers
    ``items[].image``.
    """

    schemas: dict[str, dict[str, str]] = field(default_factory=dict)

    def declare(self, component_type: str, fields: Mapping[str, str]) -> None:
        self.schemas.setdefault(component_type, {}).update(fields)

    def has_schema(self, component_type: str) -> bool:
        return component_type in self.schemas

    def url_fields(self, component_type: str) -> dict[str, str]:
        fields = self.schemas.get(component_type, {})
        return {key: kind for key, kind in fields.items() if kind in URL_FIELD_KINDS}

    def merged(self, other: Optional["FieldSchemaCatalog"]) -> "FieldSchemaCatalog":
        combined = FieldSchemaCatalog({key: dict(value) for key, value in self.schemas.items()})
        if other is not None:
            for component_type, fields in other.schemas.items():
                combined.declare(component_type, fields)
        return combined
