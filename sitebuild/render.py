from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .css import class_name
from .errors import CyclicContainmentError, UnknownComponentTypeError
from .models import ComponentInstance
from .registry import RenderContext, RendererRegistry

logger = logging.getLogger("sitebuild.render")

TAG_RE = re.compile(r"<[^>]+>")
OPEN_TAG_RE = re.compile(r"<([A-Za-z][A-Za-z0-9-]*)(\s|/?>)")
COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
RAW_BLOCK_RE = re.compile(r"(<(pre|textarea|script|style)\b.*?</\2\s*>)", re.DOTALL | re.IGNORECASE)
BETWEEN_TAGS_RE = re.compile(r"([>\x00])\s+([<\x00])")
WHITESPACE_RE = re.compile(r"\s+")
PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")


@dataclass
class RenderOptions:
    minify: bool = False
    include_data_attributes: bool = False
    class_prefix: str = "dc"


class RenderSession:
    """State for one render pass over a page's containment tree."""

    def __init__(
        self,
        components: Iterable[ComponentInstance],
        registry: RendererRegistry,
        options: Optional[RenderOptions] = None,
    ):
        self.by_id = {component.id: component for component in components}
        self.registry = registry
        self.options = options or RenderOptions()
        self.visited: set[str] = set()
        self.rendered = 0

    def render_ids(self, component_ids: Iterable[str]) -> str:
        parts = []
        for component_id in component_ids:
            markup = self.render_component(component_id)
            if markup:
                parts.append(markup)
        return "\n".join(parts)

    def render_component(self, component_id: str) -> str:
        if component_id in self.visited:
            raise CyclicContainmentError(component_id)
        self.visited.add(component_id)
        component = self.by_id.get(component_id)
        if component is None:
            logger.warning("Skipping missing component %s", component_id)
            return ""
        if component.type not in self.registry:
            raise UnknownComponentTypeError(component.id, component.type)
        children = {
            zone: self.render_ids(child_ids) for zone, child_ids in component.zones.items()
        }
        markup = generate_component_html(component, children, self.registry, self.options)
        self.rendered += 1
        return markup


def generate_component_html(
    component: ComponentInstance,
    children: dict[str, str],
    registry: RendererRegistry,
    options: Optional[RenderOptions] = None,
) -> str:
    options = options or RenderOptions()
    renderer = registry.get(component.type)
    if renderer is None:
        raise UnknownComponentTypeError(component.id, component.type)
    context = RenderContext(
        component_id=component.id,
        component_type=component.type,
        class_name=class_name(component.id, options.class_prefix),
        minify=options.minify,
    )
    props = component.props if isinstance(component.props, dict) else {}
    markup = renderer(props, children, context)
    if options.include_data_attributes:
        markup = add_root_attribute(markup, "data-component-id", component.id)
    return markup


def add_root_attribute(markup: str, name: str, value: str) -> str:
    attribute = f' {name}="{html.escape(value, quote=True)}"'

    def repl(match: re.Match) -> str:
        return f"<{match.group(1)}{attribute}{match.group(2)}"

    return OPEN_TAG_RE.sub(repl, markup, count=1)


def render_to_static_html(
    components: Iterable[ComponentInstance],
    root_component_ids: Iterable[str],
    registry: RendererRegistry,
    options: Optional[RenderOptions] = None,
) -> str:
    session = RenderSession(components, registry, options)
    markup = session.render_ids(root_component_ids)
    return minify_html(markup) if session.options.minify else markup


def minify_html(markup: str) -> str:
    """Drop comments and collapse whitespace outside raw text blocks."""
    raw_blocks: list[str] = []

    def stash(match: re.Match) -> str:
        raw_blocks.append(match.group(1))
        return f"\x00{len(raw_blocks) - 1}\x00"

    # Raw blocks are parked behind NUL-delimited markers; NULs in the input are dropped first.
    text = RAW_BLOCK_RE.sub(stash, markup.replace("\x00", ""))
    text = COMMENT_RE.sub("", text)
    text = BETWEEN_TAGS_RE.sub(r"\1\2", text)
    text = WHITESPACE_RE.sub(" ", text).strip()
    return PLACEHOLDER_RE.sub(lambda match: raw_blocks[int(match.group(1))], text)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def render_template(template: str, **context: str) -> str:
    output = template
    late_keys = ("head_content", "body", "scripts")
    for key, value in context.items():
        if key in late_keys:
            continue
        output = output.replace(f"{{{{{key}}}}}", value)
    for key in late_keys:
        if key in context:
            output = output.replace(f"{{{{{key}}}}}", context[key])
    return output
