"""Stylesheet generation for a page's component instances."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import ComponentInstance

STYLE_PROPERTIES = {
    "width": "width",
    "height": "height",
    "minWidth": "min-width",
    "maxWidth": "max-width",
    "minHeight": "min-height",
    "maxHeight": "max-height",
    "padding": "padding",
    "paddingTop": "padding-top",
    "paddingRight": "padding-right",
    "paddingBottom": "padding-bottom",
    "paddingLeft": "padding-left",
    "margin": "margin",
    "marginTop": "margin-top",
    "marginRight": "margin-right",
    "marginBottom": "margin-bottom",
    "marginLeft": "margin-left",
    "gap": "gap",
    "backgroundColor": "background-color",
    "color": "color",
    "borderColor": "border-color",
    "fontSize": "font-size",
    "fontWeight": "font-weight",
    "lineHeight": "line-height",
    "letterSpacing": "letter-spacing",
    "textAlign": "text-align",
    "textDecoration": "text-decoration",
    "textTransform": "text-transform",
    "borderWidth": "border-width",
    "borderStyle": "border-style",
    "borderRadius": "border-radius",
    "opacity": "opacity",
    "boxShadow": "box-shadow",
    "textShadow": "text-shadow",
    "transform": "transform",
    "cursor": "cursor",
    "display": "display",
    "flexDirection": "flex-direction",
    "alignItems": "align-items",
    "justifyContent": "justify-content",
    "flexWrap": "flex-wrap",
    "outlineColor": "outline-color",
    "outlineWidth": "outline-width",
    "outlineStyle": "outline-style",
    "outlineOffset": "outline-offset",
    "zIndex": "z-index",
}
UNITLESS = frozenset({"opacity", "fontWeight", "lineHeight", "zIndex", "flexGrow", "flexShrink"})
STATE_PROPERTIES = frozenset(
    {
        "backgroundColor",
        "color",
        "borderColor",
        "outlineColor",
        "opacity",
        "boxShadow",
        "textShadow",
        "borderWidth",
        "borderStyle",
        "outlineWidth",
        "outlineStyle",
        "outlineOffset",
    }
)
TRANSFORM_PARTS = {
    "scale": ("scale", ""),
    "scaleX": ("scaleX", ""),
    "scaleY": ("scaleY", ""),
    "rotate": ("rotate", "deg"),
    "translateX": ("translateX", "px"),
    "translateY": ("translateY", "px"),
    "skewX": ("skewX", "deg"),
    "skewY": ("skewY", "deg"),
}
STATE_PSEUDO_CLASSES = (("hover", ":hover"), ("active", ":active"), ("focus", ":focus"))
TRANSITION_GROUPS = {
    "colors": "background-color, color, border-color",
    "shadow": "box-shadow, text-shadow",
}
DEFAULT_BREAKPOINTS = {"tablet": 768, "desktop": 1024}
BREAKPOINT_ALIASES = {
    "mobile": ("mobile", "base"),
    "tablet": ("tablet", "sm", "md"),
    "desktop": ("desktop", "lg", "xl", "xxl"),
}
RESPONSIVE_KEYS = frozenset(key for keys in BREAKPOINT_ALIASES.values() for key in keys)
CLASS_SAFE_RE = re.compile(r"[A-Za-z0-9-]")
UNSAFE_VALUE_RE = re.compile(r"[<>{};]")
UNSAFE_COMMENT_RE = re.compile(r"[<>*]")
BASE_STYLES = """
/* Generated page styles */
*,
*::before,
*::after {
  box-sizing: border-box;
}

body {
  margin: 0;
  font-family: system-ui, -apple-system, sans-serif;
  line-height: 1.5;
}

img,
video {
  max-width: 100%;
  height: auto;
}

a {
  color: inherit;
  text-decoration: none;
}

button {
  font: inherit;
  cursor: pointer;
}
""".strip()


@dataclass
class CSSOptions:
    minify: bool = False
    include_responsive: bool = True
    include_states: bool = True
    annotate: bool = False
    class_prefix: str = "dc"
    breakpoints: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_BREAKPOINTS))


def class_name(component_id: str, prefix: str = "dc") -> str:
    """Map a component id to a CSS class name.

    Characters outside ``[A-Za-z0-9-]`` become ``_<hex>_`` so distinct ids
    never share a class name.
    """
    escaped = "".join(
        char if CLASS_SAFE_RE.match(char) else f"_{ord(char):x}_" for char in component_id
    )
    return f"{prefix}-{escaped}"


def is_responsive(value: object) -> bool:
    return isinstance(value, dict) and any(key in value for key in RESPONSIVE_KEYS)


def responsive_value(value: dict, breakpoint: str) -> object:
    for key in BREAKPOINT_ALIASES.get(breakpoint, (breakpoint,)):
        if key in value:
            return value[key]
    return None


def css_value(prop: str, value: object) -> Optional[str]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    if isinstance(value, (int, float)):
        if prop == "opacity":
            return _format_number(value / 100 if value > 1 else value)
        if prop in UNITLESS:
            return _format_number(value)
        return f"{_format_number(value)}px"
    if isinstance(value, str):
        return safe_text(value)
    return None


def safe_text(value: str) -> Optional[str]:
    """Strip a raw string value, refusing anything that could end a rule or the style block."""
    value = value.strip()
    if not value or UNSAFE_VALUE_RE.search(value):
        return None
    return value


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _declarations(props: dict, breakpoint: Optional[str]) -> dict[str, str]:
    declarations = {}
    for prop, css_prop in STYLE_PROPERTIES.items():
        if prop not in props:
            continue
        raw = props[prop]
        if is_responsive(raw):
            raw = responsive_value(raw, breakpoint or "mobile")
        elif breakpoint is not None:
            continue
        value = css_value(prop, raw)
        if value is not None:
            declarations[css_prop] = value
    return declarations


def _state_declarations(overrides: dict) -> dict[str, str]:
    declarations = {}
    transforms = []
    for prop, raw in overrides.items():
        if prop in TRANSFORM_PARTS:
            func, unit = TRANSFORM_PARTS[prop]
            if isinstance(raw, (int, float)) and not isinstance(raw, bool):
                transforms.append(f"{func}({_format_number(raw)}{unit})")
            elif isinstance(raw, str) and safe_text(raw):
                transforms.append(f"{func}({safe_text(raw)})")
            continue
        if prop not in STATE_PROPERTIES:
            continue
        value = css_value(prop, raw)
        if value is not None:
            declarations[STYLE_PROPERTIES[prop]] = value
    if transforms:
        declarations["transform"] = " ".join(transforms)
    return declarations


def transition_value(transition: object) -> Optional[str]:
    if not isinstance(transition, dict):
        return None
    prop = transition.get("property", "all")
    if not isinstance(prop, str) or not prop or prop == "none":
        return None
    prop = TRANSITION_GROUPS.get(prop, prop)
    duration = transition.get("duration", 200)
    easing = transition.get("easing", "ease")
    value = f"{prop} {duration}ms {easing}"
    delay = transition.get("delay")
    if delay:
        value += f" {delay}ms"
    return safe_text(value)


def _format_rule(selector: str, declarations: dict[str, str], indent: str = "") -> str:
    lines = [f"{indent}{selector} {{"]
    lines.extend(f"{indent}  {prop}: {value};" for prop, value in declarations.items())
    lines.append(f"{indent}}}")
    return "\n".join(lines)


def generate_component_css(component: ComponentInstance, options: Optional[CSSOptions] = None) -> str:
    options = options or CSSOptions()
    props = component.props if isinstance(component.props, dict) else {}
    selector = "." + class_name(component.id, options.class_prefix)
    blocks = []

    base = _declarations(props, None)
    transition = transition_value(props.get("transition"))
    if transition:
        base["transition"] = transition
    if base:
        blocks.append(_format_rule(selector, base))

    states = props.get("states")
    if options.include_states and isinstance(states, dict):
        for state, pseudo in STATE_PSEUDO_CLASSES:
            overrides = states.get(state)
            if not isinstance(overrides, dict):
                continue
            declarations = _state_declarations(overrides)
            if declarations:
                blocks.append(_format_rule(f"{selector}{pseudo}", declarations))

    if options.include_responsive:
        ordered = sorted(options.breakpoints.items(), key=lambda item: item[1])
        for name, width in ordered:
            declarations = _declarations(props, name)
            if declarations:
                inner = _format_rule(selector, declarations, indent="  ")
                blocks.append(f"@media (min-width: {width}px) {{\n{inner}\n}}")

    if not blocks:
        return ""
    css = "\n".join(blocks)
    if options.annotate:
        label = UNSAFE_COMMENT_RE.sub("", f"{component.id} ({component.type})")
        css = f"/* {label} */\n{css}"
    return css


def generate_page_css(components: Iterable[ComponentInstance], options: Optional[CSSOptions] = None) -> str:
    options = options or CSSOptions()
    blocks = [BASE_STYLES]
    for component in components:
        css = generate_component_css(component, options)
        if css:
            blocks.append(css)
    css = "\n\n".join(blocks) + "\n"
    return minify_css(css) if options.minify else css


COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
WHITESPACE_RE = re.compile(r"\s+")
PUNCTUATION_RE = re.compile(r"\s*([{};:,>~])\s*")


def minify_css(css: str) -> str:
    css = COMMENT_RE.sub("", css)
    css = WHITESPACE_RE.sub(" ", css)
    css = PUNCTUATION_RE.sub(r"\1", css)
    css = css.replace(";}", "}")
    return css.strip()


def extract_critical_css(css: str, critical_component_ids: Optional[Iterable[str]] = None) -> str:
    """Return the stylesheet to inline for first paint.

    There is no above-the-fold analysis: the whole stylesheet is critical, so
    the deferred stylesheet is the full one as well.
    """
    return css
