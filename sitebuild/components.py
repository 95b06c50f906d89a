"""Built-in renderers and field schemas for the core component types."""

from __future__ import annotations

import html
from pathlib import PurePosixPath
from typing import Mapping

import markdown
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .registry import FieldSchemaCatalog, RenderContext, RendererRegistry

LANGUAGES_BY_EXTENSION = {
    "py": "python",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "hpp": "cpp",
    "cxx": "cpp",
    "js": "javascript",
    "ts": "typescript",
    "java": "java",
    "rs": "rust",
    "go": "go",
    "sh": "bash",
    "md": "markdown",
    "html": "html",
    "css": "css",
    "json": "json",
}

CORE_FIELD_SCHEMAS = {
    "Section": {"backgroundImage": "image", "title": "text"},
    "Container": {"backgroundImage": "image"},
    "Columns": {},
    "Heading": {"text": "text", "level": "number"},
    "Text": {"text": "textarea"},
    "RichText": {"content": "markdown"},
    "Image": {"src": "image", "alt": "text", "href": "link"},
    "Gallery": {"src": "image", "alt": "text", "caption": "text"},
    "Button": {"label": "text", "href": "link"},
    "Link": {"text": "text", "href": "link"},
    "Video": {"src": "video", "poster": "image"},
    "Spacer": {"height": "number"},
    "Divider": {},
    "CodeBlock": {"code": "code", "language": "text", "filename": "text"},
    "Html": {"html": "code"},
}


def attr(value: object) -> str:
    return html.escape(str(value), quote=True)


def join_children(children: Mapping[str, str]) -> str:
    return "\n".join(markup for markup in children.values() if markup)


def css_url(url: str) -> str:
    return url.replace("\\", "\\\\").replace('"', '\\"')


def render_section(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    attrs = [f'class="{attr(context.class_name)}"']
    anchor = props.get("anchor")
    if anchor:
        attrs.append(f'id="{attr(anchor)}"')
    background = props.get("backgroundImage")
    if isinstance(background, str) and background:
        style = f'background-image: url("{css_url(background)}")'
        attrs.append(f'style="{attr(style)}"')
    title = props.get("title")
    heading = f"<h2>{html.escape(str(title))}</h2>\n" if title else ""
    return f"<section {' '.join(attrs)}>\n{heading}{join_children(children)}\n</section>"


def render_container(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    tag = props.get("tag") if props.get("tag") in {"div", "main", "header", "footer", "nav", "aside"} else "div"
    return f'<{tag} class="{attr(context.class_name)}">\n{join_children(children)}\n</{tag}>'


def render_columns(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    columns = "\n".join(f'<div class="column">{markup}</div>' for markup in children.values())
    return f'<div class="{attr(context.class_name)} columns">\n{columns}\n</div>'


def render_heading(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    try:
        level = min(max(int(props.get("level", 2)), 1), 6)
    except (TypeError, ValueError):
        level = 2
    text = html.escape(str(props.get("text", "")))
    return f'<h{level} class="{attr(context.class_name)}">{text}</h{level}>'


def render_text(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    text = html.escape(str(props.get("text", ""))).replace("\n", "<br>")
    return f'<p class="{attr(context.class_name)}">{text}</p>'


def render_rich_text(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    md = markdown.Markdown(extensions=["fenced_code", "tables"])
    body = md.convert(str(props.get("content", "")))
    return f'<div class="{attr(context.class_name)} rich-text">\n{body}\n</div>'


def _image_tag(props: dict, class_name: str = "") -> str:
    attrs = []
    if class_name:
        attrs.append(f'class="{attr(class_name)}"')
    attrs.append(f'src="{attr(props.get("src", ""))}"')
    attrs.append(f'alt="{attr(props.get("alt", ""))}"')
    for key in ("width", "height"):
        if props.get(key):
            attrs.append(f'{key}="{attr(props[key])}"')
    if props.get("lazy", True):
        attrs.append('loading="lazy"')
    return f"<img {' '.join(attrs)}>"


def render_image(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    href = props.get("href")
    if href:
        return f'<a class="{attr(context.class_name)}" href="{attr(href)}">{_image_tag(props)}</a>'
    return _image_tag(props, context.class_name)


def render_gallery(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    figures = []
    for item in props.get("items") or []:
        if not isinstance(item, dict) or not item.get("src"):
            continue
        caption = item.get("caption")
        caption_html = f"<figcaption>{html.escape(str(caption))}</figcaption>" if caption else ""
        figures.append(f"<figure>{_image_tag(item)}{caption_html}</figure>")
    return f'<div class="{attr(context.class_name)} gallery">\n' + "\n".join(figures) + "\n</div>"


def render_button(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    label = html.escape(str(props.get("label", "")))
    href = props.get("href")
    if href:
        return f'<a class="{attr(context.class_name)} button" href="{attr(href)}">{label}</a>'
    return f'<button class="{attr(context.class_name)}" type="button">{label}</button>'


def render_link(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    text = html.escape(str(props.get("text", "")))
    attrs = [f'class="{attr(context.class_name)}"', f'href="{attr(props.get("href", "#"))}"']
    if props.get("newTab"):
        attrs.append('target="_blank" rel="noopener"')
    return f"<a {' '.join(attrs)}>{text}</a>"


def render_video(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    attrs = [f'class="{attr(context.class_name)}"', f'src="{attr(props.get("src", ""))}"']
    if props.get("poster"):
        attrs.append(f'poster="{attr(props["poster"])}"')
    for flag in ("controls", "autoplay", "loop", "muted"):
        if props.get(flag, flag == "controls"):
            attrs.append(flag)
    return f"<video {' '.join(attrs)}></video>"


def render_spacer(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    try:
        height = int(props.get("height", 32))
    except (TypeError, ValueError):
        height = 32
    return f'<div class="{attr(context.class_name)}" style="height: {height}px" aria-hidden="true"></div>'


def render_divider(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    return f'<hr class="{attr(context.class_name)}">'


def code_language(props: dict) -> str:
    language = str(props.get("language") or "").strip()
    if language:
        return language
    ext = PurePosixPath(str(props.get("filename") or "")).suffix.lstrip(".")
    return LANGUAGES_BY_EXTENSION.get(ext, "text")


def render_code_block(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    code = str(props.get("code", ""))
    lang = code_language(props)
    try:
        lexer = get_lexer_by_name(lang, stripall=True)
        formatter = HtmlFormatter(linenos=bool(props.get("lineNumbers")), cssclass="codehilite")
        highlighted = highlight(code, lexer, formatter)
    except ClassNotFound:
        highlighted = f"<pre><code>{html.escape(code)}</code></pre>"
    return f'<div class="{attr(context.class_name)}" data-lang="{attr(lang)}">{highlighted}</div>'


def render_html(props: dict, children: Mapping[str, str], context: RenderContext) -> str:
    return f'<div class="{attr(context.class_name)}">{props.get("html", "")}</div>'


CORE_RENDERERS = {
    "Section": render_section,
    "Container": render_container,
    "Columns": render_columns,
    "Heading": render_heading,
    "Text": render_text,
    "RichText": render_rich_text,
    "Image": render_image,
    "Gallery": render_gallery,
    "Button": render_button,
    "Link": render_link,
    "Video": render_video,
    "Spacer": render_spacer,
    "Divider": render_divider,
    "CodeBlock": render_code_block,
    "Html": render_html,
}


def default_registry() -> RendererRegistry:
    return RendererRegistry(CORE_RENDERERS)


def default_schema_catalog() -> FieldSchemaCatalog:
    return FieldSchemaCatalog({name: dict(fields) for name, fields in CORE_FIELD_SCHEMAS.items()})
