from __future__ import annotations

import datetime as dt
import html
from typing import Iterable, Optional

from .models import Page
from .render import render_template
from .utils import date_prefix, join_url

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="{{lang}}">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{title}}</title>
{{description}}<link rel="canonical" href="{{canonical}}">
{{styles}}
{{head_content}}
</head>
<body>
{{body}}
{{scripts}}
</body>
</html>
"""
HOME_SLUGS = {"", "home"}
STYLESHEET_NAME = "styles.css"


def page_url(base_url: str, page: Page) -> str:
    return join_url(base_url, page.slug or page.id)


def build_style_tags(critical_css: str, inline_critical: bool, href: str = STYLESHEET_NAME) -> str:
    if not inline_critical:
        return f'<link rel="stylesheet" href="{html.escape(href)}">'
    href = html.escape(href)
    return "\n".join(
        [
            f"<style>{critical_css}</style>",
            f'<link rel="preload" href="{href}" as="style" onload="this.onload=null;this.rel=\'stylesheet\'">',
            f'<noscript><link rel="stylesheet" href="{href}"></noscript>',
        ]
    )


def build_document(
    page: Page,
    body_html: str,
    styles_html: str,
    base_url: str = "",
    head_content: str = "",
    body_scripts: str = "",
    lang: str = "en",
) -> str:
    description = ""
    if page.description:
        description = f'<meta name="description" content="{html.escape(page.description, quote=True)}">\n'
    return render_template(
        DOCUMENT_TEMPLATE,
        lang=html.escape(lang, quote=True),
        title=html.escape(page.title or ""),
        description=description,
        canonical=html.escape(page_url(base_url, page), quote=True),
        styles=styles_html,
        head_content=head_content,
        body=body_html,
        scripts=body_scripts,
    )


def sitemap_priority(page: Page) -> str:
    return "1.0" if page.slug in HOME_SLUGS else "0.8"


def build_sitemap(pages: Iterable[Page], base_url: str, now: Optional[dt.datetime] = None) -> str:
    items = []
    for page in pages:
        items.append(
            "\n".join(
                [
                    "<url>",
                    f"<loc>{html.escape(page_url(base_url, page))}</loc>",
                    f"<lastmod>{date_prefix(page.updated_at, now)}</lastmod>",
                    f"<priority>{sitemap_priority(page)}</priority>",
                    "</url>",
                ]
            )
        )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *items,
            "</urlset>",
            "",
        ]
    )


def build_robots(base_url: str) -> str:
    return f"User-agent: *\nAllow: /\n\nSitemap: {join_url(base_url, 'sitemap.xml')}\n"
