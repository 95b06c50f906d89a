"""Per-page and whole-site build orchestration.

Both entry points always return a :class:`BuildResult`; exceptions raised by
any stage are converted into ``success=False`` results at the page boundary.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .assets import (
    embed_inlined_assets,
    extract_assets,
    generate_asset_manifest,
    load_local_assets,
    optimize_assets,
)
from .components import default_registry, default_schema_catalog
from .css import CSSOptions, extract_critical_css, generate_page_css, minify_css
from .models import BuildFile, BuildOptions, BuildResult, BuildStats, ComponentInstance, Page
from .pages import STYLESHEET_NAME, build_document, build_robots, build_sitemap, build_style_tags
from .registry import FieldSchemaCatalog, RendererRegistry
from .render import RenderOptions, RenderSession, minify_html
from .rewrite import rewrite_asset_urls
from .utils import percent_saved

logger = logging.getLogger("sitebuild.builder")


def text_size(text: str) -> int:
    return len(text.encode("utf-8"))


async def build_page(
    page: Page,
    components: Sequence[ComponentInstance],
    options: Optional[BuildOptions] = None,
    registry: Optional[RendererRegistry] = None,
    schema_catalog: Optional[FieldSchemaCatalog] = None,
) -> BuildResult:
    options = options or BuildOptions()
    registry = registry if registry is not None else default_registry()
    schema_catalog = schema_catalog if schema_catalog is not None else default_schema_catalog()
    start = time.perf_counter()
    files: list[BuildFile] = []
    minify = options.should_minify

    try:
        prefix = page.path_segment
        assets = extract_assets(components, schema_catalog)
        payloads: dict[str, bytes] = {}
        if options.asset_root:
            assets, payloads = await load_local_assets(assets, Path(options.asset_root), options.assets.timeout)
        if options.optimize_assets and options.is_production:
            assets = optimize_assets(assets, options.assets)
            assets = embed_inlined_assets(assets, payloads)
        rewritten = rewrite_asset_urls(components, assets, schema_catalog)

        raw_css = generate_page_css(rewritten, CSSOptions(annotate=options.source_maps and not minify))
        css = minify_css(raw_css) if minify else raw_css
        files.append(BuildFile.from_text(f"{prefix}/{STYLESHEET_NAME}", "css", css, minified=minify))
        critical_css = extract_critical_css(css) if options.inline_critical_css else ""

        session = RenderSession(
            rewritten,
            registry,
            RenderOptions(minify=minify, include_data_attributes=not minify),
        )
        body_html = session.render_ids(page.root_component_ids)
        styles_html = build_style_tags(critical_css, options.inline_critical_css)
        raw_document = build_document(
            page,
            body_html,
            styles_html,
            base_url=options.base_url,
            head_content=options.head_content,
            body_scripts=options.body_scripts,
        )
        document = minify_html(raw_document) if minify else raw_document
        files.append(BuildFile.from_text(f"{prefix}/index.html", "html", document, minified=minify))

        manifest = generate_asset_manifest(assets, options.manifest_version)
        manifest_json = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=True)
        files.append(BuildFile.from_text(f"{prefix}/asset-manifest.json", "json", manifest_json))

        total_size = sum(item.size for item in files)
        original_size = text_size(raw_css) + text_size(raw_document) + text_size(manifest_json)
        stats = BuildStats(
            pages_built=1,
            components_rendered=session.rendered,
            assets_processed=len(assets),
            total_size=total_size,
            original_size=original_size,
            savings_percent=percent_saved(original_size, total_size),
        )
    except Exception as exc:
        logger.error("Failed to build page %s: %s", page.id, exc)
        return BuildResult(
            success=False,
            error=str(exc) or exc.__class__.__name__,
            duration=time.perf_counter() - start,
            files=files,
            stats=BuildStats(),
        )

    logger.debug("Built page %s (%d components, %d assets)", page.id, stats.components_rendered, stats.assets_processed)
    return BuildResult(
        success=True,
        duration=time.perf_counter() - start,
        files=files,
        stats=stats,
        asset_manifest=manifest,
    )


def merge_stats(stats: Iterable[BuildStats]) -> BuildStats:
    total = BuildStats()
    for item in stats:
        total.pages_built += item.pages_built
        total.components_rendered += item.components_rendered
        total.assets_processed += item.assets_processed
        total.total_size += item.total_size
        total.original_size += item.original_size
    total.savings_percent = percent_saved(total.original_size, total.total_size)
    return total


async def build_site(
    pages: Iterable[tuple[Page, Sequence[ComponentInstance]]],
    options: Optional[BuildOptions] = None,
    registry: Optional[RendererRegistry] = None,
    schema_catalog: Optional[FieldSchemaCatalog] = None,
) -> BuildResult:
    """Build every page in order, stopping at the first failed page."""
    options = options or BuildOptions()
    registry = registry if registry is not None else default_registry()
    schema_catalog = schema_catalog if schema_catalog is not None else default_schema_catalog()
    start = time.perf_counter()
    files: list[BuildFile] = []
    page_stats: list[BuildStats] = []
    built_pages: list[Page] = []

    try:
        for page, components in pages:
            result = await build_page(page, components, options, registry, schema_catalog)
            if not result.success:
                return BuildResult(
                    success=False,
                    error=f"Failed to build page {page.id}: {result.error}",
                    duration=time.perf_counter() - start,
                    files=files,
                    stats=merge_stats(page_stats),
                )
            files.extend(result.files)
            page_stats.append(result.stats)
            built_pages.append(page)

        if options.generate_sitemap:
            files.append(BuildFile.from_text("sitemap.xml", "other", build_sitemap(built_pages, options.base_url)))
        if options.generate_robots:
            files.append(BuildFile.from_text("robots.txt", "other", build_robots(options.base_url)))
    except Exception as exc:
        logger.error("Site build aborted: %s", exc)
        return BuildResult(
            success=False,
            error=str(exc) or exc.__class__.__name__,
            duration=time.perf_counter() - start,
            files=files,
            stats=merge_stats(page_stats),
        )

    logger.info("Built %d pages into %d files", len(built_pages), len(files))
    return BuildResult(
        success=True,
        duration=time.perf_counter() - start,
        files=files,
        stats=merge_stats(page_stats),
    )
