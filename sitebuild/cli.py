from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

import yaml

from .builder import build_site
from .components import default_registry, default_schema_catalog
from .config import load_config, resolve_body_scripts, resolve_head_content
from .content import load_site
from .models import BUILD_MODES, AssetOptions, BuildOptions, BuildResult
from .utils import clean_output_dir, copy_static, parse_bool, parse_int, write_build_files

logger = logging.getLogger("sitebuild.cli")


def options_from_args(args: argparse.Namespace) -> BuildOptions:
    static_dir = Path(args.static)
    return BuildOptions(
        output_dir=args.output,
        minify=args.minify,
        optimize_assets=args.optimize_assets,
        inline_critical_css=args.inline_critical_css,
        source_maps=args.source_maps,
        base_url=(args.base_url or "").strip().rstrip("/"),
        generate_sitemap=args.sitemap,
        generate_robots=args.robots,
        head_content=resolve_head_content(args),
        body_scripts=resolve_body_scripts(args),
        mode=args.mode,
        manifest_version=args.manifest_version,
        asset_root=str(static_dir) if static_dir.is_dir() else None,
        assets=AssetOptions(
            optimize_images=args.optimize_images,
            max_image_width=args.max_image_width,
            image_quality=args.image_quality,
            generate_webp=args.webp,
            generate_avif=args.avif,
            inline_small_assets=args.inline_small_assets,
            inline_threshold=args.inline_threshold,
            timeout=args.asset_timeout,
        ),
    )


def run_build(args: argparse.Namespace) -> BuildResult:
    site_path = Path(args.site)
    static_dir = Path(args.static)
    output_dir = Path(args.output)
    project_root = Path.cwd()

    if not site_path.exists():
        print(f"Site file not found: {site_path}", file=sys.stderr)
        sys.exit(1)
    try:
        site = load_site(site_path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Invalid site file {site_path}: {exc}", file=sys.stderr)
        sys.exit(1)

    options = options_from_args(args)
    schema_catalog = default_schema_catalog().merged(site.schemas)
    logger.info("Building %d pages in %s mode", len(site.pages), options.mode)
    result = asyncio.run(build_site(site.pages, options, default_registry(), schema_catalog))
    if not result.success:
        print(f"Build failed: {result.error}", file=sys.stderr)
        return result

    if args.clean:
        clean_output_dir(output_dir, project_root)
    if static_dir.is_dir():
        copy_static(static_dir, output_dir)
    written = write_build_files(result.files, output_dir)
    stats = result.stats
    logger.info(
        "Wrote %d files (%d bytes, %d%% smaller than unminified); %d components, %d assets",
        written,
        stats.total_size,
        stats.savings_percent,
        stats.components_rendered,
        stats.assets_processed,
    )
    return result


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to build config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    def cfg_str(key: str, default: str) -> str:
        value = config.get(key)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = config.get(key)
        return default if value is None else parse_bool(value)

    def cfg_int(key: str, default: int) -> int:
        return parse_int(config.get(key), default)

    asset_defaults = AssetOptions()
    parser = argparse.ArgumentParser(description="Build a static site from page-builder data.")
    parser.add_argument("--config", default=pre_args.config, help="Path to build config file (TOML/YAML/JSON).")
    parser.add_argument("--site", default=cfg_str("site", "site.json"), help="Page model file (JSON/YAML).")
    parser.add_argument("--static", default=cfg_str("static", "static"), help="Directory of locally served assets.")
    parser.add_argument("--output", default=cfg_str("output", "dist"), help="Output directory for the site.")
    parser.add_argument("--base-url", default=cfg_str("base_url", ""), help="Public site URL for canonical links.")
    parser.add_argument(
        "--mode",
        default=cfg_str("mode", "production"),
        choices=BUILD_MODES,
        help="Build mode; only production builds minify and optimize.",
    )
    parser.add_argument(
        "--minify",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("minify", True),
        help="Minify CSS and HTML in production builds.",
    )
    parser.add_argument(
        "--optimize-assets",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("optimize_assets", True),
        help="Attach alternate formats and inline small assets.",
    )
    parser.add_argument(
        "--inline-critical-css",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("inline_critical_css", True),
        help="Inline critical CSS and preload the full stylesheet.",
    )
    parser.add_argument(
        "--source-maps",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("source_maps", False),
        help="Annotate unminified CSS with the component each rule comes from.",
    )
    parser.add_argument(
        "--sitemap",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("generate_sitemap", True),
        help="Generate sitemap.xml.",
    )
    parser.add_argument(
        "--robots",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("generate_robots", True),
        help="Generate robots.txt.",
    )
    parser.add_argument(
        "--optimize-images",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("optimize_images", asset_defaults.optimize_images),
        help="Add alternate image formats to the asset manifest.",
    )
    parser.add_argument(
        "--max-image-width",
        default=cfg_int("max_image_width", asset_defaults.max_image_width),
        type=int,
        help="Largest image width recorded for optimized images.",
    )
    parser.add_argument(
        "--image-quality",
        default=cfg_int("image_quality", asset_defaults.image_quality),
        type=int,
        help="Quality for generated image formats (1-100).",
    )
    parser.add_argument(
        "--webp",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("generate_webp", asset_defaults.generate_webp),
        help="Generate WebP alternates for images.",
    )
    parser.add_argument(
        "--avif",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("generate_avif", asset_defaults.generate_avif),
        help="Generate AVIF alternates for images.",
    )
    parser.add_argument(
        "--inline-small-assets",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("inline_small_assets", asset_defaults.inline_small_assets),
        help="Embed assets below the inline threshold as data URIs.",
    )
    parser.add_argument(
        "--inline-threshold",
        default=cfg_int("inline_threshold", asset_defaults.inline_threshold),
        type=int,
        help="Largest asset size in bytes that may be inlined.",
    )
    parser.add_argument(
        "--asset-timeout",
        default=float(config.get("asset_timeout") or asset_defaults.timeout),
        type=float,
        help="Seconds allowed for reading each local asset.",
    )
    parser.add_argument(
        "--manifest-version",
        default=cfg_str("manifest_version", "1.0.0"),
        help="Version string written into asset manifests.",
    )
    parser.add_argument("--head-html", default=cfg_str("head_html", ""), help="Inline HTML appended to <head>.")
    parser.add_argument("--head-file", default=cfg_str("head_file", ""), help="File appended to <head>.")
    parser.add_argument("--scripts-html", default=cfg_str("scripts_html", ""), help="Inline HTML before </body>.")
    parser.add_argument("--scripts-file", default=cfg_str("scripts_file", ""), help="File inserted before </body>.")
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", True),
        help="Clean output directory before writing.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    start = time.perf_counter()
    result = run_build(args)
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    if not result.success:
        sys.exit(1)
    print(f"Site generated in: {args.output}")
