"""Asset discovery, optimisation metadata and the asset manifest."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import mimetypes
import re
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Iterator, Optional
from urllib.parse import unquote, urlsplit

from .models import ASSET_TYPES, AlternateFormat, Asset, AssetManifest, AssetOptions, ComponentInstance
from .registry import FieldSchemaCatalog
from .utils import iso_timestamp, percent_saved

logger = logging.getLogger("sitebuild.assets")

URL_KEYS = frozenset(
    {
        "src",
        "href",
        "url",
        "image",
        "imageurl",
        "backgroundimage",
        "backgroundvideo",
        "poster",
        "logo",
        "avatar",
        "thumbnail",
        "video",
        "videourl",
        "icon",
        "favicon",
        "file",
        "download",
    }
)
EXCLUDED_PREFIXES = ("data:", "javascript:", "mailto:", "tel:", "#")
REMOTE_PREFIXES = ("http://", "https://")
EXTENSION_TYPES = {
    "jpg": ("image", "image/jpeg"),
    "jpeg": ("image", "image/jpeg"),
    "png": ("image", "image/png"),
    "gif": ("image", "image/gif"),
    "webp": ("image", "image/webp"),
    "avif": ("image", "image/avif"),
    "svg": ("image", "image/svg+xml"),
    "bmp": ("image", "image/bmp"),
    "ico": ("image", "image/x-icon"),
    "mp4": ("video", "video/mp4"),
    "webm": ("video", "video/webm"),
    "ogg": ("video", "video/ogg"),
    "ogv": ("video", "video/ogg"),
    "mov": ("video", "video/quicktime"),
    "woff": ("font", "font/woff"),
    "woff2": ("font", "font/woff2"),
    "ttf": ("font", "font/ttf"),
    "otf": ("font", "font/otf"),
    "eot": ("font", "application/vnd.ms-fontobject"),
    "js": ("script", "text/javascript"),
    "mjs": ("script", "text/javascript"),
    "css": ("style", "text/css"),
}
DECLARED_KIND_TYPES = {"image": "image", "video": "video", "font": "font"}
DEFAULT_MIME = "application/octet-stream"
EXTENSION_RE = re.compile(r"\.([A-Za-z0-9]+)$")


def asset_id(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]


def url_extension(url: str) -> str:
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    match = EXTENSION_RE.search(path)
    return match.group(1).lower() if match else ""


def classify_url(url: str, declared_kind: Optional[str] = None) -> tuple[str, str]:
    """Return ``(asset type, mime type)``, trusting the extension first."""
    ext = url_extension(url)
    if ext in EXTENSION_TYPES:
        return EXTENSION_TYPES[ext]
    guessed, _ = mimetypes.guess_type(urlsplit(url).path) if ext else (None, None)
    if guessed:
        major = guessed.split("/", 1)[0]
        if major in {"image", "video", "font"}:
            return major, guessed
        if guessed == "text/css":
            return "style", guessed
        if "javascript" in guessed:
            return "script", guessed
        return "other", guessed
    if declared_kind in DECLARED_KIND_TYPES:
        return DECLARED_KIND_TYPES[declared_kind], DEFAULT_MIME
    return "other", DEFAULT_MIME


def is_asset_reference(key: Optional[str], value: str, url_fields: Optional[dict] = None) -> bool:
    candidate = value.strip()
    if not candidate:
        return False
    if candidate.lower().startswith(EXCLUDED_PREFIXES):
        return False
    if url_fields is not None:
        return key is not None and key in url_fields
    if key is not None and key.lower() in URL_KEYS:
        return True
    if any(char.isspace() for char in candidate):
        return False
    if candidate.startswith(REMOTE_PREFIXES) or candidate.startswith("/"):
        return True
    return url_extension(candidate) in EXTENSION_TYPES


def iter_string_values(value: object, key: Optional[str] = None, seen: Optional[set] = None) -> Iterator[tuple[Optional[str], str]]:
    """Yield ``(nearest key, string)`` pairs from a nested prop tree.

    Lists inherit the key they are stored under. Unknown value types are
    skipped and shared or cyclic containers are visited once.
    """
    if isinstance(value, str):
        yield key, value
        return
    if not isinstance(value, (dict, list, tuple)):
        return
    if seen is None:
        seen = set()
    if id(value) in seen:
        return
    seen.add(id(value))
    if isinstance(value, dict):
        for child_key, child in value.items():
            name = child_key if isinstance(child_key, str) else key
            yield from iter_string_values(child, name, seen)
    else:
        for child in value:
            yield from iter_string_values(child, key, seen)


def extract_assets(
    components: Iterable[ComponentInstance],
    schema_catalog: Optional[FieldSchemaCatalog] = None,
) -> list[Asset]:
    registry: dict[str, Asset] = {}
    for component in components:
        component_id = getattr(component, "id", None)
        component_type = getattr(component, "type", None)
        props = getattr(component, "props", None)
        if component_id is None or not isinstance(props, dict):
            continue
        url_fields = None
        if schema_catalog is not None and schema_catalog.has_schema(component_type):
            url_fields = schema_catalog.url_fields(component_type)
        try:
            for key, value in iter_string_values(props):
                if not is_asset_reference(key, value, url_fields):
                    continue
                declared_kind = url_fields.get(key) if url_fields else None
                _record_asset(registry, value, component_id, declared_kind)
        except RecursionError:
            logger.debug("Prop tree of %s is too deep; remaining values skipped", component_id)
    logger.debug("Extracted %d assets", len(registry))
    return list(registry.values())


def _record_asset(registry: dict[str, Asset], url: str, component_id: str, declared_kind: Optional[str]) -> None:
    key = asset_id(url)
    existing = registry.get(key)
    if existing is not None:
        if component_id not in existing.used_by:
            existing.used_by.append(component_id)
        return
    asset_type, mime_type = classify_url(url, declared_kind)
    registry[key] = Asset(
        id=key,
        original_url=url,
        optimized_url=url,
        type=asset_type,
        mime_type=mime_type,
        used_by=[component_id],
    )


def optimize_assets(assets: Iterable[Asset], options: Optional[AssetOptions] = None) -> list[Asset]:
    """Attach alternate formats and inline eligibility.

    No pixels are re-encoded here: alternate URLs point at files a transcoding
    step is expected to produce next to the original.
    """
    options = options or AssetOptions()
    optimized = []
    for asset in assets:
        item = replace(
            asset,
            alternate_formats=list(asset.alternate_formats),
            used_by=list(asset.used_by),
        )
        if item.type == "image" and options.optimize_images:
            _limit_dimensions(item, options.max_image_width)
            item.alternate_formats = _alternate_formats(item, options)
        if (
            options.inline_small_assets
            and item.original_size is not None
            and item.original_size < options.inline_threshold
        ):
            item.inlined = True
        optimized.append(item)
    return optimized


def _limit_dimensions(asset: Asset, max_width: int) -> None:
    if not asset.width or max_width <= 0 or asset.width <= max_width:
        return
    if asset.height:
        asset.height = round(asset.height * max_width / asset.width)
    asset.width = max_width


def _alternate_formats(asset: Asset, options: AssetOptions) -> list[AlternateFormat]:
    formats = list(asset.alternate_formats)
    known = {item.format for item in formats}
    parts = urlsplit(asset.optimized_url)
    match = EXTENSION_RE.search(parts.path)
    if not match:
        return formats
    current = match.group(1).lower()
    for target in options.target_formats():
        if target == current or target in known:
            continue
        path = parts.path[: match.start()] + "." + target
        url = parts._replace(path=path).geturl()
        formats.append(AlternateFormat(format=target, url=url, quality=options.image_quality))
        known.add(target)
    return formats


def generate_asset_manifest(
    assets: Iterable[Asset],
    version: str = "1.0.0",
    generated_at: Optional[str] = None,
) -> AssetManifest:
    items = list(assets)
    by_type = {asset_type: 0 for asset_type in ASSET_TYPES}
    total_original = 0
    total_optimized = 0
    for asset in items:
        by_type[asset.type if asset.type in by_type else "other"] += 1
        original = asset.original_size or 0
        total_original += original
        total_optimized += asset.optimized_size if asset.optimized_size is not None else original
    return AssetManifest(
        generated_at=generated_at or iso_timestamp(),
        version=version,
        total_assets=len(items),
        total_original_size=total_original,
        total_optimized_size=total_optimized,
        savings_percent=percent_saved(total_original, total_optimized),
        assets=items,
        by_type=by_type,
    )


def local_asset_path(asset_root: Path, url: str) -> Optional[Path]:
    if url.startswith(REMOTE_PREFIXES) or url.startswith("//"):
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    if parts.scheme or parts.netloc or not parts.path:
        return None
    root = asset_root.resolve()
    candidate = (root / unquote(parts.path).lstrip("/")).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        return None
    return candidate


async def load_local_assets(
    assets: Iterable[Asset],
    asset_root: Path,
    timeout: float = 5.0,
) -> tuple[list[Asset], dict[str, bytes]]:
    """Read locally served assets so their sizes are known.

    Each read runs under its own timeout; a failed or slow asset keeps its
    original, unmeasured record instead of failing the build.
    """
    root = Path(asset_root)

    async def load(asset: Asset) -> tuple[Asset, Optional[bytes]]:
        path = local_asset_path(root, asset.original_url)
        if path is None:
            logger.debug("No local file for %s", asset.original_url)
            return asset, None
        try:
            data = await asyncio.wait_for(asyncio.to_thread(path.read_bytes), timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out reading %s; using original URL", path)
            return asset, None
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            return asset, None
        return replace(asset, original_size=len(data)), data

    results = await asyncio.gather(*(load(asset) for asset in assets))
    loaded = [asset for asset, _ in results]
    payloads = {asset.id: data for asset, data in results if data is not None}
    return loaded, payloads


def embed_inlined_assets(assets: Iterable[Asset], payloads: dict[str, bytes]) -> list[Asset]:
    embedded = []
    for asset in assets:
        data = payloads.get(asset.id)
        if asset.inlined and data is not None and asset.data_uri is None:
            encoded = base64.b64encode(data).decode("ascii")
            asset = replace(asset, data_uri=f"data:{asset.mime_type};base64,{encoded}")
        embedded.append(asset)
    return embedded
