"""Data models shared by every stage of the build pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

ASSET_TYPES = ("image", "video", "font", "script", "style", "other")
BUILD_MODES = ("production", "development", "preview")


@dataclass
class ComponentInstance:
    """One configured occurrence of a component type on a page."""

    id: str
    type: str
    props: dict = field(default_factory=dict)
    zones: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class Page:
    id: str
    slug: Optional[str]
    title: str
    root_component_ids: list[str] = field(default_factory=list)
    description: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def path_segment(self) -> str:
        return (self.slug or "").strip("/") or self.id


@dataclass
class AlternateFormat:
    format: str
    url: str
    size: Optional[int] = None
    quality: Optional[int] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"format": self.format, "url": self.url}
        if self.size is not None:
            data["size"] = self.size
        if self.quality is not None:
            data["quality"] = self.quality
        return data


@dataclass
class Asset:
    """Deduplicated record of one referenced resource, keyed by a hash of its URL."""

    id: str
    original_url: str
    optimized_url: str
    type: str
    mime_type: str
    original_size: Optional[int] = None
    optimized_size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    alternate_formats: list[AlternateFormat] = field(default_factory=list)
    inlined: bool = False
    data_uri: Optional[str] = None
    used_by: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "originalUrl": self.original_url,
            "optimizedUrl": self.optimized_url,
            "type": self.type,
            "mimeType": self.mime_type,
        }
        optional = {
            "originalSize": self.original_size,
            "optimizedSize": self.optimized_size,
            "width": self.width,
            "height": self.height,
            "dataUri": self.data_uri,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        data["alternateFormats"] = [item.to_dict() for item in self.alternate_formats]
        data["inlined"] = self.inlined
        data["usedBy"] = list(self.used_by)
        return data


@dataclass
class AssetManifest:
    generated_at: str
    version: str
    total_assets: int
    total_original_size: int
    total_optimized_size: int
    savings_percent: int
    assets: list[Asset]
    by_type: dict[str, int]

    def to_dict(self) -> dict:
        return {
            "generatedAt": self.generated_at,
            "version": self.version,
            "totalAssets": self.total_assets,
            "totalOriginalSize": self.total_original_size,
            "totalOptimizedSize": self.total_optimized_size,
            "savingsPercent": self.savings_percent,
            "assets": [asset.to_dict() for asset in self.assets],
            "byType": dict(self.by_type),
        }


@dataclass
class BuildFile:
    path: str
    type: str
    size: int
    content: Optional[str] = None
    minified: Optional[bool] = None

    @classmethod
    def from_text(cls, path: str, file_type: str, content: str, minified: Optional[bool] = None) -> "BuildFile":
        return cls(
            path=path,
            type=file_type,
            size=len(content.encode("utf-8")),
            content=content,
            minified=minified,
        )


@dataclass
class BuildStats:
    pages_built: int = 0
    components_rendered: int = 0
    assets_processed: int = 0
    total_size: int = 0
    original_size: int = 0
    savings_percent: int = 0

    def to_dict(self) -> dict:
        return {
            "pagesBuilt": self.pages_built,
            "componentsRendered": self.components_rendered,
            "assetsProcessed": self.assets_processed,
            "totalSize": self.total_size,
            "originalSize": self.original_size,
            "savingsPercent": self.savings_percent,
        }


@dataclass
class BuildResult:
    success: bool
    duration: float
    files: list[BuildFile] = field(default_factory=list)
    stats: BuildStats = field(default_factory=BuildStats)
    error: Optional[str] = None
    asset_manifest: Optional[AssetManifest] = None


@dataclass
class AssetOptions:
    """Settings for the asset optimizer and local asset loading."""

    optimize_images: bool = True
    max_image_width: int = 1920
    image_quality: int = 80
    generate_webp: bool = True
    generate_avif: bool = False
    inline_small_assets: bool = True
    inline_threshold: int = 4096
    timeout: float = 5.0

    def target_formats(self) -> list[str]:
        formats = []
        if self.generate_webp:
            formats.append("webp")
        if self.generate_avif:
            formats.append("avif")
        return formats


@dataclass
class BuildOptions:
    """Flat build configuration; defaults describe a production build."""

    output_dir: Optional[str] = None
    minify: bool = True
    optimize_assets: bool = True
    inline_critical_css: bool = True
    source_maps: bool = False
    base_url: str = ""
    generate_sitemap: bool = True
    generate_robots: bool = True
    head_content: str = ""
    body_scripts: str = ""
    mode: str = "production"
    manifest_version: str = "1.0.0"
    asset_root: Optional[str] = None
    assets: AssetOptions = field(default_factory=AssetOptions)

    def __post_init__(self) -> None:
        if self.mode not in BUILD_MODES:
            raise ValueError(f"Unknown build mode: {self.mode!r} (expected one of {', '.join(BUILD_MODES)})")

    @property
    def is_production(self) -> bool:
        return self.mode == "production"

    @property
    def should_minify(self) -> bool:
        return self.minify and self.is_production

