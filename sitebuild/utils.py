from __future__ import annotations

import datetime as dt
import math
import shutil
import sys
from pathlib import Path
from typing import Iterable, Optional


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    return f"{base}/{path}"


def percent_saved(original: int, optimized: int) -> int:
    if not original or original <= 0:
        return 0
    ratio = (original - optimized) / original * 100
    # Half-up rounding, so 12.5 -> 13 and -12.5 -> -12.
    return math.floor(ratio + 0.5)


def date_prefix(value: Optional[str], now: Optional[dt.datetime] = None) -> str:
    if value:
        return str(value)[:10]
    current = now or dt.datetime.now(dt.timezone.utc)
    return current.strftime("%Y-%m-%d")


def iso_timestamp(value: Optional[dt.datetime] = None) -> str:
    value = value or dt.datetime.now(dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def write_build_files(files: Iterable, output_dir: Path) -> int:
    written = 0
    for build_file in files:
        if build_file.content is None:
            continue
        write_text(output_dir / build_file.path, build_file.content)
        written += 1
    return written


def copy_static(static_dir: Path, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    for item in static_dir.iterdir():
        dest = output_dir / item.name
        if item.is_dir():
            if dest.exists():
                shutil.rmtree(dest)
            shutil.copytree(item, dest)
        else:
            shutil.copy2(item, dest)


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        print("Refusing to clean project root.", file=sys.stderr)
        sys.exit(1)
    if not output_resolved.is_relative_to(root_resolved):
        print("Refusing to clean output directory outside project root.", file=sys.stderr)
        sys.exit(1)
    shutil.rmtree(output_dir)
