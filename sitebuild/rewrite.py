from __future__ import annotations

import copy
from typing import Iterable, Optional

from .models import Asset, ComponentInstance
from .registry import FieldSchemaCatalog


def build_url_map(assets: Iterable[Asset]) -> dict[str, str]:
    url_map = {}
    for asset in assets:
        if asset.inlined and asset.data_uri:
            url_map[asset.original_url] = asset.data_uri
        else:
            url_map[asset.original_url] = asset.optimized_url
    return url_map


def rewrite_asset_urls(
    components: Iterable[ComponentInstance],
    assets: Iterable[Asset],
    schema_catalog: Optional[FieldSchemaCatalog] = None,
) -> list[ComponentInstance]:
    """Return a deep copy of ``components`` with asset URLs substituted.

    The input list and every object reachable from it are left untouched.
    For component types with a declared schema only URL-bearing keys are
    rewritten, matching what extraction considered.
    """
    url_map = build_url_map(assets)
    cloned = copy.deepcopy(list(components))
    if not url_map:
        return cloned
    seen: set[int] = set()
    for component in cloned:
        url_fields = None
        if schema_catalog is not None and schema_catalog.has_schema(component.type):
            url_fields = schema_catalog.url_fields(component.type)
        if isinstance(component.props, dict):
            _rewrite_value(component.props, None, url_map, url_fields, seen)
    return cloned


def _rewrite_value(
    node: object,
    key: Optional[str],
    url_map: dict[str, str],
    url_fields: Optional[dict],
    seen: set[int],
) -> object:
    if isinstance(node, str):
        if node in url_map and (url_fields is None or key in url_fields):
            return url_map[node]
        return node
    if isinstance(node, tuple):
        return tuple(_rewrite_value(item, key, url_map, url_fields, seen) for item in node)
    if not isinstance(node, (dict, list)) or id(node) in seen:
        return node
    seen.add(id(node))
    if isinstance(node, dict):
        for child_key, value in list(node.items()):
            name = child_key if isinstance(child_key, str) else key
            node[child_key] = _rewrite_value(value, name, url_map, url_fields, seen)
    else:
        for index, value in enumerate(node):
            node[index] = _rewrite_value(value, key, url_map, url_fields, seen)
    return node
