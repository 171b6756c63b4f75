"""Load catalog definitions from YAML files."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .catalog_item import WebMapServiceCatalogItem
from .errors import ConfigurationError
from .fetch import CorsProxy, DocumentFetcher
from .serialization import catalog_item_from_json
from .settings import DEFAULT_WMS_SETTINGS, WmsSettings

__all__ = ["CatalogConfig", "parse_catalog_config", "load_catalog_config", "build_catalog_items"]


@dataclass(frozen=True)
class CatalogConfig:
    items: tuple[Mapping[str, Any], ...]
    cors_proxy: CorsProxy | None = None
    settings: WmsSettings = DEFAULT_WMS_SETTINGS


def load_catalog_config(path: Path) -> CatalogConfig:
    """Read a catalog definition file.

    The file holds an ``items`` list of catalog items in their JSON form, an
    optional ``corsProxy`` block (``url``, ``domains``, ``alwaysUseProxy``) and
    an optional ``wms`` block with ``version`` and ``defaultParameters``.

    Raises
    ------
    ConfigurationError
        If the file is missing, is not valid YAML or has the wrong shape.
    """

    if not path.exists():
        raise ConfigurationError(f"Catalog file '{path}' does not exist.")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Catalog file '{path}' is not valid YAML: {exc}") from exc

    return parse_catalog_config(data, source=str(path))


def parse_catalog_config(data: Any, *, source: str = "<catalog>") -> CatalogConfig:
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Catalog '{source}' must be a mapping.")

    items = data.get("items")
    if not isinstance(items, list) or not all(isinstance(item, Mapping) for item in items):
        raise ConfigurationError(f"Catalog '{source}' must contain a list of 'items'.")

    return CatalogConfig(
        items=tuple(items),
        cors_proxy=_parse_cors_proxy(data.get("corsProxy"), source),
        settings=_parse_settings(data.get("wms"), source),
    )


def _parse_cors_proxy(data: Any, source: str) -> CorsProxy | None:
    if data is None:
        return None
    if not isinstance(data, Mapping) or not isinstance(data.get("url"), str):
        raise ConfigurationError(f"'corsProxy' in '{source}' needs a 'url'.")

    domains = data.get("domains") or []
    if not isinstance(domains, list):
        raise ConfigurationError(f"'corsProxy.domains' in '{source}' must be a list.")

    return CorsProxy(
        base_url=data["url"],
        proxy_domains=tuple(str(domain) for domain in domains),
        always_use_proxy=bool(data.get("alwaysUseProxy", False)),
    )


def _parse_settings(data: Any, source: str) -> WmsSettings:
    if data is None:
        return DEFAULT_WMS_SETTINGS
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"'wms' in '{source}' must be a mapping.")

    settings = DEFAULT_WMS_SETTINGS
    version = data.get("version")
    if version is not None:
        settings = WmsSettings(version=str(version), default_parameters=settings.default_parameters)

    parameters = data.get("defaultParameters")
    if parameters is not None:
        if not isinstance(parameters, Mapping):
            raise ConfigurationError(f"'wms.defaultParameters' in '{source}' must be a mapping.")
        settings = settings.with_parameters(parameters)

    return settings


def build_catalog_items(
    config: CatalogConfig,
    *,
    fetcher: DocumentFetcher | None = None,
) -> list[WebMapServiceCatalogItem]:
    items: list[WebMapServiceCatalogItem] = []
    for index, entry in enumerate(config.items):
        try:
            item = catalog_item_from_json(
                entry,
                proxy=config.cors_proxy,
                fetcher=fetcher,
                settings=config.settings,
            )
        except (TypeError, ValueError, KeyError) as exc:
            raise ConfigurationError(f"Catalog item {index} is invalid: {exc}") from exc
        items.append(item)
    return items
