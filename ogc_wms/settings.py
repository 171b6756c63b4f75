"""Immutable per-type settings for WMS catalog items."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

__all__ = ["WmsSettings", "DEFAULT_WMS_SETTINGS", "combine_parameters"]


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class WmsSettings:
    """Protocol constants and default request parameters of a catalog item type.

    Instances are never mutated; use :meth:`with_parameters` to derive a
    variant with additional default parameters.
    """

    service: str = "WMS"
    version: str = "1.3.0"
    feature_service: str = "WFS"
    feature_version: str = "1.1.0"
    feature_srs: str = "EPSG:4326"
    max_features: int = 1000
    legend_format: str = "image/png"
    default_data_url_type: str = "wfs"
    default_parameters: Mapping[str, Any] = field(
        default_factory=lambda: _frozen(
            {
                "transparent": True,
                "format": "image/png",
                "exceptions": "application/vnd.ogc.se_xml",
                "styles": "",
                "tiled": True,
            }
        )
    )

    def __post_init__(self) -> None:
        if not isinstance(self.default_parameters, MappingProxyType):
            object.__setattr__(self, "default_parameters", _frozen(self.default_parameters))

    def with_parameters(self, parameters: Mapping[str, Any]) -> "WmsSettings":
        return replace(
            self,
            default_parameters=combine_parameters(parameters, self.default_parameters),
        )

    def capabilities_query(self) -> str:
        return f"service={self.service}&version={self.version}&request=GetCapabilities"

    def feature_query(self, layers: str) -> str:
        return (
            f"service={self.feature_service}&version={self.feature_version}"
            f"&request=GetFeature&typeName={layers}&srsName={self.feature_srs}"
            f"&maxFeatures={self.max_features}"
        )

    def legend_query(self, layer: str) -> str:
        return (
            f"service={self.service}&version={self.version}&request=GetLegendGraphic"
            f"&format={self.legend_format}&layer={layer}"
        )


DEFAULT_WMS_SETTINGS = WmsSettings()


def combine_parameters(*mappings: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge ``mappings`` into a new dict; earlier mappings win on conflicts."""

    combined: dict[str, Any] = {}
    for mapping in mappings:
        if not mapping:
            continue
        for key, value in mapping.items():
            combined.setdefault(key, value)
    return combined
