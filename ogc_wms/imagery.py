"""Request description handed to the imagery renderer."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .layers import GeoBoundingBox

__all__ = [
    "TilingScheme",
    "GetFeatureInfoFormat",
    "ImageryRequest",
    "maximum_level_from_scale_denominator",
]

WGS84_MAXIMUM_RADIUS = 6378137.0
TILE_WIDTH = 256
# Standardized rendering pixel size from WMS 1.3.0, section 7.2.4.6.9.
METERS_PER_PIXEL = 0.00028
SCALE_EPSILON = 1e-6


class TilingScheme(Enum):
    GEOGRAPHIC = "geographic"
    WEB_MERCATOR = "web-mercator"


@dataclass(frozen=True)
class GetFeatureInfoFormat:
    type: str
    format: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.format is not None:
            data["format"] = self.format
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GetFeatureInfoFormat":
        if not isinstance(data, Mapping) or not isinstance(data.get("type"), str):
            raise ValueError("A GetFeatureInfo format needs a 'type'.")
        return cls(type=data["type"], format=data.get("format"))


@dataclass(frozen=True)
class ImageryRequest:
    url: str
    layers: str
    parameters: Mapping[str, Any]
    get_feature_info_parameters: Mapping[str, Any]
    tiling_scheme: TilingScheme
    rectangle: GeoBoundingBox
    maximum_level: int | None = None
    get_feature_info_formats: tuple[GetFeatureInfoFormat, ...] | None = None
    time: str | None = field(default=None)


def maximum_level_from_scale_denominator(min_scale_denominator: float) -> int:
    """Return the deepest tile level worth requesting for ``min_scale_denominator``."""

    if min_scale_denominator <= SCALE_EPSILON:
        return 0

    circumference = 2 * math.pi * WGS84_MAXIMUM_RADIUS
    level0_scale_denominator = circumference / TILE_WIDTH / METERS_PER_PIXEL
    ratio = level0_scale_denominator / (min_scale_denominator - SCALE_EPSILON)
    return math.floor(math.log2(ratio))
