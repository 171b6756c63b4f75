"""Locate layers in a capabilities tree and resolve their geographic extent."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import LayerNotFoundError, ServiceMetadataMissingError
from .tree import CapabilitiesTree, TreeMapping, TreeSequence

__all__ = [
    "GeoBoundingBox",
    "WORLD",
    "split_layer_names",
    "find_layer",
    "find_layers",
    "find_required_layers",
    "service_of",
    "root_layer_of",
    "bounding_box_of",
    "merge_bounding_boxes",
]


@dataclass(frozen=True)
class GeoBoundingBox:
    """A longitude/latitude box in decimal degrees.

    ``west <= east`` is not enforced and boxes crossing the antimeridian are
    not treated specially.
    """

    west: float
    south: float
    east: float
    north: float

    def as_list(self) -> list[float]:
        return [self.west, self.south, self.east, self.north]

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "GeoBoundingBox":
        if len(values) != 4:
            raise ValueError("A bounding box needs exactly four values: west, south, east, north.")
        west, south, east, north = (float(value) for value in values)
        return cls(west=west, south=south, east=east, north=north)


WORLD = GeoBoundingBox(west=-180.0, south=-90.0, east=180.0, north=90.0)


def split_layer_names(names: str) -> list[str]:
    return [name.strip() for name in names.split(",")]


def find_layer(node: CapabilitiesTree | None, name: str) -> TreeMapping | None:
    """Return the first layer, in document order, whose Name or Title is ``name``."""

    if node is None or not name:
        return None

    if isinstance(node, TreeSequence):
        for item in node.items:
            found = find_layer(item, name)
            if found is not None:
                return found
        return None

    if not isinstance(node, TreeMapping):
        return None

    if node.text("Name") == name or node.text("Title") == name:
        return node

    for child in node.all("Layer"):
        found = find_layer(child, name)
        if found is not None:
            return found

    return None


def find_layers(root: CapabilitiesTree | None, names: str) -> list[TreeMapping | None]:
    """Resolve each comma-separated name in ``names`` independently.

    The result has one entry per requested name, in request order; names with
    no matching layer yield ``None`` at their position.
    """

    return [find_layer(root, name) for name in split_layer_names(names)]


def find_required_layers(root: CapabilitiesTree | None, names: str) -> list[TreeMapping]:
    """Like :func:`find_layers`, but every requested name must resolve.

    Raises
    ------
    LayerNotFoundError
        Naming every requested layer that has no match.
    """

    layers = find_layers(root, names)
    missing = [
        name for name, layer in zip(split_layer_names(names), layers) if layer is None
    ]
    if missing:
        raise LayerNotFoundError(f"Layers not found: {', '.join(repr(name) for name in missing)}.")
    return [layer for layer in layers if layer is not None]


def service_of(capabilities: TreeMapping) -> CapabilitiesTree:
    service = capabilities.get("Service")
    if service is None:
        raise ServiceMetadataMissingError("Capabilities document has no Service block.")
    return service


def root_layer_of(capabilities: TreeMapping) -> CapabilitiesTree | None:
    capability = capabilities.get("Capability")
    if isinstance(capability, TreeMapping):
        return capability.get("Layer")
    return None


def bounding_box_of(layer: TreeMapping) -> GeoBoundingBox | None:
    geographic = layer.get("EX_GeographicBoundingBox")  # required in WMS 1.3.0
    if isinstance(geographic, TreeMapping):
        return GeoBoundingBox(
            west=_coordinate(geographic, "westBoundLongitude"),
            south=_coordinate(geographic, "southBoundLatitude"),
            east=_coordinate(geographic, "eastBoundLongitude"),
            north=_coordinate(geographic, "northBoundLatitude"),
        )

    lat_lon = layer.get("LatLonBoundingBox")  # WMS 1.0.0 through 1.1.1
    if isinstance(lat_lon, TreeMapping):
        return GeoBoundingBox(
            west=_coordinate(lat_lon, "minx"),
            south=_coordinate(lat_lon, "miny"),
            east=_coordinate(lat_lon, "maxx"),
            north=_coordinate(lat_lon, "maxy"),
        )

    return None


def merge_bounding_boxes(layers: Iterable[TreeMapping | None]) -> GeoBoundingBox | None:
    """Return the union of the boxes of ``layers``.

    Raises
    ------
    LayerNotFoundError
        If ``layers`` is empty or contains an unresolved (``None``) layer.
    """

    layers = list(layers)
    if not layers:
        raise LayerNotFoundError("Cannot merge the extent of an empty set of layers.")
    if any(layer is None for layer in layers):
        raise LayerNotFoundError("Cannot merge the extent of layers that were not found.")

    merged: GeoBoundingBox | None = None
    for layer in layers:
        box = bounding_box_of(layer)
        if box is None:
            continue
        if merged is None:
            merged = box
            continue
        merged = GeoBoundingBox(
            west=min(merged.west, box.west),
            south=min(merged.south, box.south),
            east=max(merged.east, box.east),
            north=max(merged.north, box.north),
        )

    return merged


def _coordinate(node: TreeMapping, name: str) -> float:
    value = node.text(name)
    if value is None:
        raise ValueError(f"Bounding box is missing '{name}'.")
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Bounding box value '{name}={value}' is not a number.") from exc
