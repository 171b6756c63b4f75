"""Save and restore catalog items as JSON-compatible mappings.

Overridable properties are written from their explicit value only, never from
what they would derive, so a restored item keeps deriving whatever was not
explicitly set.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Mapping

from loguru import logger

from .catalog_item import WebMapServiceCatalogItem
from .imagery import GetFeatureInfoFormat, TilingScheme
from .layers import GeoBoundingBox
from .time_dimension import TimeInterval, parse_timestamp

__all__ = [
    "UPDATERS",
    "SERIALIZERS",
    "update_from_json",
    "serialize_to_json",
    "catalog_item_from_json",
]

Updater = Callable[[WebMapServiceCatalogItem, Any], None]
Serializer = Callable[[WebMapServiceCatalogItem], Any]


def _attribute_updater(attribute: str) -> Updater:
    def update(item: WebMapServiceCatalogItem, value: Any) -> None:
        setattr(item, attribute, value)

    return update


def _attribute_serializer(attribute: str) -> Serializer:
    def serialize(item: WebMapServiceCatalogItem) -> Any:
        return getattr(item, attribute)

    return serialize


def _override_serializer(attribute: str, encode: Callable[[Any], Any] | None = None) -> Serializer:
    def serialize(item: WebMapServiceCatalogItem) -> Any:
        raw = item.override_fields()[attribute].raw
        if raw is None or encode is None:
            return raw
        return encode(raw)

    return serialize


def _decode_rectangle(value: Any) -> GeoBoundingBox | None:
    if value is None:
        return None
    if isinstance(value, GeoBoundingBox):
        return value
    if isinstance(value, Mapping):
        return GeoBoundingBox(
            west=float(value["west"]),
            south=float(value["south"]),
            east=float(value["east"]),
            north=float(value["north"]),
        )
    return GeoBoundingBox.from_sequence(value)


def _encode_intervals(intervals: Any) -> list[dict[str, str]]:
    return [
        {
            "start": interval.start.isoformat(),
            "stop": interval.stop.isoformat(),
            "label": interval.label,
        }
        for interval in intervals
    ]


def _decode_intervals(value: Any) -> tuple[TimeInterval, ...] | None:
    if value is None:
        return None
    intervals = []
    for entry in value:
        if isinstance(entry, TimeInterval):
            intervals.append(entry)
            continue
        intervals.append(
            TimeInterval(
                start=parse_timestamp(entry["start"]),
                stop=parse_timestamp(entry["stop"]),
                label=str(entry.get("label", entry["start"])),
            )
        )
    return tuple(intervals)


def _update_rectangle(item: WebMapServiceCatalogItem, value: Any) -> None:
    item.rectangle = _decode_rectangle(value)


def _update_intervals(item: WebMapServiceCatalogItem, value: Any) -> None:
    item.intervals = _decode_intervals(value)


def _update_tiling_scheme(item: WebMapServiceCatalogItem, value: Any) -> None:
    item.tiling_scheme = None if value is None else TilingScheme(value)


def _serialize_tiling_scheme(item: WebMapServiceCatalogItem) -> str | None:
    if item.tiling_scheme is None:
        return None
    return item.tiling_scheme.value


def _update_feature_info_formats(item: WebMapServiceCatalogItem, value: Any) -> None:
    if value is None:
        item.get_feature_info_formats = None
        return
    item.get_feature_info_formats = tuple(GetFeatureInfoFormat.from_dict(entry) for entry in value)


def _serialize_feature_info_formats(item: WebMapServiceCatalogItem) -> list[dict[str, Any]] | None:
    if item.get_feature_info_formats is None:
        return None
    return [entry.to_dict() for entry in item.get_feature_info_formats]


def _update_parameters(item: WebMapServiceCatalogItem, value: Any) -> None:
    item.parameters = None if value is None else dict(value)


_PLAIN_PROPERTIES: Mapping[str, str] = MappingProxyType(
    {
        "name": "name",
        "url": "url",
        "layers": "layers",
        "populateIntervalsFromTimeDimension": "populate_intervals_from_time_dimension",
        "minScaleDenominator": "min_scale_denominator",
        "maxScaleDenominator": "max_scale_denominator",
    }
)

_OVERRIDE_PROPERTIES: Mapping[str, str] = MappingProxyType(
    {
        "dataUrl": "data_url",
        "dataUrlType": "data_url_type",
        "metadataUrl": "metadata_url",
        "legendUrl": "legend_url",
    }
)

_BASE_UPDATERS: Mapping[str, Updater] = MappingProxyType(
    {key: _attribute_updater(attribute) for key, attribute in _PLAIN_PROPERTIES.items()}
)
_BASE_SERIALIZERS: Mapping[str, Serializer] = MappingProxyType(
    {key: _attribute_serializer(attribute) for key, attribute in _PLAIN_PROPERTIES.items()}
)

UPDATERS: Mapping[str, Updater] = MappingProxyType(
    {
        **_BASE_UPDATERS,
        **{key: _attribute_updater(attribute) for key, attribute in _OVERRIDE_PROPERTIES.items()},
        "rectangle": _update_rectangle,
        "intervals": _update_intervals,
        "parameters": _update_parameters,
        "tilingScheme": _update_tiling_scheme,
        "getFeatureInfoFormats": _update_feature_info_formats,
    }
)

SERIALIZERS: Mapping[str, Serializer] = MappingProxyType(
    {
        "type": lambda item: item.type,
        **_BASE_SERIALIZERS,
        **{key: _override_serializer(attribute) for key, attribute in _OVERRIDE_PROPERTIES.items()},
        "rectangle": _override_serializer("rectangle", lambda box: box.as_list()),
        "intervals": _override_serializer("intervals", _encode_intervals),
        "parameters": lambda item: None if item.parameters is None else dict(item.parameters),
        "tilingScheme": _serialize_tiling_scheme,
        "getFeatureInfoFormats": _serialize_feature_info_formats,
    }
)


def update_from_json(
    item: WebMapServiceCatalogItem,
    json: Mapping[str, Any],
    *,
    updaters: Mapping[str, Updater] = UPDATERS,
) -> WebMapServiceCatalogItem:
    """Apply the properties in ``json`` to ``item``; unknown keys are ignored."""

    if not isinstance(json, Mapping):
        raise TypeError("Catalog item JSON must be a mapping")

    for key, value in json.items():
        updater = updaters.get(key)
        if updater is None:
            if key != "type":
                logger.debug(f"Ignoring unknown catalog item property '{key}'")
            continue
        updater(item, value)

    return item


def serialize_to_json(
    item: WebMapServiceCatalogItem,
    *,
    serializers: Mapping[str, Serializer] = SERIALIZERS,
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, serializer in serializers.items():
        value = serializer(item)
        if value is not None:
            result[key] = value
    return result


def catalog_item_from_json(
    json: Mapping[str, Any],
    **kwargs: Any,
) -> WebMapServiceCatalogItem:
    """Create a catalog item and restore its properties from ``json``.

    Keyword arguments are passed to :class:`WebMapServiceCatalogItem`.
    """

    if not isinstance(json, Mapping):
        raise TypeError("Catalog item JSON must be a mapping")

    item_type = json.get("type", WebMapServiceCatalogItem.type)
    if item_type != WebMapServiceCatalogItem.type:
        raise ValueError(f"Unsupported catalog item type '{item_type}'.")
    return update_from_json(WebMapServiceCatalogItem(**kwargs), json)
