"""Resolve Web Map Service layers into locators, extents and time intervals."""

from .catalog_item import WebMapServiceCatalogItem
from .config import CatalogConfig, build_catalog_items, load_catalog_config
from .errors import (
    ConfigurationError,
    LayerNotFoundError,
    MalformedDimensionReferenceError,
    MalformedTimestampError,
    ServiceMetadataMissingError,
    TransportFailureError,
    WmsCatalogError,
)
from .fetch import CorsProxy, clean_url, fetch_document, get_document
from .layers import GeoBoundingBox, bounding_box_of, find_layer, find_layers, merge_bounding_boxes
from .metadata import Metadata, MetadataNode, ResolutionState, build_metadata_tree
from .overrides import DerivedField, OverridableProperty
from .serialization import catalog_item_from_json, serialize_to_json, update_from_json
from .time_dimension import TimeInterval, intervals_of
from .tree import capabilities_tree_from_xml

__all__ = [
    "WebMapServiceCatalogItem",
    "CatalogConfig",
    "build_catalog_items",
    "load_catalog_config",
    "ConfigurationError",
    "LayerNotFoundError",
    "MalformedDimensionReferenceError",
    "MalformedTimestampError",
    "ServiceMetadataMissingError",
    "TransportFailureError",
    "WmsCatalogError",
    "CorsProxy",
    "clean_url",
    "fetch_document",
    "get_document",
    "GeoBoundingBox",
    "bounding_box_of",
    "find_layer",
    "find_layers",
    "merge_bounding_boxes",
    "Metadata",
    "MetadataNode",
    "ResolutionState",
    "build_metadata_tree",
    "DerivedField",
    "OverridableProperty",
    "catalog_item_from_json",
    "serialize_to_json",
    "update_from_json",
    "TimeInterval",
    "intervals_of",
    "capabilities_tree_from_xml",
]
