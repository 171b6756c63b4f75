"""A catalog item representing one or more layers of a Web Map Service."""
from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

from loguru import logger

from .errors import (
    LAYER_NOT_FOUND_MESSAGE,
    SERVICE_METADATA_MISSING_MESSAGE,
    TRANSPORT_FAILURE_MESSAGE,
    LayerNotFoundError,
    MalformedTimestampError,
    ServiceMetadataMissingError,
)
from .fetch import CorsProxy, DocumentFetcher, clean_url, fetch_document, proxy_url
from .imagery import (
    GetFeatureInfoFormat,
    ImageryRequest,
    TilingScheme,
    maximum_level_from_scale_denominator,
)
from .layers import (
    WORLD,
    GeoBoundingBox,
    find_required_layers,
    merge_bounding_boxes,
    root_layer_of,
    service_of,
    split_layer_names,
)
from .metadata import Metadata, MetadataNode, ResolutionState, build_metadata_tree
from .overrides import DerivedField, OverridableProperty
from .settings import DEFAULT_WMS_SETTINGS, WmsSettings, combine_parameters
from .time_dimension import TimeInterval, intervals_of
from .tree import TreeMapping, capabilities_tree_from_xml

__all__ = ["WebMapServiceCatalogItem"]

# Scale denominators above this are typical of ArcGIS "minScale" settings.
_HIDDEN_DATA_SCALE_DENOMINATOR = 1e6


class WebMapServiceCatalogItem:
    """Resolves a WMS base URL and layer list into locators, extent and times.

    The capabilities document is requested the first time :attr:`metadata` is
    read, from inside a running event loop. Changing :attr:`url`,
    :attr:`layers` or :attr:`metadata_url` discards the resolved metadata; the
    next read starts a new load.
    """

    type = "wms"
    type_name = "Web Map Service (WMS)"
    supports_intervals = True
    settings: WmsSettings = DEFAULT_WMS_SETTINGS

    data_url = OverridableProperty("URL from which the layer data can be downloaded.")
    data_url_type = OverridableProperty("How data_url is derived: 'wfs' or a plain URL type.")
    metadata_url = OverridableProperty("URL of the GetCapabilities document.")
    legend_url = OverridableProperty("URL of the legend image of the first layer.")
    rectangle = OverridableProperty("Geographic extent of the layers.")
    intervals = OverridableProperty("Time intervals of the layers, or None.")

    def __init__(
        self,
        url: str = "",
        layers: str = "",
        *,
        name: str = "",
        proxy: CorsProxy | None = None,
        fetcher: DocumentFetcher | None = None,
        settings: WmsSettings | None = None,
    ) -> None:
        if settings is not None:
            self.settings = settings
        self.name = name
        self.proxy = proxy
        self._fetcher: DocumentFetcher = fetcher or fetch_document

        self._url = url
        self._layers = layers
        self._metadata: Metadata | None = None
        self._rectangle_from_metadata: GeoBoundingBox | None = None
        self._intervals_from_metadata: tuple[TimeInterval, ...] | None = None

        self.parameters: Mapping[str, Any] | None = None
        self.tiling_scheme: TilingScheme | None = None
        self.get_feature_info_formats: tuple[GetFeatureInfoFormat, ...] | None = None
        self.populate_intervals_from_time_dimension = True
        self.min_scale_denominator: float | None = None
        self.max_scale_denominator: float | None = None

        self._data_url = DerivedField(self._derive_data_url)
        self._data_url_type = DerivedField(lambda: self.settings.default_data_url_type)
        self._metadata_url = DerivedField(self._derive_metadata_url, on_change=self.reload)
        self._legend_url = DerivedField(self._derive_legend_url)
        self._rectangle = DerivedField(lambda: self._rectangle_from_metadata or WORLD)
        self._intervals = DerivedField(lambda: self._intervals_from_metadata)

    # -- plain inputs -------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @url.setter
    def url(self, value: str) -> None:
        if value != self._url:
            self._url = value
            self.reload()

    @property
    def layers(self) -> str:
        return self._layers

    @layers.setter
    def layers(self, value: str) -> None:
        if value != self._layers:
            self._layers = value
            self.reload()

    def override_fields(self) -> dict[str, DerivedField[Any]]:
        """Return the holders behind the overridable properties, keyed by attribute name."""

        fields: dict[str, DerivedField[Any]] = {}
        for klass in reversed(self.__class__.__mro__):
            for name, attribute in vars(klass).items():
                if isinstance(attribute, OverridableProperty):
                    fields[name] = attribute.field(self)
        return fields

    # -- derivations --------------------------------------------------------

    def _derive_data_url(self) -> str:
        if self.data_url_type == "wfs":
            return f"{clean_url(self.url)}?{self.settings.feature_query(self.layers)}"
        return self.url

    def _derive_metadata_url(self) -> str:
        return f"{clean_url(self.url)}?{self.settings.capabilities_query()}"

    def _derive_legend_url(self) -> str:
        layer = split_layer_names(self.layers)[0]
        return f"{clean_url(self.url)}?{self.settings.legend_query(layer)}"

    # -- resolution ---------------------------------------------------------

    @property
    def metadata(self) -> Metadata:
        """Metadata of the service and layers, loaded on first access."""

        if self._metadata is None:
            self._metadata = self._request_metadata()
        return self._metadata

    @property
    def resolution_state(self) -> ResolutionState:
        if self._metadata is None:
            return ResolutionState.UNINITIALIZED
        return self._metadata.state

    def reload(self) -> None:
        """Discard the current metadata and everything derived from it."""

        self._metadata = None
        self._rectangle_from_metadata = None
        self._intervals_from_metadata = None

    async def load(self) -> Metadata:
        return await self.metadata.wait()

    def _request_metadata(self) -> Metadata:
        loop = asyncio.get_running_loop()
        metadata = Metadata()
        capabilities_url = proxy_url(self.proxy, self.metadata_url)
        metadata.attach(loop.create_task(self._resolve(metadata, capabilities_url, self.layers)))
        return metadata

    async def _resolve(self, metadata: Metadata, capabilities_url: str, layer_names: str) -> None:
        logger.info(f"Requesting capabilities for '{layer_names}' from {capabilities_url}")

        try:
            document = await self._fetcher(capabilities_url)
            capabilities = capabilities_tree_from_xml(document)
        except Exception as exc:
            logger.warning(f"GetCapabilities request to {capabilities_url} failed: {exc}")
            metadata.mark_failed(TRANSPORT_FAILURE_MESSAGE)
            return

        if not isinstance(capabilities, TreeMapping):
            logger.warning(f"GetCapabilities response from {capabilities_url} is empty")
            metadata.mark_failed(TRANSPORT_FAILURE_MESSAGE)
            return

        try:
            rectangle, intervals = self._populate(metadata, capabilities, layer_names)
        except Exception as exc:
            logger.exception(f"Could not resolve capabilities from {capabilities_url}: {exc}")
            metadata.mark_failed(TRANSPORT_FAILURE_MESSAGE)
            return
        metadata.mark_ready()

        if self._metadata is not metadata:
            logger.debug(f"Discarding stale capabilities from {capabilities_url}")
            return

        self._rectangle_from_metadata = rectangle
        self._intervals_from_metadata = intervals

    def _populate(
        self,
        metadata: Metadata,
        capabilities: TreeMapping,
        layer_names: str,
    ) -> tuple[GeoBoundingBox | None, tuple[TimeInterval, ...] | None]:
        try:
            build_metadata_tree(metadata.service_metadata, service_of(capabilities))
        except ServiceMetadataMissingError as exc:
            logger.warning(f"GetCapabilities response is incomplete: {exc}")
            metadata.service_error_message = SERVICE_METADATA_MISSING_MESSAGE

        try:
            layers = find_required_layers(root_layer_of(capabilities), layer_names)
        except LayerNotFoundError as exc:
            logger.warning(f"GetCapabilities response is incomplete: {exc}")
            metadata.data_source_error_message = LAYER_NOT_FOUND_MESSAGE
            return None, None

        self._populate_layer_metadata(metadata.data_source_metadata, layer_names, layers)

        try:
            rectangle = merge_bounding_boxes(layers)
        except ValueError as exc:
            logger.warning(f"Ignoring layer extent: {exc}")
            rectangle = None

        intervals = None
        if self.supports_intervals and self.populate_intervals_from_time_dimension:
            intervals = self._intervals_from_layers(layers)

        return rectangle, intervals

    @staticmethod
    def _populate_layer_metadata(
        target: MetadataNode,
        layer_names: str,
        layers: Sequence[TreeMapping],
    ) -> None:
        if len(layers) == 1:
            build_metadata_tree(target, layers[0])
            return

        for name, layer in zip(split_layer_names(layer_names), layers):
            child = MetadataNode(name=name, value=layer)
            build_metadata_tree(child, layer)
            target.children.append(child)

    @staticmethod
    def _intervals_from_layers(
        layers: Sequence[TreeMapping],
    ) -> tuple[TimeInterval, ...] | None:
        for layer in layers:
            try:
                intervals = intervals_of(layer)
            except MalformedTimestampError as exc:
                logger.warning(f"Ignoring time dimension of layer '{layer.text('Name')}': {exc}")
                return None
            if intervals is not None:
                return intervals
        return None

    # -- rendering ----------------------------------------------------------

    @property
    def maximum_level(self) -> int | None:
        if self.min_scale_denominator is None:
            return None
        return maximum_level_from_scale_denominator(self.min_scale_denominator)

    def create_imagery_request(self, time: str | None = None) -> ImageryRequest:
        """Describe the tile requests for this item, optionally at one ``time``."""

        parameters = combine_parameters(
            {"time": time} if time is not None else None,
            self.parameters,
            self.settings.default_parameters,
        )

        if (
            self.max_scale_denominator is not None
            and self.max_scale_denominator > _HIDDEN_DATA_SCALE_DENOMINATOR
        ):
            logger.warning("ArcGIS minScale setting may hide data.")

        return ImageryRequest(
            url=proxy_url(self.proxy, clean_url(self.url)),
            layers=self.layers,
            parameters=parameters,
            get_feature_info_parameters=parameters,
            tiling_scheme=self.tiling_scheme or TilingScheme.WEB_MERCATOR,
            rectangle=self.rectangle,
            maximum_level=self.maximum_level,
            get_feature_info_formats=self.get_feature_info_formats,
            time=time,
        )
