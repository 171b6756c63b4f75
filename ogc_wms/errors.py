"""Error kinds raised while resolving a WMS catalog item."""
from __future__ import annotations

TRANSPORT_FAILURE_MESSAGE = "An error occurred while invoking the GetCapabilities service."
SERVICE_METADATA_MISSING_MESSAGE = (
    "Service information not found in GetCapabilities operation response."
)
LAYER_NOT_FOUND_MESSAGE = "Layer information not found in GetCapabilities operation response."


class WmsCatalogError(Exception):
    """Base exception for catalog resolution errors"""


class TransportFailureError(WmsCatalogError, RuntimeError):
    """Raised when the capabilities document cannot be fetched or parsed"""


class ServiceMetadataMissingError(WmsCatalogError):
    """Raised when the capabilities document has no Service block"""


class LayerNotFoundError(WmsCatalogError):
    """Raised when one or more requested layers are not in the capabilities document"""


class MalformedTimestampError(WmsCatalogError, ValueError):
    """Raised when a time dimension token is not an ISO 8601 timestamp"""

    def __init__(self, token: str) -> None:
        super().__init__(f"Time dimension value '{token}' is not a valid ISO 8601 timestamp.")
        self.token = token


class MalformedDimensionReferenceError(WmsCatalogError, ValueError):
    """Raised when a time dimension refers to an Extent that does not exist"""


class ConfigurationError(WmsCatalogError):
    """Raised when a catalog configuration file cannot be used"""
