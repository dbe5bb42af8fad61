"""SoftLayer and NITRO providers for the provisioner."""

from .directory import SoftLayerApplianceDirectory, split_cidr
from .nitro_client import (
    ADMIN_USERNAME,
    ApplianceSession,
    NitroAPIError,
    NitroClient,
    NitroTimeoutError,
    RpcNodeRequest,
)
from .softlayer_client import (
    SoftLayerAPIError,
    SoftLayerClient,
    SoftLayerNotFoundError,
    SoftLayerTimeoutError,
)

__all__ = [
    "ADMIN_USERNAME",
    "ApplianceSession",
    "NitroAPIError",
    "NitroClient",
    "NitroTimeoutError",
    "RpcNodeRequest",
    "SoftLayerAPIError",
    "SoftLayerApplianceDirectory",
    "SoftLayerClient",
    "SoftLayerNotFoundError",
    "SoftLayerTimeoutError",
    "split_cidr",
]
