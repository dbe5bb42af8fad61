"""SoftLayerApplianceDirectory: SoftLayer-backed appliance lookups.

Implements the ApplianceDirectory protocol defined in protocols.py on top of
SoftLayerClient. Lookups that must resolve to exactly one object raise
InputResolutionError when nothing matches.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..errors import InputResolutionError
from .softlayer_client import SoftLayerClient, SoftLayerNotFoundError

logger = logging.getLogger(__name__)

ADC_SERVICE = "SoftLayer_Network_Application_Delivery_Controller"
ACCOUNT_SERVICE = "SoftLayer_Account"

APPLIANCE_PACKAGE_TYPE = "ADDITIONAL_SERVICES_APPLICATION_DELIVERY_APPLIANCE"

# Mask used by the lifecycle read; includes the credential for session setup.
DEFAULT_APPLIANCE_MASK = (
    "id,name,type[name],datacenter,managementIpAddress,password[password],"
    "networkVlans[primaryRouter,primarySubnets],subnets[ipAddresses],"
    "description,billingItem[id]"
)


def _filter_eq(value: Any) -> dict[str, Any]:
    return {"operation": value}


class SoftLayerApplianceDirectory:
    """ApplianceDirectory backed by the SoftLayer REST API."""

    def __init__(self, client: SoftLayerClient) -> None:
        self._client = client

    # ── Appliances ───────────────────────────────────────────────

    def find_appliances_by_order(self, order_id: int) -> list[dict[str, Any]]:
        """Return the appliances created by ``order_id`` (possibly none yet)."""
        result = self._client.call(
            ACCOUNT_SERVICE,
            "getApplicationDeliveryControllers",
            object_filter={
                "applicationDeliveryControllers": {
                    "billingItem": {
                        "orderItem": {"order": {"id": _filter_eq(order_id)}}
                    }
                }
            },
        )
        return list(result or [])

    def get_appliance(
        self,
        appliance_id: int,
        mask: str = DEFAULT_APPLIANCE_MASK,
    ) -> dict[str, Any]:
        """Fetch one appliance object.

        Raises SoftLayerNotFoundError if the appliance doesn't exist.
        """
        return self._client.call(
            ADC_SERVICE, "getObject", object_id=appliance_id, mask=mask
        )

    def get_credentials(self, appliance_id: int) -> tuple[str, str]:
        """Return ``(management_ip, admin_password)`` as recorded by SoftLayer."""
        nadc = self.get_appliance(
            appliance_id, mask="id,managementIpAddress,password[password]"
        )
        address = nadc.get("managementIpAddress")
        password = (nadc.get("password") or {}).get("password")
        if not address or not password:
            raise InputResolutionError(
                f"appliance {appliance_id} has no management address or credential"
            )
        return address, password

    def get_billing_item(self, appliance_id: int) -> dict[str, Any] | None:
        try:
            return self._client.call(
                ADC_SERVICE, "getBillingItem", object_id=appliance_id
            )
        except SoftLayerNotFoundError:
            return None

    def cancel_billing_item(self, billing_item_id: int) -> bool:
        result = self._client.call(
            "SoftLayer_Billing_Item", "cancelService", object_id=billing_item_id
        )
        logger.info(
            "Billing item cancelled: id=%s",
            billing_item_id,
            extra={"billing_item_id": billing_item_id},
        )
        return bool(result)

    # ── Network resolution ───────────────────────────────────────

    def find_vlan_id(self, vlan_number: int, router_hostname: str) -> int:
        vlans = self._client.call(
            ACCOUNT_SERVICE,
            "getNetworkVlans",
            mask="id",
            object_filter={
                "networkVlans": {
                    "primaryRouter": {"hostname": _filter_eq(router_hostname)},
                    "vlanNumber": _filter_eq(vlan_number),
                }
            },
        )
        if not vlans:
            raise InputResolutionError(
                "Unable to locate a vlan matching the provided router hostname "
                f"and vlan number: {router_hostname}/{vlan_number}"
            )
        return int(vlans[0]["id"])

    def find_subnet_id(self, cidr_spec: str) -> int:
        network_identifier, cidr = split_cidr(cidr_spec)
        subnets = self._client.call(
            ACCOUNT_SERVICE,
            "getSubnets",
            mask="id",
            object_filter={
                "subnets": {
                    "cidr": _filter_eq(cidr),
                    "networkIdentifier": _filter_eq(network_identifier),
                }
            },
        )
        if not subnets:
            raise InputResolutionError(
                f"Unable to locate a subnet matching the provided subnet: {cidr_spec}"
            )
        return int(subnets[0]["id"])

    def find_datacenter_id(self, name: str) -> int:
        datacenters = self._client.call(
            "SoftLayer_Location_Datacenter",
            "getDatacenters",
            mask="id",
            object_filter={"name": _filter_eq(name)},
        )
        if not datacenters:
            raise InputResolutionError(f"Unable to locate datacenter: {name}")
        return int(datacenters[0]["id"])

    # ── Ordering ─────────────────────────────────────────────────

    def find_price_ids(self, key_names: Sequence[str]) -> dict[str, int]:
        """Map each catalog item key name to its first price id.

        Keys with no matching item are absent from the result.
        """
        packages = self._client.call(
            "SoftLayer_Product_Package",
            "getAllObjects",
            mask="id",
            object_filter={"type": {"keyName": _filter_eq(APPLIANCE_PACKAGE_TYPE)}},
        )
        if not packages:
            raise InputResolutionError(
                f"No product package of type {APPLIANCE_PACKAGE_TYPE}"
            )

        items = self._client.call(
            "SoftLayer_Product_Package",
            "getItems",
            object_id=int(packages[0]["id"]),
            mask="id,keyName,prices[id]",
        )
        wanted = set(key_names)
        found: dict[str, int] = {}
        for item in items or []:
            key = item.get("keyName")
            prices = item.get("prices") or []
            if key in wanted and key not in found and prices:
                found[key] = int(prices[0]["id"])
        return found

    def place_order(self, order: dict[str, Any]) -> int:
        """Place a product order and return its order id."""
        # Not retried: a timed-out placeOrder may still have been accepted.
        receipt = self._client.call(
            "SoftLayer_Product_Order", "placeOrder", order, False, retry=False
        )
        order_id = int(receipt["orderId"])
        logger.info("Order placed: order_id=%s", order_id, extra={"order_id": order_id})
        return order_id


def split_cidr(cidr_spec: str) -> tuple[str, int]:
    """Split ``"10.0.0.0/24"`` into ``("10.0.0.0", 24)``."""
    parts = cidr_spec.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1].isdigit():
        raise InputResolutionError(
            f"Unable to parse the provided subnet: {cidr_spec}"
        )
    return parts[0], int(parts[1])
