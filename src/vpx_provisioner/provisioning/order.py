"""Order container for a new VPX appliance.

Catalog items are looked up by exact key name:

  CITRIX_NETSCALER_VPX_{version, dots -> _}_{speed}MBPS_{PLAN}
  {ip_count}_STATIC_PUBLIC_IP_ADDRESSES

Network placement is optional per side (front end / back end): a VLAN given
as number + primary router hostname, and/or a primary subnet as ``net/cidr``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..errors import InputResolutionError
from ..protocols import ApplianceDirectory

PACKAGE_ID_APPLICATION_DELIVERY_CONTROLLER = 192
KEY_DELIMITER = '_'


@dataclass(frozen=True, slots=True)
class VlanRef:
    vlan_number: int | str
    primary_router_hostname: str


@dataclass(frozen=True, slots=True)
class ApplianceSpec:
    """Requested shape of a new appliance."""

    datacenter: str
    speed: int
    version: str
    plan: str
    ip_count: int
    front_end_vlan: VlanRef | None = None
    front_end_subnet: str | None = None
    back_end_vlan: VlanRef | None = None
    back_end_subnet: str | None = None


def build_vpx_price_key(version: str, speed: int, plan: str) -> str:
    """``('10.5', 10, 'standard')`` -> ``CITRIX_NETSCALER_VPX_10_5_10MBPS_STANDARD``."""
    return KEY_DELIMITER.join(
        [
            'CITRIX_NETSCALER_VPX',
            version.replace('.', KEY_DELIMITER),
            f'{speed}MBPS',
            plan.upper(),
        ]
    )


def build_public_ip_key(ip_count: int) -> str:
    return KEY_DELIMITER.join([str(ip_count), 'STATIC_PUBLIC_IP_ADDRESSES'])


def resolve_prices(
    directory: ApplianceDirectory, spec: ApplianceSpec
) -> list[dict[str, int]]:
    """Resolve the appliance and IP block price ids.

    Raises:
        InputResolutionError: naming every key that did not resolve.
    """
    vpx_key = build_vpx_price_key(spec.version, spec.speed, spec.plan)
    ip_key = build_public_ip_key(spec.ip_count)
    found = directory.find_price_ids([vpx_key, ip_key])

    problems: list[str] = []
    if vpx_key not in found:
        problems.append('VPX version, speed or plan have incorrect values')
    if ip_key not in found:
        problems.append('IP quantity value is incorrect')
    if problems:
        raise InputResolutionError('\n'.join(problems))

    return [{'id': found[vpx_key]}, {'id': found[ip_key]}]


def _vlan_id(directory: ApplianceDirectory, ref: VlanRef) -> int:
    try:
        vlan_number = int(ref.vlan_number)
    except (TypeError, ValueError) as exc:
        raise InputResolutionError(
            f'vlan_number must be an integer, got {ref.vlan_number!r}'
        ) from exc
    return directory.find_vlan_id(vlan_number, ref.primary_router_hostname)


def _network_component(
    directory: ApplianceDirectory,
    vlan: VlanRef | None,
    subnet: str | None,
) -> dict[str, Any] | None:
    if vlan is None and not subnet:
        return None
    component: dict[str, Any] = {}
    if vlan is not None:
        component['networkVlanId'] = _vlan_id(directory, vlan)
    if subnet:
        component['networkVlan'] = {
            'primarySubnetId': directory.find_subnet_id(subnet)
        }
    return component


def build_hardware(
    directory: ApplianceDirectory, spec: ApplianceSpec
) -> list[dict[str, Any]]:
    hardware: dict[str, Any] = {}
    front = _network_component(directory, spec.front_end_vlan, spec.front_end_subnet)
    if front is not None:
        hardware['primaryNetworkComponent'] = front
    back = _network_component(directory, spec.back_end_vlan, spec.back_end_subnet)
    if back is not None:
        hardware['primaryBackendNetworkComponent'] = back
    return [hardware]


def build_order(directory: ApplianceDirectory, spec: ApplianceSpec) -> dict[str, Any]:
    """Build the ``SoftLayer_Container_Product_Order`` for ``spec``."""
    order: dict[str, Any] = {
        'packageId': PACKAGE_ID_APPLICATION_DELIVERY_CONTROLLER,
        'quantity': 1,
        'prices': resolve_prices(directory, spec),
    }
    if spec.datacenter:
        order['location'] = str(directory.find_datacenter_id(spec.datacenter))
    order['hardware'] = build_hardware(directory, spec)
    return order
