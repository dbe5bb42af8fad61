"""ApplianceResource: create/read/update/delete/exists for one VPX appliance.

create() places the order and blocks until the appliance is usable:
  order placed -> order bound -> VIPs attached -> NITRO answering -> settle

update() bonds or unbonds the appliance as the secondary of an HA pair when
its ``ha_secondary`` block changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..context import ProviderContext
from ..errors import ProvisionerError
from ..providers.softlayer_client import SoftLayerNotFoundError
from ..provisioning.order import ApplianceSpec, build_order
from ..provisioning.readiness import (
    wait_for_management_api,
    wait_for_order,
    wait_for_virtual_ips,
)

logger = logging.getLogger(__name__)

READ_MASK = (
    'id,name,type[name],datacenter,networkVlans[primaryRouter],'
    'networkVlans[primarySubnets],subnets[ipAddresses],description'
)

FRONT_END_ROUTER_PREFIX = 'fcr'
BACK_END_ROUTER_PREFIX = 'bcr'


@dataclass(frozen=True, slots=True)
class HASecondary:
    """Marks this appliance as the secondary of ``primary_id``."""

    primary_id: int
    failback: bool = False


def _subnet_spec(subnet: dict[str, Any]) -> str:
    return f"{subnet['networkIdentifier']}/{subnet['cidr']}"


def network_attributes(vlans: list[dict[str, Any]]) -> dict[str, Any]:
    """Split the appliance's VLANs into front-end and back-end attributes."""
    attrs: dict[str, Any] = {
        'front_end_vlan': {},
        'front_end_subnet': '',
        'back_end_vlan': {},
        'back_end_subnet': '',
    }
    for vlan in vlans:
        hostname = (vlan.get('primaryRouter') or {}).get('hostname') or ''
        vlan_number = vlan.get('vlanNumber') or 0
        if not hostname or vlan_number <= 0:
            continue
        if hostname.startswith(FRONT_END_ROUTER_PREFIX):
            side = 'front_end'
        elif hostname.startswith(BACK_END_ROUTER_PREFIX):
            side = 'back_end'
        else:
            continue
        attrs[f'{side}_vlan'] = {
            'vlan_number': str(vlan_number),
            'primary_router_hostname': hostname,
        }
        subnets = vlan.get('primarySubnets') or []
        if subnets:
            attrs[f'{side}_subnet'] = _subnet_spec(subnets[0])
    return attrs


class ApplianceResource:
    """Lifecycle operations for a VPX appliance, driven through a context."""

    def __init__(self, context: ProviderContext) -> None:
        self._ctx = context

    def create(self, spec: ApplianceSpec) -> int:
        """Order an appliance and wait until it is fully usable.

        Returns:
            The new appliance id.

        Raises:
            InputResolutionError: If the datacenter, a VLAN, a subnet or a
                catalog key does not resolve.
            AmbiguousStateError: If the order produced more than one appliance.
            WaitTimeoutError: If any readiness wait exhausts its budget.
        """
        directory = self._ctx.directory
        waiter = self._ctx.waiter

        order = build_order(directory, spec)
        logger.info(
            'Creating network application delivery controller in %s',
            spec.datacenter,
            extra={'datacenter': spec.datacenter},
        )
        order_id = directory.place_order(order)

        appliance = wait_for_order(waiter, directory, order_id)
        appliance_id = int(appliance['id'])
        logger.info(
            'Netscaler VPX ID: %s',
            appliance_id,
            extra={'appliance_id': appliance_id, 'order_id': order_id},
        )

        wait_for_virtual_ips(waiter, directory, appliance_id)

        session = self._ctx.open_session(appliance_id)
        wait_for_management_api(waiter, session.client)

        settle = self._ctx.settings.settle_seconds
        logger.info(
            'Management API up on %s, settling for %.0fs',
            appliance_id,
            settle,
            extra={'appliance_id': appliance_id},
        )
        self._ctx.sleep(settle)
        return appliance_id

    def read(self, appliance_id: int) -> dict[str, Any]:
        nadc = self._ctx.directory.get_appliance(appliance_id, mask=READ_MASK)

        attrs: dict[str, Any] = {
            'id': appliance_id,
            'name': nadc.get('name', ''),
            'type': (nadc.get('type') or {}).get('name', ''),
        }
        datacenter = nadc.get('datacenter')
        if datacenter:
            attrs['datacenter'] = datacenter.get('name', '')

        attrs.update(network_attributes(nadc.get('networkVlans') or []))

        vips: list[str] = []
        ip_count = 0
        for index, subnet in enumerate(nadc.get('subnets') or []):
            for address in subnet.get('ipAddresses') or []:
                vips.append(address['ipAddress'])
                if index == 0:
                    ip_count += 1
        attrs['vip_pool'] = vips
        attrs['ip_count'] = ip_count
        return attrs

    def update(
        self,
        appliance_id: int,
        ha_secondary: HASecondary | None,
        *,
        previous: HASecondary | None = None,
    ) -> None:
        """Apply a change of the appliance's ``ha_secondary`` block.

        Setting it bonds this appliance as secondary of ``primary_id``;
        clearing it tears the previous bond down and restores the password
        the directory records for this appliance.
        """
        if ha_secondary == previous:
            return

        coordinator = self._ctx.coordinator
        if ha_secondary is not None:
            logger.info(
                'Configuring HA - primary device ID: %s secondary device ID: %s',
                ha_secondary.primary_id,
                appliance_id,
                extra={'appliance_id': appliance_id},
            )
            coordinator.establish(ha_secondary.primary_id, appliance_id)
            return

        if previous is None:
            raise ProvisionerError(
                f'appliance {appliance_id} has no HA primary to unbond from'
            )
        logger.info(
            'Delete HA - secondary device ID: %s',
            appliance_id,
            extra={'appliance_id': appliance_id},
        )
        _, original_password = self._ctx.directory.get_credentials(appliance_id)
        coordinator.teardown(
            previous.primary_id,
            appliance_id,
            original_password=original_password,
        )

    def delete(self, appliance_id: int) -> None:
        directory = self._ctx.directory
        billing_item = directory.get_billing_item(appliance_id)
        if billing_item is None:
            raise ProvisionerError(
                f'no billing item for network application delivery controller {appliance_id}'
            )
        billing_item_id = int(billing_item.get('id') or 0)
        if billing_item_id > 0:
            directory.cancel_billing_item(billing_item_id)

    def exists(self, appliance_id: int) -> bool:
        try:
            nadc = self._ctx.directory.get_appliance(appliance_id, mask='id')
        except SoftLayerNotFoundError:
            return False
        return nadc.get('id') == appliance_id
