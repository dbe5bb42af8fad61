"""In-memory collaborators for local runs and tests.

These satisfy the ApplianceDirectory and ApplianceControlClient protocols but
keep everything in dicts and record every call. Scripted responses let a
test decide what each successive poll observes.
"""

from __future__ import annotations

from typing import Any, Sequence

from .errors import InputResolutionError
from .providers.nitro_client import ApplianceSession
from .providers.softlayer_client import SoftLayerNotFoundError


class InMemoryApplianceDirectory:
    def __init__(self) -> None:
        self.appliances: dict[int, dict[str, Any]] = {}
        self.vlans: dict[tuple[int, str], int] = {}
        self.subnets: dict[str, int] = {}
        self.datacenters: dict[str, int] = {}
        self.prices: dict[str, int] = {}
        self.billing_items: dict[int, int] = {}
        self.orders: list[dict[str, Any]] = []
        self.cancelled: list[int] = []
        self.calls: list[tuple[str, Any]] = []
        # order_id -> successive results of find_appliances_by_order
        self.order_script: dict[int, list[list[dict[str, Any]]]] = {}
        # appliance_id -> successive IP counts seen by VIP polls
        self.ip_script: dict[int, list[int]] = {}
        self._next_order_id = 1000

    def add_appliance(
        self,
        appliance_id: int,
        *,
        address: str,
        password: str,
        **fields: Any,
    ) -> dict[str, Any]:
        appliance = {
            'id': appliance_id,
            'managementIpAddress': address,
            'password': {'password': password},
            **fields,
        }
        self.appliances[appliance_id] = appliance
        return appliance

    def find_appliances_by_order(self, order_id: int) -> list[dict[str, Any]]:
        self.calls.append(('find_appliances_by_order', order_id))
        script = self.order_script.get(order_id)
        if not script:
            return []
        if len(script) > 1:
            return script.pop(0)
        return script[0]

    def get_appliance(self, appliance_id: int, mask: str = '') -> dict[str, Any]:
        self.calls.append(('get_appliance', appliance_id))
        if appliance_id not in self.appliances:
            raise SoftLayerNotFoundError(f'appliance {appliance_id} not found')
        appliance = dict(self.appliances[appliance_id])
        script = self.ip_script.get(appliance_id)
        if script:
            count = script.pop(0) if len(script) > 1 else script[0]
            appliance['subnets'] = [
                {'ipAddresses': [{'ipAddress': f'10.1.0.{i + 1}'} for i in range(count)]}
            ]
        return appliance

    def get_credentials(self, appliance_id: int) -> tuple[str, str]:
        self.calls.append(('get_credentials', appliance_id))
        if appliance_id not in self.appliances:
            raise SoftLayerNotFoundError(f'appliance {appliance_id} not found')
        appliance = self.appliances[appliance_id]
        return appliance['managementIpAddress'], appliance['password']['password']

    def get_billing_item(self, appliance_id: int) -> dict[str, Any] | None:
        billing_item_id = self.billing_items.get(appliance_id)
        if billing_item_id is None:
            return None
        return {'id': billing_item_id}

    def cancel_billing_item(self, billing_item_id: int) -> bool:
        self.cancelled.append(billing_item_id)
        return True

    def find_vlan_id(self, vlan_number: int, router_hostname: str) -> int:
        try:
            return self.vlans[(vlan_number, router_hostname)]
        except KeyError:
            raise InputResolutionError(
                f'Unable to locate a vlan: {router_hostname}/{vlan_number}'
            ) from None

    def find_subnet_id(self, cidr_spec: str) -> int:
        try:
            return self.subnets[cidr_spec]
        except KeyError:
            raise InputResolutionError(
                f'Unable to locate a subnet matching the provided subnet: {cidr_spec}'
            ) from None

    def find_datacenter_id(self, name: str) -> int:
        try:
            return self.datacenters[name]
        except KeyError:
            raise InputResolutionError(f'Unable to locate datacenter: {name}') from None

    def find_price_ids(self, key_names: Sequence[str]) -> dict[str, int]:
        return {key: self.prices[key] for key in key_names if key in self.prices}

    def place_order(self, order: dict[str, Any]) -> int:
        self.orders.append(order)
        self._next_order_id += 1
        return self._next_order_id


class InMemoryControlClient:
    """Records NITRO calls; ``failures`` maps a method name to the error it raises.

    Pass the same ``journal`` list to several clients to observe the
    interleaving of calls across appliances.
    """

    def __init__(
        self,
        address: str,
        password: str,
        *,
        username: str = 'root',
        failures: dict[str, Exception] | None = None,
        check_failures: int = 0,
        journal: list[tuple[str, str, tuple[Any, ...]]] | None = None,
    ) -> None:
        self.address = address
        self.username = username
        self.password = password
        self.failures = dict(failures or {})
        self.check_failures = check_failures
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        # password presented with each call
        self.credentials_used: list[str] = []
        self.journal = journal if journal is not None else []

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        self.credentials_used.append(self.password)
        self.journal.append((self.address, method, args))
        if method in self.failures:
            raise self.failures[method]

    def set_admin_password(self, username: str, password: str) -> None:
        self._record('set_admin_password', username, password)

    def add_ha_node(self, node_id: int, peer_address: str) -> None:
        self._record('add_ha_node', node_id, peer_address)

    def delete_ha_node(self, node_id: int) -> None:
        self._record('delete_ha_node', node_id)

    def upsert_rpc_node(self, peer_address: str, password: str) -> None:
        self._record('upsert_rpc_node', peer_address, password)

    def trigger_sync(self, scope: str) -> None:
        self._record('trigger_sync', scope)

    def check_service(self) -> None:
        self.calls.append(('check_service', ()))
        if self.check_failures > 0:
            self.check_failures -= 1
            raise ConnectionError(f'{self.address} management API not up')

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


def in_memory_session_opener(
    directory: InMemoryApplianceDirectory,
    clients: dict[int, InMemoryControlClient] | None = None,
):
    """Open sessions backed by InMemoryControlClient, creating them on demand.

    Clients are cached per appliance so tests can inspect them afterwards.
    """
    cache = clients if clients is not None else {}

    def open_session(appliance_id: int) -> ApplianceSession:
        address, password = directory.get_credentials(appliance_id)
        client = cache.get(appliance_id)
        if client is None:
            client = InMemoryControlClient(address, password)
            cache[appliance_id] = client
        else:
            client.password = password
        return ApplianceSession(appliance_id, client)

    return open_session
