"""Collaborator protocol interfaces for dependency injection.

These protocols define the contracts that concrete implementations (SoftLayer
and NITRO over HTTP, or the in-memory fakes for local runs and tests) must
satisfy. The provider context accepts any implementation matching them.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ApplianceDirectory(Protocol):
    """Account-level appliance, network and order lookups."""

    def find_appliances_by_order(self, order_id: int) -> list[dict[str, Any]]: ...
    def get_appliance(self, appliance_id: int, mask: str = ...) -> dict[str, Any]: ...
    def get_credentials(self, appliance_id: int) -> tuple[str, str]: ...
    def get_billing_item(self, appliance_id: int) -> dict[str, Any] | None: ...
    def cancel_billing_item(self, billing_item_id: int) -> bool: ...
    def find_vlan_id(self, vlan_number: int, router_hostname: str) -> int: ...
    def find_subnet_id(self, cidr_spec: str) -> int: ...
    def find_datacenter_id(self, name: str) -> int: ...
    def find_price_ids(self, key_names: Sequence[str]) -> dict[str, int]: ...
    def place_order(self, order: dict[str, Any]) -> int: ...


@runtime_checkable
class ApplianceControlClient(Protocol):
    """Primitive management operations on one appliance."""

    address: str
    username: str
    password: str

    def set_admin_password(self, username: str, password: str) -> None: ...
    def add_ha_node(self, node_id: int, peer_address: str) -> None: ...
    def delete_ha_node(self, node_id: int) -> None: ...
    def upsert_rpc_node(self, peer_address: str, password: str) -> None: ...
    def trigger_sync(self, scope: str) -> None: ...
    def check_service(self) -> None: ...
