"""The three readiness waits a new appliance goes through.

  order_binding   -> the order has produced exactly one appliance
  virtual_ip      -> the appliance has at least one VIP attached
  management_api  -> the appliance's NITRO API answers a version read

Each is the same ProvisioningWaiter with its own predicate and policy.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from ..errors import AmbiguousStateError
from ..protocols import ApplianceControlClient, ApplianceDirectory
from .waiter import (
    ErrorPolicy,
    Poll,
    ProvisioningWaiter,
    WaitPolicy,
    fatal,
    pending,
    ready,
)

logger = logging.getLogger(__name__)

ORDER_BINDING_POLICY = WaitPolicy(
    name='order_binding',
    poll_interval=5,
    min_poll_interval=3,
    timeout_seconds=10 * 60,
    on_error=ErrorPolicy.FATAL,
)

VIRTUAL_IP_POLICY = WaitPolicy(
    name='virtual_ip',
    poll_interval=10,
    max_attempts=60,
    on_error=ErrorPolicy.FATAL,
)

MANAGEMENT_API_POLICY = WaitPolicy(
    name='management_api',
    poll_interval=10,
    max_attempts=60,
    on_error=ErrorPolicy.RETRY,
)

VIP_MASK = 'subnets[ipAddresses]'


# ── Predicates ───────────────────────────────────────────────────────


def order_binding_predicate(
    directory: ApplianceDirectory, order_id: int
) -> Callable[[], Poll]:
    def classify() -> Poll:
        appliances = directory.find_appliances_by_order(order_id)
        if not appliances:
            return pending()
        if len(appliances) == 1:
            return ready(appliances[0])
        return fatal(
            AmbiguousStateError(
                f'expected one appliance for order {order_id}, '
                f'found {len(appliances)}'
            )
        )

    return classify


def attached_ip_count(appliance: Mapping[str, Any]) -> int:
    """Count IP addresses on the appliance's first subnet."""
    subnets = appliance.get('subnets') or []
    if not subnets:
        return 0
    return len(subnets[0].get('ipAddresses') or [])


def virtual_ip_predicate(
    directory: ApplianceDirectory, appliance_id: int
) -> Callable[[], Poll]:
    def classify() -> Poll:
        appliance = directory.get_appliance(appliance_id, mask=VIP_MASK)
        if attached_ip_count(appliance) > 0:
            return ready(appliance)
        return pending()

    return classify


def management_api_predicate(client: ApplianceControlClient) -> Callable[[], Poll]:
    def classify() -> Poll:
        client.check_service()
        return ready()

    return classify


# ── Waits ────────────────────────────────────────────────────────────


def wait_for_order(
    waiter: ProvisioningWaiter,
    directory: ApplianceDirectory,
    order_id: int,
    *,
    policy: WaitPolicy = ORDER_BINDING_POLICY,
) -> dict[str, Any]:
    """Block until ``order_id`` has produced its appliance; return it."""
    result = waiter.wait(order_binding_predicate(directory, order_id), policy)
    return result.unwrap(f'no appliance created by order {order_id}')


def wait_for_virtual_ips(
    waiter: ProvisioningWaiter,
    directory: ApplianceDirectory,
    appliance_id: int,
    *,
    policy: WaitPolicy = VIRTUAL_IP_POLICY,
) -> dict[str, Any]:
    result = waiter.wait(virtual_ip_predicate(directory, appliance_id), policy)
    return result.unwrap(f'no VIPs attached to appliance {appliance_id}')


def wait_for_management_api(
    waiter: ProvisioningWaiter,
    client: ApplianceControlClient,
    *,
    policy: WaitPolicy = MANAGEMENT_API_POLICY,
) -> None:
    result = waiter.wait(management_api_predicate(client), policy)
    result.unwrap(f'management API at {client.address} never answered')
