"""Readiness waits, order building and HA coordination for VPX appliances."""

from .ha_coordinator import (
    HA_PEER_NODE_ID,
    SYNC_SCOPE_ALL,
    HACoordinator,
    HAStep,
    PairingState,
    StepCategory,
    establish_steps,
    run_steps,
    teardown_steps,
)
from .order import (
    PACKAGE_ID_APPLICATION_DELIVERY_CONTROLLER,
    ApplianceSpec,
    VlanRef,
    build_order,
    build_public_ip_key,
    build_vpx_price_key,
)
from .readiness import (
    MANAGEMENT_API_POLICY,
    ORDER_BINDING_POLICY,
    VIRTUAL_IP_POLICY,
    wait_for_management_api,
    wait_for_order,
    wait_for_virtual_ips,
)
from .waiter import (
    ErrorPolicy,
    Poll,
    PollStatus,
    ProvisioningWaiter,
    WaitPolicy,
    WaitResult,
    WaitStatus,
    fatal,
    pending,
    ready,
)

__all__ = [
    'HA_PEER_NODE_ID',
    'MANAGEMENT_API_POLICY',
    'ORDER_BINDING_POLICY',
    'PACKAGE_ID_APPLICATION_DELIVERY_CONTROLLER',
    'SYNC_SCOPE_ALL',
    'VIRTUAL_IP_POLICY',
    'ApplianceSpec',
    'ErrorPolicy',
    'HACoordinator',
    'HAStep',
    'PairingState',
    'Poll',
    'PollStatus',
    'ProvisioningWaiter',
    'StepCategory',
    'VlanRef',
    'WaitPolicy',
    'WaitResult',
    'WaitStatus',
    'build_order',
    'build_public_ip_key',
    'build_vpx_price_key',
    'establish_steps',
    'fatal',
    'pending',
    'ready',
    'run_steps',
    'teardown_steps',
    'wait_for_management_api',
    'wait_for_order',
    'wait_for_virtual_ips',
]
