"""Primary/secondary HA bonding between two VPX appliances.

Establish runs eight ordered steps against two NITRO sessions:

  1. secondary: set admin password to primary's
  2. local:     re-key the secondary session with that password
  3. primary:   add HA node 2 -> secondary's address
  4. secondary: add HA node 2 -> primary's address
  5. primary:   upsert RPC node for its own address
  6. primary:   upsert RPC node for secondary's address (same request, new address)
  7. secondary: upsert RPC node for primary's address, then for its own
  8. primary:   sync all configuration and files to the peer

Teardown deletes HA node 2 on secondary, then on primary, then restores the
secondary's original admin password.

Both sequences stop at the first failing step and leave earlier remote
changes in place. Only two-node bonds are supported: each appliance is
implicitly node 1 and its peer is always node ``HA_PEER_NODE_ID``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from ..errors import HAConfigurationError, ProvisionerError
from ..observability.metrics import HA_OPERATIONS_TOTAL, HA_STEP_FAILURES_TOTAL
from ..providers.nitro_client import ADMIN_USERNAME, ApplianceSession, RpcNodeRequest

logger = logging.getLogger(__name__)

HA_PEER_NODE_ID = 2
SYNC_SCOPE_ALL = 'all'


class StepCategory(str, Enum):
    PASSWORD_SYNC = 'password_sync'
    NODE_REGISTRATION = 'node_registration'
    RPC_REGISTRATION = 'rpc_registration'
    FILE_SYNC = 'file_sync'


@dataclass(frozen=True, slots=True)
class HAStep:
    number: int
    name: str
    category: StepCategory
    action: Callable[[], None]


@dataclass(frozen=True, slots=True)
class PairingState:
    """A bond as identified from outside: ``"{primary_id}:{secondary_id}"``."""

    primary_id: int
    secondary_id: int

    @property
    def id(self) -> str:
        return f'{self.primary_id}:{self.secondary_id}'


SessionOpener = Callable[[int], ApplianceSession]


# ── Step lists ───────────────────────────────────────────────────────


def establish_steps(
    primary: ApplianceSession, secondary: ApplianceSession
) -> tuple[HAStep, ...]:
    """Build the ordered establish sequence for two open sessions."""
    primary_rpc = RpcNodeRequest(ipaddress=primary.address, password=primary.password)
    secondary_rpc = RpcNodeRequest(ipaddress=primary.address, password=primary.password)

    def sync_secondary_password() -> None:
        secondary.client.set_admin_password(ADMIN_USERNAME, primary.password)

    def rekey_secondary_session() -> None:
        secondary.password = primary.password

    def register_secondary_on_primary() -> None:
        primary.client.add_ha_node(HA_PEER_NODE_ID, secondary.address)

    def register_primary_on_secondary() -> None:
        secondary.client.add_ha_node(HA_PEER_NODE_ID, primary.address)

    def register_primary_rpc_self() -> None:
        primary.client.upsert_rpc_node(primary_rpc.ipaddress, primary_rpc.password)

    def register_primary_rpc_peer() -> None:
        primary_rpc.ipaddress = secondary.address
        primary.client.upsert_rpc_node(primary_rpc.ipaddress, primary_rpc.password)

    def register_secondary_rpc() -> None:
        # Peer first, then self: the reverse of the primary's order.
        secondary.client.upsert_rpc_node(secondary_rpc.ipaddress, secondary_rpc.password)
        secondary_rpc.ipaddress = secondary.address
        secondary.client.upsert_rpc_node(secondary_rpc.ipaddress, secondary_rpc.password)

    def sync_files() -> None:
        primary.client.trigger_sync(SYNC_SCOPE_ALL)

    return (
        HAStep(1, 'sync_secondary_password', StepCategory.PASSWORD_SYNC, sync_secondary_password),
        HAStep(2, 'rekey_secondary_session', StepCategory.PASSWORD_SYNC, rekey_secondary_session),
        HAStep(3, 'register_secondary_on_primary', StepCategory.NODE_REGISTRATION, register_secondary_on_primary),
        HAStep(4, 'register_primary_on_secondary', StepCategory.NODE_REGISTRATION, register_primary_on_secondary),
        HAStep(5, 'register_primary_rpc_self', StepCategory.RPC_REGISTRATION, register_primary_rpc_self),
        HAStep(6, 'register_primary_rpc_peer', StepCategory.RPC_REGISTRATION, register_primary_rpc_peer),
        HAStep(7, 'register_secondary_rpc', StepCategory.RPC_REGISTRATION, register_secondary_rpc),
        HAStep(8, 'sync_files', StepCategory.FILE_SYNC, sync_files),
    )


def teardown_steps(
    primary: ApplianceSession,
    secondary: ApplianceSession,
    original_password: str,
) -> tuple[HAStep, ...]:
    """Build the ordered teardown sequence for two bonded sessions."""

    def remove_node_on_secondary() -> None:
        secondary.client.delete_ha_node(HA_PEER_NODE_ID)

    def remove_node_on_primary() -> None:
        primary.client.delete_ha_node(HA_PEER_NODE_ID)

    def restore_secondary_password() -> None:
        secondary.client.set_admin_password(ADMIN_USERNAME, original_password)
        secondary.password = original_password

    return (
        HAStep(1, 'remove_node_on_secondary', StepCategory.NODE_REGISTRATION, remove_node_on_secondary),
        HAStep(2, 'remove_node_on_primary', StepCategory.NODE_REGISTRATION, remove_node_on_primary),
        HAStep(3, 'restore_secondary_password', StepCategory.PASSWORD_SYNC, restore_secondary_password),
    )


def run_steps(operation: str, steps: Sequence[HAStep]) -> None:
    """Run ``steps`` in order, stopping at the first failure.

    Raises:
        HAConfigurationError: wrapping the failing step's exception.
    """
    for step in steps:
        logger.info(
            'HA %s step %d: %s',
            operation,
            step.number,
            step.name,
            extra={'operation': operation, 'step': step.name},
        )
        try:
            step.action()
        except Exception as exc:
            HA_STEP_FAILURES_TOTAL.labels(
                operation=operation, category=step.category.value
            ).inc()
            HA_OPERATIONS_TOTAL.labels(operation=operation, outcome='error').inc()
            raise HAConfigurationError(
                operation=operation,
                step=step.number,
                step_name=step.name,
                category=step.category.value,
                cause=exc,
            ) from exc
    HA_OPERATIONS_TOTAL.labels(operation=operation, outcome='success').inc()


# ── Coordinator ──────────────────────────────────────────────────────


class HACoordinator:
    """Opens sessions for two appliances and drives the bond sequences."""

    def __init__(self, open_session: SessionOpener) -> None:
        self._open_session = open_session

    def establish(self, primary_id: int, secondary_id: int) -> PairingState:
        primary, secondary = self._open_pair(primary_id, secondary_id)
        return self.establish_sessions(primary, secondary)

    def establish_sessions(
        self, primary: ApplianceSession, secondary: ApplianceSession
    ) -> PairingState:
        logger.info(
            'Configuring HA: primary=%s secondary=%s',
            primary.appliance_id,
            secondary.appliance_id,
            extra={
                'primary_id': primary.appliance_id,
                'secondary_id': secondary.appliance_id,
            },
        )
        run_steps('establish', establish_steps(primary, secondary))
        return PairingState(primary.appliance_id, secondary.appliance_id)

    def teardown(
        self,
        primary_id: int,
        secondary_id: int,
        *,
        original_password: str | None = None,
    ) -> None:
        """Remove the bond between two appliances.

        ``original_password`` is the secondary's password from before the
        bond. When omitted, the credential the session was opened with is
        used, which is the password the directory still records for it.
        """
        primary, secondary = self._open_pair(primary_id, secondary_id)
        if original_password is None:
            original_password = secondary.password
        # A bonded secondary authenticates with the primary's password.
        secondary.password = primary.password
        self.teardown_sessions(primary, secondary, original_password)

    def teardown_sessions(
        self,
        primary: ApplianceSession,
        secondary: ApplianceSession,
        original_password: str,
    ) -> None:
        logger.info(
            'Deleting HA: primary=%s secondary=%s',
            primary.appliance_id,
            secondary.appliance_id,
            extra={
                'primary_id': primary.appliance_id,
                'secondary_id': secondary.appliance_id,
            },
        )
        run_steps('teardown', teardown_steps(primary, secondary, original_password))

    def _open_pair(
        self, primary_id: int, secondary_id: int
    ) -> tuple[ApplianceSession, ApplianceSession]:
        if primary_id == secondary_id:
            raise ProvisionerError(
                f'an appliance cannot be paired with itself: {primary_id}'
            )
        return (
            self._open(primary_id, 'primary'),
            self._open(secondary_id, 'secondary'),
        )

    def _open(self, appliance_id: int, role: str) -> ApplianceSession:
        try:
            return self._open_session(appliance_id)
        except ProvisionerError:
            raise
        except Exception as exc:
            raise ProvisionerError(
                f'Error getting {role} appliance information ID: {appliance_id}'
            ) from exc
