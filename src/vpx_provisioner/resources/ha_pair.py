"""HAPairResource: an HA bond managed as its own resource.

The resource id is ``"{primary_id}:{secondary_id}"``. Nothing is stored
locally; the bond exists only as configuration on the two appliances.
"""

from __future__ import annotations

import logging
from typing import Any

from ..context import ProviderContext
from ..errors import InputResolutionError
from ..provisioning.ha_coordinator import PairingState

logger = logging.getLogger(__name__)


def parse_ha_id(ha_id: str) -> PairingState:
    """Parse ``"12:34"`` into ``PairingState(12, 34)``."""
    if not ha_id:
        raise InputResolutionError('Failed to parse id : Unable to get netscaler Ids')

    parts = ha_id.split(':')
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InputResolutionError('Failed to parse id : Invalid HA ID')

    try:
        primary_id = int(parts[0])
    except ValueError as exc:
        raise InputResolutionError(
            f'Failed to parse id : Unable to get a primaryId {exc}'
        ) from exc
    try:
        secondary_id = int(parts[1])
    except ValueError as exc:
        raise InputResolutionError(
            f'Failed to parse id : Unable to get a secondaryId {exc}'
        ) from exc

    return PairingState(primary_id, secondary_id)


class HAPairResource:
    def __init__(self, context: ProviderContext) -> None:
        self._ctx = context

    def create(self, primary_id: int, secondary_id: int) -> str:
        state = self._ctx.coordinator.establish(primary_id, secondary_id)
        logger.info('Netscaler HA ID: %s', state.id, extra={'ha_id': state.id})
        return state.id

    def read(self, ha_id: str) -> dict[str, Any]:
        state = parse_ha_id(ha_id)
        return {
            'id': state.id,
            'primary_id': state.primary_id,
            'secondary_id': state.secondary_id,
        }

    def delete(self, ha_id: str) -> None:
        state = parse_ha_id(ha_id)
        self._ctx.coordinator.teardown(state.primary_id, state.secondary_id)

    def exists(self, ha_id: str) -> bool:
        try:
            parse_ha_id(ha_id)
        except InputResolutionError:
            return False
        return True
