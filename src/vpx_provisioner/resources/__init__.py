"""Lifecycle resources exposed to the enclosing lifecycle manager."""

from .appliance import ApplianceResource, HASecondary, network_attributes
from .ha_pair import HAPairResource, parse_ha_id

__all__ = [
    'ApplianceResource',
    'HAPairResource',
    'HASecondary',
    'network_attributes',
    'parse_ha_id',
]
