"""Order container construction tests."""

from __future__ import annotations

import pytest

from vpx_provisioner.errors import InputResolutionError
from vpx_provisioner.inmemory import InMemoryApplianceDirectory
from vpx_provisioner.provisioning.order import (
    PACKAGE_ID_APPLICATION_DELIVERY_CONTROLLER,
    ApplianceSpec,
    VlanRef,
    build_order,
    build_public_ip_key,
    build_vpx_price_key,
    resolve_prices,
)

VPX_KEY = 'CITRIX_NETSCALER_VPX_10_5_10MBPS_STANDARD'
IP_KEY = '2_STATIC_PUBLIC_IP_ADDRESSES'


def _make_directory() -> InMemoryApplianceDirectory:
    directory = InMemoryApplianceDirectory()
    directory.prices = {VPX_KEY: 1101, IP_KEY: 2202}
    directory.datacenters = {'ams01': 265592}
    directory.vlans = {(1234, 'fcr01a.ams01'): 40, (5678, 'bcr01a.ams01'): 50}
    directory.subnets = {'10.0.0.0/26': 60, '10.1.0.0/26': 70}
    return directory


def _make_spec(**overrides) -> ApplianceSpec:
    fields = {
        'datacenter': 'ams01',
        'speed': 10,
        'version': '10.5',
        'plan': 'standard',
        'ip_count': 2,
    }
    fields.update(overrides)
    return ApplianceSpec(**fields)


@pytest.mark.parametrize(
    'version, speed, plan, expected',
    [
        ('10.5', 10, 'standard', 'CITRIX_NETSCALER_VPX_10_5_10MBPS_STANDARD'),
        ('10.1', 1000, 'Platinum', 'CITRIX_NETSCALER_VPX_10_1_1000MBPS_PLATINUM'),
    ],
)
def test_build_vpx_price_key(version, speed, plan, expected):
    assert build_vpx_price_key(version, speed, plan) == expected


def test_build_public_ip_key():
    assert build_public_ip_key(4) == '4_STATIC_PUBLIC_IP_ADDRESSES'


# ── Prices ───────────────────────────────────────────────────────


def test_resolve_prices():
    assert resolve_prices(_make_directory(), _make_spec()) == [{'id': 1101}, {'id': 2202}]


def test_resolve_prices_reports_every_missing_key():
    with pytest.raises(InputResolutionError) as exc_info:
        resolve_prices(_make_directory(), _make_spec(plan='gold', ip_count=3))

    assert str(exc_info.value) == (
        'VPX version, speed or plan have incorrect values\n'
        'IP quantity value is incorrect'
    )


def test_resolve_prices_bad_ip_count_only():
    with pytest.raises(InputResolutionError, match='^IP quantity value is incorrect$'):
        resolve_prices(_make_directory(), _make_spec(ip_count=16))


# ── Order ────────────────────────────────────────────────────────


def test_minimal_order():
    order = build_order(_make_directory(), _make_spec())

    assert order == {
        'packageId': PACKAGE_ID_APPLICATION_DELIVERY_CONTROLLER,
        'quantity': 1,
        'prices': [{'id': 1101}, {'id': 2202}],
        'location': '265592',
        'hardware': [{}],
    }


def test_order_with_network_placement():
    spec = _make_spec(
        front_end_vlan=VlanRef('1234', 'fcr01a.ams01'),
        front_end_subnet='10.0.0.0/26',
        back_end_vlan=VlanRef(5678, 'bcr01a.ams01'),
    )

    order = build_order(_make_directory(), spec)

    assert order['hardware'] == [
        {
            'primaryNetworkComponent': {
                'networkVlanId': 40,
                'networkVlan': {'primarySubnetId': 60},
            },
            'primaryBackendNetworkComponent': {'networkVlanId': 50},
        }
    ]


def test_subnet_without_vlan():
    order = build_order(_make_directory(), _make_spec(back_end_subnet='10.1.0.0/26'))

    assert order['hardware'] == [
        {'primaryBackendNetworkComponent': {'networkVlan': {'primarySubnetId': 70}}}
    ]


def test_non_numeric_vlan_number():
    spec = _make_spec(front_end_vlan=VlanRef('abc', 'fcr01a.ams01'))

    with pytest.raises(InputResolutionError, match='vlan_number must be an integer'):
        build_order(_make_directory(), spec)


def test_unknown_vlan():
    spec = _make_spec(front_end_vlan=VlanRef(999, 'fcr01a.ams01'))

    with pytest.raises(InputResolutionError, match='fcr01a.ams01/999'):
        build_order(_make_directory(), spec)


def test_unknown_datacenter():
    with pytest.raises(InputResolutionError, match='datacenter'):
        build_order(_make_directory(), _make_spec(datacenter='xyz99'))
