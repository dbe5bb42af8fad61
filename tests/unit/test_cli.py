"""CLI dispatch and exit-code tests."""

from __future__ import annotations

import json

import pytest

from vpx_provisioner import cli
from vpx_provisioner.context import ProviderContext
from vpx_provisioner.inmemory import (
    InMemoryApplianceDirectory,
    InMemoryControlClient,
    in_memory_session_opener,
)


@pytest.fixture
def directory():
    directory = InMemoryApplianceDirectory()
    directory.add_appliance(12, address='10.0.0.12', password='p-pw', name='primary')
    directory.add_appliance(34, address='10.0.0.34', password='s-pw', name='secondary')
    directory.billing_items[34] = 4400
    return directory


@pytest.fixture
def journal():
    return []


@pytest.fixture(autouse=True)
def _in_memory_context(monkeypatch, directory, journal):
    clients = {
        12: InMemoryControlClient('10.0.0.12', 'p-pw', journal=journal),
        34: InMemoryControlClient('10.0.0.34', 's-pw', journal=journal),
    }
    context = ProviderContext(
        directory=directory,
        open_session=in_memory_session_opener(directory, clients),
    )
    monkeypatch.setattr(cli, 'configure_logging', lambda **kwargs: None)
    monkeypatch.setattr(cli, 'build_context', lambda settings: context)


def _output(capsys):
    return json.loads(capsys.readouterr().out)


def test_read(capsys):
    assert cli.main(['read', '12']) == 0
    out = _output(capsys)
    assert out['id'] == 12
    assert out['name'] == 'primary'


def test_exists(capsys):
    assert cli.main(['exists', '99']) == 0
    assert _output(capsys) == {'exists': False}


def test_delete(capsys, directory):
    assert cli.main(['delete', '34']) == 0
    assert _output(capsys) == {'deleted': 34}
    assert directory.cancelled == [4400]


def test_pair_and_unpair(capsys, journal):
    assert cli.main(['pair', '--primary', '12', '--secondary', '34']) == 0
    assert _output(capsys) == {'id': '12:34'}
    assert len(journal) == 8

    assert cli.main(['unpair', '12:34']) == 0
    assert _output(capsys) == {'deleted': '12:34'}
    assert len(journal) == 11


def test_set_and_clear_secondary(capsys, journal):
    assert cli.main(['set-secondary', '34', '--primary', '12']) == 0
    assert _output(capsys) == {'primary_id': 12, 'secondary_id': 34}

    assert cli.main(['clear-secondary', '34', '--primary', '12']) == 0
    assert _output(capsys) == {'secondary_id': 34, 'paired': False}
    assert journal[-1] == ('10.0.0.34', 'set_admin_password', ('root', 's-pw'))


def test_operation_failure_exits_1(journal):
    assert cli.main(['unpair', 'not-an-id']) == 1
    assert journal == []


def test_configuration_error_exits_2(monkeypatch, capsys):
    def reject(settings):
        raise ValueError('production: softlayer_username is required')

    monkeypatch.setattr(cli, 'build_context', reject)

    assert cli.main(['read', '12']) == 2
    assert 'softlayer_username is required' in capsys.readouterr().err


def test_vlan_argument_parsing():
    args = cli.build_parser().parse_args(
        [
            'create',
            '--datacenter', 'ams01',
            '--speed', '10',
            '--version', '10.5',
            '--plan', 'standard',
            '--ip-count', '2',
            '--front-end-vlan', '1234@fcr01a.ams01',
        ]
    )

    assert args.front_end_vlan.vlan_number == '1234'
    assert args.front_end_vlan.primary_router_hostname == 'fcr01a.ams01'
    assert args.back_end_vlan is None


def test_malformed_vlan_is_a_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        cli.build_parser().parse_args(['create', '--datacenter', 'ams01', '--speed', '10',
                                       '--version', '10.5', '--plan', 'standard',
                                       '--ip-count', '2', '--front-end-vlan', '1234'])
    assert exc_info.value.code == 2


def test_malformed_numeric_env_exits_2(monkeypatch, capsys):
    monkeypatch.setenv('SOFTLAYER_TIMEOUT', 'soon')

    assert cli.main(['read', '12']) == 2
    assert 'configuration error' in capsys.readouterr().err
