"""Unit tests for NitroClient and ApplianceSession."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from vpx_provisioner.providers.nitro_client import (
    ApplianceSession,
    NitroAPIError,
    NitroClient,
    NitroTimeoutError,
    RpcNodeRequest,
)
from vpx_provisioner.protocols import ApplianceControlClient


def _make_client(mock_http=None, **kwargs) -> NitroClient:
    if mock_http is None:
        mock_http = MagicMock()
        mock_http.request = MagicMock(return_value=httpx.Response(201))
    return NitroClient(
        address='10.0.0.5',
        password='vpx-pw',
        http_client=mock_http,
        **kwargs,
    )


def _last_call(client: NitroClient):
    return client._client.request.call_args


# ── Test: requests ───────────────────────────────────────────────


def test_set_admin_password_puts_systemuser():
    client = _make_client()

    client.set_admin_password('root', 'new-pw')

    call = _last_call(client)
    assert call.args[0] == 'PUT'
    assert call.args[1] == 'http://10.0.0.5/nitro/v1/config/systemuser'
    assert call.kwargs['json'] == {'systemuser': {'username': 'root', 'password': 'new-pw'}}
    assert call.kwargs['headers']['X-NITRO-USER'] == 'root'
    assert call.kwargs['headers']['X-NITRO-PASS'] == 'vpx-pw'


def test_add_and_delete_ha_node():
    client = _make_client()

    client.add_ha_node(2, '10.0.0.6')
    add_call = _last_call(client)
    client.delete_ha_node(2)
    delete_call = _last_call(client)

    assert add_call.args[0] == 'POST'
    assert add_call.kwargs['json'] == {'hanode': {'id': 2, 'ipaddress': '10.0.0.6'}}
    assert delete_call.args[0] == 'DELETE'
    assert delete_call.args[1].endswith('/hanode/2')


def test_upsert_rpc_node():
    client = _make_client()

    client.upsert_rpc_node('10.0.0.6', 'shared-pw')

    call = _last_call(client)
    assert call.args[0] == 'PUT'
    assert call.args[1].endswith('/nsrpcnode')
    assert call.kwargs['json'] == {
        'nsrpcnode': {'ipaddress': '10.0.0.6', 'password': 'shared-pw'}
    }


def test_trigger_sync_uses_action_param():
    client = _make_client()

    client.trigger_sync('all')

    call = _last_call(client)
    assert call.args[0] == 'POST'
    assert call.args[1].endswith('/hafiles')
    assert call.kwargs['params'] == {'action': 'sync'}
    assert call.kwargs['json'] == {'hafiles': {'mode': ['all']}}


def test_https_scheme():
    client = _make_client(scheme='https')

    client.check_service()

    assert _last_call(client).args[1] == 'https://10.0.0.5/nitro/v1/config/nsversion'


# ── Test: errors ─────────────────────────────────────────────────


def test_error_body_is_parsed():
    mock_http = MagicMock()
    mock_http.request = MagicMock(
        return_value=httpx.Response(
            409, json={'errorcode': 273, 'message': 'Resource already exists'}
        )
    )
    client = _make_client(mock_http)

    with pytest.raises(NitroAPIError) as exc_info:
        client.add_ha_node(2, '10.0.0.6')

    assert exc_info.value.status_code == 409
    assert exc_info.value.errorcode == 273
    assert exc_info.value.message == 'Resource already exists'
    assert exc_info.value.address == '10.0.0.5'


def test_timeout_is_wrapped():
    mock_http = MagicMock()
    mock_http.request = MagicMock(side_effect=httpx.ConnectTimeout('no route'))
    client = _make_client(mock_http)

    with pytest.raises(NitroTimeoutError):
        client.check_service()


def test_connection_error_is_wrapped():
    mock_http = MagicMock()
    mock_http.request = MagicMock(side_effect=httpx.ConnectError('refused'))
    client = _make_client(mock_http)

    with pytest.raises(NitroAPIError) as exc_info:
        client.check_service()

    assert exc_info.value.status_code == 0


# ── Test: session ────────────────────────────────────────────────


def test_session_password_rekeys_client():
    client = _make_client()
    session = ApplianceSession(42, client)

    session.password = 'primary-pw'
    client.trigger_sync('all')

    assert client.password == 'primary-pw'
    assert _last_call(client).kwargs['headers']['X-NITRO-PASS'] == 'primary-pw'
    assert session.address == '10.0.0.5'
    assert session.username == 'root'


def test_client_satisfies_protocol():
    assert isinstance(_make_client(), ApplianceControlClient)


def test_rpc_node_request_payload():
    request = RpcNodeRequest(ipaddress='10.0.0.5', password='pw')
    request.ipaddress = '10.0.0.6'

    assert request.payload() == {'nsrpcnode': {'ipaddress': '10.0.0.6', 'password': 'pw'}}
