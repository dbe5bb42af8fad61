"""NITRO REST client and session for one VPX appliance.

Each client is bound to a single management address and a username/password
pair sent as ``X-NITRO-USER`` / ``X-NITRO-PASS`` on every request. The
password is read at request time, so updating ``ApplianceSession.password``
changes the credential used by the next call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..protocols import ApplianceControlClient

logger = logging.getLogger(__name__)

ADMIN_USERNAME = "root"


# ── Exception hierarchy ─────────────────────────────────────────


class NitroAPIError(Exception):
    """Error returned by an appliance's NITRO API."""

    def __init__(
        self,
        status_code: int,
        message: str = "",
        *,
        errorcode: int | None = None,
        address: str = "",
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.errorcode = errorcode
        self.address = address
        super().__init__(f"NITRO error {status_code} from {address}: {message}")


class NitroTimeoutError(NitroAPIError):
    """Request to the appliance timed out."""

    def __init__(self, message: str = "Request timed out", *, address: str = "") -> None:
        super().__init__(0, message, address=address)


# ── Request objects ──────────────────────────────────────────────


@dataclass(slots=True)
class RpcNodeRequest:
    """Mutable ``nsrpcnode`` payload; callers re-send it with a new address."""

    ipaddress: str
    password: str

    def payload(self) -> dict[str, Any]:
        return {"nsrpcnode": {"ipaddress": self.ipaddress, "password": self.password}}


# ── Client ───────────────────────────────────────────────────────


class NitroClient:
    """Synchronous client for ``{scheme}://{address}/nitro/v1/config``."""

    def __init__(
        self,
        *,
        address: str,
        password: str,
        username: str = ADMIN_USERNAME,
        scheme: str = "http",
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        if not address:
            raise ValueError("address is required")

        self.address = address
        self.username = username
        self.password = password
        self._base_url = f"{scheme}://{address}/nitro/v1/config"
        self._client = http_client or httpx.Client()
        self._timeout = float(timeout_seconds)

    def _headers(self) -> dict[str, str]:
        return {
            "X-NITRO-USER": self.username,
            "X-NITRO-PASS": self.password,
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            resp = self._client.request(
                method,
                f"{self._base_url}{path}",
                headers=self._headers(),
                json=json,
                params=params,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise NitroTimeoutError(str(e), address=self.address) from e
        except httpx.TransportError as e:
            raise NitroAPIError(0, str(e), address=self.address) from e

        self._raise_for_status(resp)
        return resp

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return

        body = resp.text
        message = body[:200] if body else f"HTTP {resp.status_code}"
        errorcode = None
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            message = payload.get("message", message)
            errorcode = payload.get("errorcode")

        raise NitroAPIError(
            resp.status_code,
            message,
            errorcode=errorcode,
            address=self.address,
        )

    # ── Public API ───────────────────────────────────────────────

    def set_admin_password(self, username: str, password: str) -> None:
        self._request(
            "PUT",
            "/systemuser",
            json={"systemuser": {"username": username, "password": password}},
        )

    def add_ha_node(self, node_id: int, peer_address: str) -> None:
        self._request(
            "POST",
            "/hanode",
            json={"hanode": {"id": node_id, "ipaddress": peer_address}},
        )

    def delete_ha_node(self, node_id: int) -> None:
        self._request("DELETE", f"/hanode/{node_id}")

    def upsert_rpc_node(self, peer_address: str, password: str) -> None:
        request = RpcNodeRequest(ipaddress=peer_address, password=password)
        self._request("PUT", "/nsrpcnode", json=request.payload())

    def trigger_sync(self, scope: str) -> None:
        self._request(
            "POST",
            "/hafiles",
            json={"hafiles": {"mode": [scope]}},
            params={"action": "sync"},
        )

    def check_service(self) -> None:
        """Cheap read that only succeeds once the management service is up."""
        self._request("GET", "/nsversion")

    def close(self) -> None:
        self._client.close()


# ── Session ──────────────────────────────────────────────────────


class ApplianceSession:
    """One appliance identity bound to one open control-client connection.

    ``password`` is the credential currently believed valid. It is the
    client's credential, so assigning it re-keys every later call.
    """

    def __init__(self, appliance_id: int, client: ApplianceControlClient) -> None:
        self.appliance_id = appliance_id
        self.client = client

    @property
    def address(self) -> str:
        return self.client.address

    @property
    def username(self) -> str:
        return self.client.username

    @property
    def password(self) -> str:
        return self.client.password

    @password.setter
    def password(self, value: str) -> None:
        self.client.password = value

    def __repr__(self) -> str:
        return f"ApplianceSession(appliance_id={self.appliance_id}, address={self.address!r})"
