"""ProviderContext: the explicit handle every lifecycle operation receives.

There is no module-level SoftLayer session; callers build one context (from
settings, or from in-memory fakes) and pass it to the resources.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from .protocols import ApplianceDirectory
from .providers.directory import SoftLayerApplianceDirectory
from .providers.nitro_client import ApplianceSession, NitroClient
from .providers.softlayer_client import SoftLayerClient
from .provisioning.ha_coordinator import HACoordinator, SessionOpener
from .provisioning.waiter import ProvisioningWaiter
from .settings import ProvisionerSettings


@dataclass(frozen=True, slots=True)
class ProviderContext:
    directory: ApplianceDirectory
    open_session: SessionOpener
    settings: ProvisionerSettings = field(default_factory=ProvisionerSettings)
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], None] = time.sleep

    @property
    def waiter(self) -> ProvisioningWaiter:
        return ProvisioningWaiter(clock=self.clock, sleep=self.sleep)

    @property
    def coordinator(self) -> HACoordinator:
        return HACoordinator(self.open_session)


def nitro_session_opener(
    directory: ApplianceDirectory,
    settings: ProvisionerSettings,
    *,
    http_client: httpx.Client | None = None,
) -> SessionOpener:
    """Return a function opening a NITRO session from directory credentials."""

    def open_session(appliance_id: int) -> ApplianceSession:
        address, password = directory.get_credentials(appliance_id)
        client = NitroClient(
            address=address,
            password=password,
            scheme=settings.nitro_scheme,
            http_client=http_client,
            timeout_seconds=settings.nitro_timeout_seconds,
        )
        return ApplianceSession(appliance_id, client)

    return open_session


def build_context(
    settings: ProvisionerSettings,
    *,
    http_client: httpx.Client | None = None,
) -> ProviderContext:
    """Wire the SoftLayer directory and NITRO sessions from settings.

    Both APIs send through one ``httpx.Client``, built here unless the
    caller passes one.

    Raises:
        ValueError: If the settings do not validate.
    """
    errors = settings.validate()
    if errors:
        raise ValueError('; '.join(errors))

    http_client = http_client or httpx.Client()
    softlayer = SoftLayerClient(
        username=settings.softlayer_username,
        api_key=settings.softlayer_api_key,
        endpoint_url=settings.softlayer_endpoint_url,
        http_client=http_client,
        timeout_seconds=settings.softlayer_timeout_seconds,
    )
    directory = SoftLayerApplianceDirectory(softlayer)
    return ProviderContext(
        directory=directory,
        open_session=nitro_session_opener(directory, settings, http_client=http_client),
        settings=settings,
    )
