"""Provisioner error hierarchy.

Kept dependency-free so the waiter, coordinator and resources can raise and
catch them without importing the HTTP clients.
"""

from __future__ import annotations


class ProvisionerError(Exception):
    """Base class for provisioning and pairing failures."""


class InputResolutionError(ProvisionerError):
    """A named VLAN, subnet, datacenter or catalog key did not resolve."""


class AmbiguousStateError(ProvisionerError):
    """Remote state matched more than one object where exactly one is expected."""


class WaitTimeoutError(ProvisionerError):
    """A bounded wait exhausted its budget while the predicate stayed pending."""

    def __init__(
        self,
        wait_name: str,
        *,
        attempts: int,
        elapsed_seconds: float,
        detail: str = '',
    ) -> None:
        self.wait_name = wait_name
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        self.detail = detail
        message = (
            f'{wait_name} timed out after {attempts} attempts '
            f'({elapsed_seconds:.0f}s)'
        )
        if detail:
            message = f'{message}: {detail}'
        super().__init__(message)


class HAConfigurationError(ProvisionerError):
    """A remote call failed while establishing or tearing down an HA bond.

    Earlier steps are not rolled back; ``step`` tells how far the sequence got.
    """

    def __init__(
        self,
        *,
        operation: str,
        step: int,
        step_name: str,
        category: str,
        cause: BaseException,
    ) -> None:
        self.operation = operation
        self.step = step
        self.step_name = step_name
        self.category = category
        self.cause = cause
        super().__init__(
            f'HA {operation} failed at step {step} ({step_name}, '
            f'{category}): {cause}'
        )
