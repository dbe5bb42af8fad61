"""Command-line entry point for provisioning and pairing VPX appliances.

Usage::

    vpx-provisioner create --datacenter ams01 --speed 10 --version 10.5 \\
        --plan standard --ip-count 2
    vpx-provisioner read 12345
    vpx-provisioner pair --primary 12345 --secondary 12346
    vpx-provisioner unpair 12345:12346

Credentials come from SOFTLAYER_USERNAME / SOFTLAYER_API_KEY.

Exit codes:
  0  success
  1  the operation failed
  2  invalid arguments or configuration
"""

from __future__ import annotations

import argparse
import json
import sys
import uuid
from typing import Any, Sequence

from .context import ProviderContext, build_context
from .errors import ProvisionerError
from .observability.logging import configure_logging, get_logger, operation_id_ctx
from .providers.nitro_client import NitroAPIError
from .providers.softlayer_client import SoftLayerAPIError
from .provisioning.order import ApplianceSpec, VlanRef
from .resources.appliance import ApplianceResource, HASecondary
from .resources.ha_pair import HAPairResource
from .settings import ProvisionerSettings

logger = get_logger(__name__)


def _vlan(value: str | None) -> VlanRef | None:
    """Parse ``NUMBER@ROUTER`` into a VlanRef."""
    if not value:
        return None
    number, sep, router = value.partition('@')
    if not sep or not number or not router:
        raise argparse.ArgumentTypeError(
            f'expected VLAN as NUMBER@ROUTER_HOSTNAME, got {value!r}'
        )
    return VlanRef(vlan_number=number, primary_router_hostname=router)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='vpx-provisioner',
        description='Provision NetScaler VPX appliances and manage HA pairs.',
    )
    parser.add_argument(
        '--log-format',
        choices=('json', 'console'),
        default=None,
        help='Log renderer (default: LOG_FORMAT env or json).',
    )
    sub = parser.add_subparsers(dest='command', required=True)

    create = sub.add_parser('create', help='Order an appliance and wait until ready.')
    create.add_argument('--datacenter', required=True)
    create.add_argument('--speed', type=int, required=True, help='Mbps')
    create.add_argument('--version', required=True)
    create.add_argument('--plan', required=True)
    create.add_argument('--ip-count', type=int, required=True)
    create.add_argument('--front-end-vlan', type=_vlan, default=None)
    create.add_argument('--front-end-subnet', default=None)
    create.add_argument('--back-end-vlan', type=_vlan, default=None)
    create.add_argument('--back-end-subnet', default=None)

    for name in ('read', 'delete', 'exists'):
        cmd = sub.add_parser(name, help=f'{name.capitalize()} an appliance.')
        cmd.add_argument('appliance_id', type=int)

    set_ha = sub.add_parser('set-secondary', help='Bond an appliance as secondary.')
    set_ha.add_argument('appliance_id', type=int)
    set_ha.add_argument('--primary', type=int, required=True)
    set_ha.add_argument('--failback', action='store_true')

    clear_ha = sub.add_parser('clear-secondary', help='Unbond a secondary appliance.')
    clear_ha.add_argument('appliance_id', type=int)
    clear_ha.add_argument('--primary', type=int, required=True)

    pair = sub.add_parser('pair', help='Create an HA pair resource.')
    pair.add_argument('--primary', type=int, required=True)
    pair.add_argument('--secondary', type=int, required=True)

    unpair = sub.add_parser('unpair', help='Delete an HA pair resource.')
    unpair.add_argument('ha_id', help='PRIMARY_ID:SECONDARY_ID')

    return parser


def run(args: argparse.Namespace, context: ProviderContext) -> Any:
    """Dispatch a parsed command; return a JSON-serializable result."""
    appliances = ApplianceResource(context)
    pairs = HAPairResource(context)

    if args.command == 'create':
        spec = ApplianceSpec(
            datacenter=args.datacenter,
            speed=args.speed,
            version=args.version,
            plan=args.plan,
            ip_count=args.ip_count,
            front_end_vlan=args.front_end_vlan,
            front_end_subnet=args.front_end_subnet,
            back_end_vlan=args.back_end_vlan,
            back_end_subnet=args.back_end_subnet,
        )
        appliance_id = appliances.create(spec)
        return appliances.read(appliance_id)
    if args.command == 'read':
        return appliances.read(args.appliance_id)
    if args.command == 'delete':
        appliances.delete(args.appliance_id)
        return {'deleted': args.appliance_id}
    if args.command == 'exists':
        return {'exists': appliances.exists(args.appliance_id)}
    if args.command == 'set-secondary':
        appliances.update(
            args.appliance_id,
            HASecondary(primary_id=args.primary, failback=args.failback),
        )
        return {'primary_id': args.primary, 'secondary_id': args.appliance_id}
    if args.command == 'clear-secondary':
        appliances.update(
            args.appliance_id,
            None,
            previous=HASecondary(primary_id=args.primary),
        )
        return {'secondary_id': args.appliance_id, 'paired': False}
    if args.command == 'pair':
        return {'id': pairs.create(args.primary, args.secondary)}
    if args.command == 'unpair':
        pairs.delete(args.ha_id)
        return {'deleted': args.ha_id}
    raise ValueError(f'unknown command: {args.command}')


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    json_output = None if args.log_format is None else args.log_format == 'json'
    configure_logging(json_output=json_output)
    operation_id_ctx.set(uuid.uuid4().hex[:12])

    try:
        context = build_context(ProvisionerSettings.from_env())
    except ValueError as exc:
        print(f'configuration error: {exc}', file=sys.stderr)
        return 2

    try:
        result = run(args, context)
    except (ProvisionerError, SoftLayerAPIError, NitroAPIError) as exc:
        logger.error('operation_failed', command=args.command, error=str(exc))
        return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == '__main__':
    sys.exit(main())
