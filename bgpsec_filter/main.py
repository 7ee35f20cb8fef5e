#!/usr/bin/env python3
"""
BGPsec Filter - local SLURM overrides for BGPsec router certificates

Usage examples:
bgpsec-filter add --asn AS64500 --comment "decommissioned router"
bgpsec-filter apply rpki-client.json -o filtered.json
bgpsec-filter export -o slurm.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from bgpsec_filter import __version__
from bgpsec_filter.filters.service import FilterService, create_filter_service
from bgpsec_filter.models import AddFilter
from bgpsec_filter.router_keys import stream_router_keys, write_router_keys
from bgpsec_filter.slurm import export_slurm, import_slurm, load_slurm_file, write_slurm_file
from bgpsec_filter.utils.asn import format_asn
from bgpsec_filter.utils.config import get_config_manager
from bgpsec_filter.utils.error_handling import (
    ErrorFormatter, FilterError, handle_errors, print_success, print_warning
)
from bgpsec_filter.utils.logging import LoggingTimer, setup_logging


def setup_app_logging(verbose: bool = False, quiet: bool = False):
    """Configure logging for the application"""
    if quiet:
        level = 'WARNING'
    elif verbose:
        level = 'DEBUG'
    else:
        level = None  # use configured level

    setup_logging(config=get_config_manager().get_config(), level=level, console_colors=True)


def _service(args) -> FilterService:
    """Build the filter service for a command"""
    return create_filter_service(get_config_manager().get_config())


@handle_errors('bgpsec_filter.add')
def cmd_add(args):
    """Add a BGPsec filter"""
    service = _service(args)
    filter_id = service.add(AddFilter(asn=args.asn, ski=args.ski, comment=args.comment))
    print_success(f"Added BGPsec filter {filter_id}")
    return 0


@handle_errors('bgpsec_filter.remove')
def cmd_remove(args):
    """Remove a BGPsec filter by id"""
    service = _service(args)
    if service.remove(args.filter_id):
        print_success(f"Removed BGPsec filter {args.filter_id}")
    else:
        print_warning(f"BGPsec filter {args.filter_id} not found, nothing removed")
    return 0


@handle_errors('bgpsec_filter.list')
def cmd_list(args):
    """List BGPsec filters"""
    service = _service(args)
    entries = list(service.entries())

    if args.json:
        print(json.dumps(
            [dict(id=filter_id, **record.to_slurm()) for filter_id, record in entries],
            indent=2
        ))
        return 0

    if not entries:
        print("No BGPsec filters configured.")
        return 0

    print("BGPsec Filters:")
    print("-" * 78)
    for filter_id, record in entries:
        asn = format_asn(record.asn) if record.asn is not None else "*"
        ski = record.ski_hex or "*"
        comment = record.comment or ""
        print(f"  {filter_id:>6}  {asn:<14} {ski:<42} {comment}")
    return 0


@handle_errors('bgpsec_filter.clear')
def cmd_clear(args):
    """Remove all BGPsec filters"""
    if not args.yes:
        print_warning("Refusing to clear all BGPsec filters without --yes")
        return 1
    _service(args).clear()
    print_success("Cleared all BGPsec filters")
    return 0


@handle_errors('bgpsec_filter.export')
def cmd_export(args):
    """Export BGPsec filters as a SLURM document"""
    document = export_slurm(_service(args))
    if args.output:
        path = write_slurm_file(document, args.output)
        count = len(document["validationOutputFilters"]["bgpsecFilters"])
        print_success(f"Exported {count} BGPsec filters to {path}")
    else:
        print(json.dumps(document, indent=2))
    return 0


@handle_errors('bgpsec_filter.import')
def cmd_import(args):
    """Replace BGPsec filters with the contents of a SLURM file"""
    logger = logging.getLogger('bgpsec_filter.import')
    with LoggingTimer(logger, f"SLURM import from {args.slurm_file}"):
        filter_ids = import_slurm(_service(args), load_slurm_file(args.slurm_file))
    print_success(f"Imported {len(filter_ids)} BGPsec filters")
    return 0


@handle_errors('bgpsec_filter.apply')
def cmd_apply(args):
    """Filter a router key file"""
    logger = logging.getLogger('bgpsec_filter.apply')
    service = _service(args)

    with LoggingTimer(logger, f"BGPsec filtering of {args.input}"):
        certificates = stream_router_keys(args.input, args.format)
        filtered = service.apply(certificates)
        if args.output:
            count = write_router_keys(filtered, args.output)
            print_success(f"Wrote {count} router certificates to {args.output}")
        else:
            for certificate in filtered:
                print(json.dumps(certificate.to_dict(), sort_keys=True))
    return 0


@handle_errors('bgpsec_filter.serve')
def cmd_serve(args):
    """Run the management API"""
    import uvicorn
    from webui.app import create_app

    config = get_config_manager().get_config()
    host = args.host or config.webui.host
    port = args.port or config.webui.port
    uvicorn.run(create_app(_service(args)), host=host, port=port)
    return 0


def create_common_flags_parent():
    """Create a parent parser with common global flags"""
    parent_parser = argparse.ArgumentParser(add_help=False)

    verbose_group = parent_parser.add_mutually_exclusive_group()
    verbose_group.add_argument('-v', '--verbose', action='store_true',
                               help='Enable verbose logging')
    verbose_group.add_argument('-q', '--quiet', action='store_true',
                               help='Quiet mode (warnings only)')
    parent_parser.add_argument('--config', type=Path, default=None,
                               help='Path to configuration file')
    return parent_parser


def create_parser():
    """Create and configure argument parser"""
    common_flags_parent = create_common_flags_parent()

    parser = argparse.ArgumentParser(
        prog='bgpsec-filter',
        description='BGPsec Filter - local SLURM overrides for router certificates',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--version', action='version', version=f'bgpsec-filter {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    add_parser = subparsers.add_parser('add', help='Add a BGPsec filter',
                                       parents=[common_flags_parent])
    add_parser.add_argument('--asn', help='AS number (AS64500, 64500 or 0.64500)')
    add_parser.add_argument('--ski', help='Subject Key Identifier in hex')
    add_parser.add_argument('--comment', help='Free text annotation')

    remove_parser = subparsers.add_parser('remove', help='Remove a BGPsec filter',
                                          parents=[common_flags_parent])
    remove_parser.add_argument('filter_id', type=int, help='Filter id as shown by list')

    list_parser = subparsers.add_parser('list', help='List BGPsec filters',
                                        parents=[common_flags_parent])
    list_parser.add_argument('--json', action='store_true', help='Print JSON')

    clear_parser = subparsers.add_parser('clear', help='Remove all BGPsec filters',
                                         parents=[common_flags_parent])
    clear_parser.add_argument('--yes', action='store_true', help='Confirm removal')

    export_parser = subparsers.add_parser('export', help='Export filters as SLURM JSON',
                                          parents=[common_flags_parent])
    export_parser.add_argument('-o', '--output', help='Output file (default: stdout)')

    import_parser = subparsers.add_parser('import', help='Replace filters from a SLURM file',
                                          parents=[common_flags_parent])
    import_parser.add_argument('slurm_file', help='SLURM JSON file')

    apply_parser = subparsers.add_parser('apply', help='Filter a router key JSON file',
                                         parents=[common_flags_parent])
    apply_parser.add_argument('input', help='Router key JSON (rpki-client, routinator or native)')
    apply_parser.add_argument('-o', '--output', help='Output file (default: JSON lines on stdout)')
    apply_parser.add_argument('--format', default='auto',
                              choices=['auto', 'native', 'rpki-client', 'routinator'],
                              help='Input format (default: auto)')

    serve_parser = subparsers.add_parser('serve', help='Run the management API',
                                         parents=[common_flags_parent])
    serve_parser.add_argument('--host', help='Bind address (default: from config)')
    serve_parser.add_argument('--port', type=int, help='Bind port (default: from config)')

    return parser


def main(argv=None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        get_config_manager(args.config)
        setup_app_logging(args.verbose, args.quiet)
    except FilterError as e:
        print(ErrorFormatter.format_error(e))
        return 1

    command_functions = {
        'add': cmd_add,
        'remove': cmd_remove,
        'list': cmd_list,
        'clear': cmd_clear,
        'export': cmd_export,
        'import': cmd_import,
        'apply': cmd_apply,
        'serve': cmd_serve,
    }

    return command_functions[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
