#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import sys
import argparse
import json
import socket
import asyncio
import logging

from ssdp_discovery_protocol.internal_types import *

from ssdp_discovery_protocol import (
    __version__ as pkg_version,
    SpecVersion,
    IPVersion,
    SearchTarget,
    SearchOptions,
    SsdpSearchRequest,
    Device,
    NotifyOptions,
    device_available,
    device_update,
    device_unavailable,
    UPNP_DOMAIN,
  )
from ssdp_discovery_protocol.constants import DEFAULT_MAX_WAIT_TIME, DEFAULT_MAX_AGE
from ssdp_discovery_protocol.util import get_local_ip_addresses_and_interfaces

class CmdExitError(RuntimeError):
    exit_code: int

    def __init__(self, exit_code: int, msg: Optional[str]=None):
        if msg is None:
            msg = f"Command exited with return code {exit_code}"
        super().__init__(msg)
        self.exit_code = exit_code

class ArgparseExitError(CmdExitError):
    pass

class NoExitArgumentParser(argparse.ArgumentParser):
    def exit(self, status=0, message=None):
        if message:
            self._print_message(message, sys.stderr)
        raise ArgparseExitError(status, message)

notify_operations: Dict[str, Callable[[Device, NotifyOptions], None]] = {
    "alive": device_available,
    "update": device_update,
    "byebye": device_unavailable,
}

class CommandHandler:
    _argv: Optional[Sequence[str]]
    _parser: argparse.ArgumentParser
    _args: argparse.Namespace
    _provide_traceback: bool = True

    def __init__(self, argv: Optional[Sequence[str]]=None):
        self._argv = argv

    async def cmd_bare(self) -> int:
        print("A command is required", file=sys.stderr)
        return 1

    def _spec_version(self) -> SpecVersion:
        spec_version: Optional[str] = self._args.spec_version
        if spec_version is None:
            return SpecVersion.default()
        return SpecVersion.parse(spec_version)

    def _network_version(self) -> IPVersion:
        return IPVersion.V6 if self._args.use_ipv6 else IPVersion.V4

    async def cmd_search(self) -> int:
        spec_version = self._spec_version()
        options = SearchOptions.default_for(spec_version)
        options.network_interface = self._args.interface
        options.network_version = self._network_version()
        options.address = self._args.address
        options.port = self._args.port
        options.bind_port = self._args.bind_port
        options.search_target = SearchTarget.parse(self._args.search_target)
        options.domain = self._args.domain
        options.max_wait_time = self._args.max_wait
        logging.debug(f"Searching for {options.effective_search_target} with UPnP {spec_version}, "
                      f"interface={options.network_interface or 'all'}, wait time={options.max_wait_time}")
        async with SsdpSearchRequest(options) as search_request:
            async for response in search_request.iter_responses():
                versions = response.versions
                summary: JsonableDict = {
                    "service_name": response.service_name,
                    "location": response.location,
                    "search_target": response.search_target,
                    "product_version": versions.product_version,
                    "upnp_version": versions.upnp_version,
                    "platform_version": versions.platform_version,
                    "src_addr": f"{response.src_addr[0]}:{response.src_addr[1]}",
                    "headers": dict(response.response.headers),
                    "monotonic_time": response.monotonic_time,
                    "utc_time": response.utc_time.isoformat(),
                }
                print(json.dumps(summary, indent=2, sort_keys=True))
                sys.stdout.flush()
        return 0

    async def cmd_notify(self) -> int:
        spec_version = self._spec_version()
        options = NotifyOptions.default_for(spec_version)
        options.network_interface = self._args.interface
        options.network_version = self._network_version()
        options.address = self._args.address
        options.port = self._args.port
        options.max_age = self._args.max_age
        if self._args.ttl is not None:
            options.packet_ttl = self._args.ttl
        device = Device(
            notification_type=SearchTarget.parse(self._args.nt),
            service_name=self._args.usn,
            location=self._args.location,
            boot_id=self._args.boot_id,
            config_id=self._args.config_id,
            search_port=self._args.search_port,
            secure_location=self._args.secure_location,
          )
        operation = notify_operations[self._args.operation]
        operation(device, options)
        print(json.dumps({ "operation": self._args.operation, "boot_id": device.boot_id }, sort_keys=True))
        return 0

    async def cmd_interfaces(self) -> int:
        family = socket.AF_INET6 if self._args.use_ipv6 else socket.AF_INET
        for ip, ifname in get_local_ip_addresses_and_interfaces(family):
            print(f"{ifname}\t{ip}")
        return 0

    async def cmd_version(self) -> int:
        print(pkg_version)
        return 0

    async def arun(self) -> int:
        """Run the ssdp command-line tool with provided arguments

        Args:
            argv (Optional[Sequence[str]], optional):
                A list of commandline arguments (NOT including the program as argv[0]!),
                or None to use sys.argv[1:]. Defaults to None.

        Returns:
            int: The exit code that would be returned if this were run as a standalone command.
        """
        parser = NoExitArgumentParser(prog="ssdp", description="UPnP SSDP search and notification tool.")


        # ======================= Main command

        self._parser = parser
        parser.add_argument('--traceback', "--tb", action='store_true', default=False,
                            help='Display detailed exception information')
        parser.add_argument('--log-level', dest='log_level', default='warning',
                            choices=['debug', 'info', 'warning', 'error', 'critical'],
                            help='''The logging level to use. Default: warning''')
        parser.add_argument('--interface', default=None,
                            help='''The network interface name to bind to. Default: all interfaces''')
        parser.add_argument('-6', '--ipv6', dest='use_ipv6', action='store_true', default=False,
                            help='''Use IPv6 instead of IPv4''')
        parser.add_argument('-V', '--spec-version', dest='spec_version', default=None,
                            help='''The UPnP version to use: 1.0, 1.1, or 2.0. Default: 1.0''')
        parser.set_defaults(func=self.cmd_bare)

        subparsers = parser.add_subparsers(
                            title='Commands',
                            description='Valid commands',
                            help='Additional help available with "<command-name> -h"')


        # ======================= search

        parser_search = subparsers.add_parser('search', description="Issue a multicast search to find devices")
        parser_search.add_argument('-s', '--search-target', dest='search_target', default='',
                            help='''The search target: all, root, device:<id>, device-type:<type>, service-type:<type>,
                                    or raw:<st>. Default: root''')
        parser_search.add_argument('-d', '--domain', default=UPNP_DOMAIN,
                            help=f'''The domain used for device-type and service-type targets. Default: {UPNP_DOMAIN}''')
        parser_search.add_argument('-w', '--max-wait', dest='max_wait', type=int, default=DEFAULT_MAX_WAIT_TIME,
                            help=f'''The maximum time devices may wait before responding, in seconds. Default: {DEFAULT_MAX_WAIT_TIME}''')
        parser_search.add_argument('-a', '--address', default=None,
                            help='''The multicast address. Default: 239.255.255.250, or FF02::C with --ipv6''')
        parser_search.add_argument('-p', '--port', type=int, default=None,
                            help='''The multicast port. Default: 1900''')
        parser_search.add_argument('-b', '--bind-port', dest='bind_port', type=int, default=None,
                            help='''The local port to bind to. Default: chosen by the OS''')
        parser_search.set_defaults(func=self.cmd_search)

        # ======================= notify

        parser_notify = subparsers.add_parser('notify', description="Multicast a device notification")
        parser_notify.add_argument('operation', choices=list(notify_operations.keys()),
                            help='''The notification to send''')
        parser_notify.add_argument('--nt', default='',
                            help='''The notification type, in the same form as a search target. Default: root''')
        parser_notify.add_argument('--usn', required=True,
                            help='''The unique service name of the device or service''')
        parser_notify.add_argument('--location', default='',
                            help='''The URL of the device description''')
        parser_notify.add_argument('--boot-id', dest='boot_id', type=int, default=0,
                            help='''The current BOOTID.UPNP.ORG value. Default: 0''')
        parser_notify.add_argument('--config-id', dest='config_id', type=int, default=0,
                            help='''The CONFIGID.UPNP.ORG value. Default: 0''')
        parser_notify.add_argument('--search-port', dest='search_port', type=int, default=None,
                            help='''The SEARCHPORT.UPNP.ORG value, if any''')
        parser_notify.add_argument('--secure-location', dest='secure_location', default=None,
                            help='''The secure location, used at UPnP 2.0''')
        parser_notify.add_argument('--max-age', dest='max_age', type=int, default=DEFAULT_MAX_AGE,
                            help=f'''The CACHE-CONTROL max-age, in seconds. Default: {DEFAULT_MAX_AGE}''')
        parser_notify.add_argument('--ttl', type=int, default=None,
                            help='''The multicast TTL. Default: 4 for UPnP 1.0, otherwise 2''')
        parser_notify.add_argument('-a', '--address', default=None,
                            help='''The multicast address. Default: 239.255.255.250, or FF02::C with --ipv6''')
        parser_notify.add_argument('-p', '--port', type=int, default=None,
                            help='''The multicast port. Default: 1900''')
        parser_notify.set_defaults(func=self.cmd_notify)

        # ======================= interfaces

        parser_interfaces = subparsers.add_parser('interfaces',
                                description='''List local network interfaces and their addresses.''')
        parser_interfaces.set_defaults(func=self.cmd_interfaces)

        # ======================= version

        parser_version = subparsers.add_parser('version',
                                description='''Display version information.''')
        parser_version.set_defaults(func=self.cmd_version)

        # =========================================================

        try:
            args = parser.parse_args(self._argv)
        except ArgparseExitError as ex:
            return ex.exit_code
        traceback: bool = args.traceback
        self._provide_traceback = traceback

        try:
            logging.basicConfig(
                level=logging.getLevelName(args.log_level.upper()),
            )
            self._args = args
            func: Callable[[], Awaitable[int]] = args.func
            logging.debug(f"Running command {func.__name__}, tb = {traceback}")
            rc = await func()
            logging.debug(f"Command {func.__name__} returned {rc}")
        except Exception as ex:
            if isinstance(ex, CmdExitError):
                rc = ex.exit_code
            else:
                rc = 1
            if rc != 0:
                if traceback:
                    raise
            print(f"ssdp: error: {type(ex).__name__}: {ex}", file=sys.stderr)
        except BaseException as ex:
            print(f"ssdp: Unhandled exception: {ex}", file=sys.stderr)
            raise

        return rc

    def run(self) -> int:
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            rc = loop.run_until_complete(self.arun())
        finally:
            loop.close()
        return rc

def run(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = CommandHandler(argv).run()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

async def arun(argv: Optional[Sequence[str]]=None) -> int:
    try:
        rc = await CommandHandler(argv).arun()
    except CmdExitError as ex:
        rc = ex.exit_code
    return rc

def main() -> None:
    sys.exit(run())

# allow running with "python3 -m", or as a standalone script
if __name__ == "__main__":
    main()
