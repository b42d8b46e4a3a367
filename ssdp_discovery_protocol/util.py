#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Simple utility functions used by this package
"""

from __future__ import annotations

from typing_extensions import SupportsIndex

import netifaces
import platform
import socket
from ipaddress import IPv4Address, IPv6Address

from .internal_types import *
from .exceptions import ConfigurationError, InvalidParameterValueError
from .version import __version__, DISTRIBUTION_NAME
from .spec_version import SpecVersion

from requests.structures import CaseInsensitiveDict

def split_bytes_at_lf_or_crlf(data: bytes, maxsplit: SupportsIndex = -1) -> List[bytes]:
    """Split a byte string at LF or CRLF.

    If maxsplit is given, at most maxsplit splits are done.

    Returns a List[bytes] representing the delimiteds lines with the delimiters removed.
    """
    parts = data.split(b'\n', maxsplit)
    if len(parts) > 1:
        for i, part in enumerate(parts[:-1]):
            if part.endswith(b'\r'):
                parts[i] = part[:-1]
    return parts

def split_headers_and_body(data: bytes) -> Optional[Tuple[bytes, bytes]]:
    """Spits a byte string with a statement line, HTTP headers and an optional body into the
    header section and the body.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard.

    Returns a Tuple[headers: bytes, body: bytes], or None if the blank line that terminates
    the header section is missing. If there is no body, b'' is returned for the body.
    """
    delims = [b'\n\r\n', b'\n\n']
    first_i = -1
    first_nb = 0

    for delim in delims:
        i = data.find(delim)
        if i != -1:
            if first_i == -1 or i < first_i:
                first_i = i
                first_nb = len(delim)
    if first_i == -1:
        return None
    headers, body = data[:first_i], data[first_i + first_nb:]
    if headers.endswith(b'\r'):
        headers = headers[:-1]
    return (headers, body)

def parse_http_header_lines(lines: Iterable[bytes]) -> List[HeaderPair]:
    """Parse HTTP-style header lines into an ordered list of (name, value) pairs.

    Each line is split at the first colon; the name and the value are stripped of
    surrounding whitespace and the case of the name is preserved. A line with no colon
    becomes a header with an empty value. Empty lines are skipped. Duplicate names are
    kept, in order.

    No decoding of header values is performed--e.g., quoted strings are not unquoted.
    """
    result: List[HeaderPair] = []
    for line in lines:
        text = line.decode('utf-8', errors='replace')
        if text.strip() == '':
            continue
        name, sep, value = text.partition(':')
        result.append((name.strip(), value.strip() if sep else ''))
    return result

def encode_http_header(name: str, value: str) -> bytes:
    """Encodes a raw HTTP header name/value pair into a byte string.

    The value is written verbatim. The result is terminated with '\r\n'.
    """
    return f"{name}: {value}\r\n".encode('utf-8')

class ProductVersion:
    """A product name and version, rendered as "<name>/<version>" in identity strings."""

    name: str
    version: str

    def __init__(self, name: str, version: str):
        self.name = name
        self.version = version

    def __str__(self) -> str:
        return f"{self.name}/{self.version}"

    def __repr__(self) -> str:
        return f"ProductVersion({self.name!r}, {self.version!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ProductVersion):
            return False
        return self.name == other.name and self.version == other.version

def user_agent_string(spec_version: SpecVersion, product_and_version: Optional[ProductVersion]=None) -> str:
    """Returns the value of a SERVER or USER-AGENT header:

           <os>/<os-version> UPnP/<major>.<minor> <product>/<version>

       If product_and_version is None, the name and version of this package are used.
    """
    if product_and_version is None:
        product_and_version = ProductVersion(DISTRIBUTION_NAME, __version__)
    os_name = platform.system() or "unknown"
    os_version = platform.release() or "0"
    return f"{os_name}/{os_version} UPnP/{spec_version} {product_and_version}"

def get_interface_address(
        interface_name: str,
        address_family: Union[socket.AddressFamily, int]=socket.AF_INET,
      ) -> Tuple[str, int]:
    """Returns the (ip_address: str, scope_id: int) of the first address of a named
       network interface in the requested address family.

       The scope_id is the interface index for IPv6 addresses, and 0 for IPv4. Any
       "%<scope>" suffix on a link-local IPv6 address is removed.

       Raises InvalidParameterValueError if the interface does not exist, and
       ConfigurationError if it has no address in the requested family."""
    assert int(address_family) in (int(socket.AF_INET), int(socket.AF_INET6))
    is_ipv6 = int(address_family) == int(socket.AF_INET6)
    netiface_family = netifaces.AF_INET6 if is_ipv6 else netifaces.AF_INET
    try:
        ifinfo = netifaces.ifaddresses(interface_name)
    except ValueError as e:
        raise InvalidParameterValueError("network_interface", interface_name) from e
    for addrinfo in ifinfo.get(netiface_family, []):
        ip_str = addrinfo.get('addr')
        if not isinstance(ip_str, str):
            continue
        ip_str = ip_str.split('%', 1)[0]
        scope_id = socket.if_nametoindex(interface_name) if is_ipv6 else 0
        return (ip_str, scope_id)
    raise ConfigurationError(
        f"Network interface {interface_name} has no {'IPv6' if is_ipv6 else 'IPv4'} address")

def get_local_ip_addresses_and_interfaces(
        address_family: Union[socket.AddressFamily, int]=socket.AF_INET,
        include_loopback: bool=True
    ) -> List[Tuple[str, str]]:
    """Returns a list of Tuple[ip_address: str, interface_name: str] for the IP addresses of the local host
       in a requested address family. The result is sorted in a way that attempts to place the "preferred"
       canonical IP address first in the list, according to the following scheme:
           1. Addresses on the default gateway interface precede all other addresses.
           2. Non-loopback addresses precede loopback addresses.
           3. IPV4 addresses that begin with 172. follow other IPV4 addresses. This is a hack to
              deprioritize local docker network addresses.
    """
    result_with_priority: List[Tuple[int, str, str]] = []
    assert int(address_family) in (int(socket.AF_INET), int(socket.AF_INET6))
    is_ipv6 = int(address_family) == int(socket.AF_INET6)
    _, default_gateway_ifname = get_default_ip_gateway(address_family)
    netiface_family = netifaces.AF_INET6 if is_ipv6 else netifaces.AF_INET
    for ifname in netifaces.interfaces():
        ifinfo = netifaces.ifaddresses(ifname)
        if netiface_family in ifinfo:
            for addrinfo in ifinfo[netiface_family]:
              ip_str = addrinfo['addr'].split('%', 1)[0]
              assert isinstance(ip_str, str)
              if ifname == default_gateway_ifname:
                  priority = 0
              elif is_ipv6 and IPv6Address(ip_str).is_loopback:
                  if not include_loopback:
                      continue
                  priority = 3
              elif not is_ipv6 and IPv4Address(ip_str).is_loopback:
                  if not include_loopback:
                      continue
                  priority = 3
              elif not is_ipv6 and ip_str.startswith('172.'):
                  priority = 2
              else:
                  priority = 1

              result_with_priority.append((priority, ip_str, ifname))
    return [ (ip, ifname) for _, ip, ifname in sorted(result_with_priority)]

def get_default_ip_gateway(address_family: Union[socket.AddressFamily, int]=socket.AF_INET) -> Tuple[Optional[str], Optional[str]]:
    """Returns the (gateway_ip_address: str, gateway_interface_name: str) for the default IP gateway in the
       requested family, if any.
       returns (None, None) if there is no default gateway in the requested family."""
    assert int(address_family) in (int(socket.AF_INET), int(socket.AF_INET6))
    netiface_family = netifaces.AF_INET if int(address_family) == int(socket.AF_INET) else netifaces.AF_INET6
    gws = netifaces.gateways()
    if "default" in gws:
        default_gateway_infos = gws["default"]
        if netiface_family in default_gateway_infos:
            gw_ip, gw_interface_name = default_gateway_infos[netiface_family][:2]
            return (gw_ip, gw_interface_name)
    return (None, None)
