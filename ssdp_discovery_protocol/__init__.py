# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package ssdp_discovery_protocol implements the Simple Service Discovery Protocol (SSDP).

SSDP is the discovery layer of UPnP. Messages use an HTTP-like header grammar carried
in single UDP datagrams ("HTTP over UDP"), multicast to 239.255.255.250:1900. A control
point multicasts an M-SEARCH request and collects the unicast replies sent back within
the MX wait time; a device multicasts NOTIFY messages to announce that it is alive, that
its boot id is changing, or that it is leaving.

Fetching the description document at a discovered LOCATION, SOAP control and GENA
eventing are not part of this package.
"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    SsdpError,
    ConfigurationError,
    InvalidParameterValueError,
    UnsupportedVersionError,
    HttpuFormatError,
  )

from .spec_version import SpecVersion, IPVersion
from .search_target import SearchTarget, SearchTargetKind
from .httpu import HttpuMessage, HttpuResponse, HttpuOptions, HttpuSocket, create_httpu_socket, send_unicast_once
from .search import (
    SearchOptions,
    SearchResponse,
    ProductVersions,
    SsdpSearchRequest,
    build_search_message,
    async_search,
    search_once,
  )
from .notify import (
    Device,
    NotifyOptions,
    build_alive_message,
    build_update_message,
    build_byebye_message,
    device_available,
    device_update,
    device_unavailable,
  )
from .util import CaseInsensitiveDict, ProductVersion, user_agent_string
from .constants import SSDP_MULTICAST_ADDRESS, SSDP_MULTICAST_ADDRESS_V6, SSDP_PORT, UPNP_DOMAIN

__all__ = [
    '__version__',
    'Jsonable', 'JsonableDict',
    'SsdpError', 'ConfigurationError', 'InvalidParameterValueError', 'UnsupportedVersionError', 'HttpuFormatError',
    'SpecVersion', 'IPVersion',
    'SearchTarget', 'SearchTargetKind',
    'HttpuMessage', 'HttpuResponse', 'HttpuOptions', 'HttpuSocket', 'create_httpu_socket', 'send_unicast_once',
    'SearchOptions', 'SearchResponse', 'ProductVersions', 'SsdpSearchRequest',
    'build_search_message', 'async_search', 'search_once',
    'Device', 'NotifyOptions',
    'build_alive_message', 'build_update_message', 'build_byebye_message',
    'device_available', 'device_update', 'device_unavailable',
    'CaseInsensitiveDict', 'ProductVersion', 'user_agent_string',
    'SSDP_MULTICAST_ADDRESS', 'SSDP_MULTICAST_ADDRESS_V6', 'SSDP_PORT', 'UPNP_DOMAIN',
]
