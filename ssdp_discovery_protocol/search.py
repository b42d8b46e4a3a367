# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SSDP search -- A control point's discovery query that can:

  1. Send an M-SEARCH request to a multicast UDP address (typically 239.255.255.250:1900)
  2. Receive and decode the unicast replies sent back to the requesting socket
  3. Collect and return replies received within the MX wait time
"""

from __future__ import annotations

import asyncio
import datetime
import re
import time

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    SSDP_MULTICAST_ADDRESS,
    SSDP_MULTICAST_ADDRESS_V6,
    SSDP_PORT,
    UPNP_DOMAIN,
    DEFAULT_MAX_WAIT_TIME,
    MAX_MAX_WAIT_TIME,
    DEFAULT_PACKET_TTL,
    DEFAULT_PACKET_TTL_V10,
    HTTP_METHOD_SEARCH,
    HTTP_HEADER_HOST,
    HTTP_HEADER_MAN,
    HTTP_HEADER_MX,
    HTTP_HEADER_ST,
    HTTP_HEADER_USER_AGENT,
    HTTP_HEADER_LOCATION,
    HTTP_HEADER_USN,
    HTTP_HEADER_SERVER,
    MAN_DISCOVER,
  )
from .exceptions import InvalidParameterValueError
from .spec_version import SpecVersion, IPVersion
from .search_target import SearchTarget
from .httpu import (
    HttpuMessage,
    HttpuResponse,
    HttpuOptions,
    HttpuSocket,
    create_httpu_socket,
    host_header_value,
  )
from .util import ProductVersion, user_agent_string

class ProductVersions:
    """The version triple carried in a SERVER header:

           <platform_version> UPnP/<upnp_version> <product>/<product_version>

    Any field that cannot be found is None.
    """

    _token_separator_re = re.compile(r'[\s,]+')

    product_version: Optional[str]
    """The version of the product token following the UPnP token (e.g. "2.3")."""

    upnp_version: Optional[str]
    """The version of the UPnP token (e.g. "1.0")."""

    platform_version: Optional[str]
    """Everything preceding the UPnP token (e.g. "Linux/5.10")."""

    def __init__(
            self,
            product_version: Optional[str]=None,
            upnp_version: Optional[str]=None,
            platform_version: Optional[str]=None
          ):
        self.product_version = product_version
        self.upnp_version = upnp_version
        self.platform_version = platform_version

    @classmethod
    def parse(cls, server: Optional[str]) -> ProductVersions:
        if server is None:
            return cls()
        tokens = [ t for t in cls._token_separator_re.split(server.strip()) if t != '' ]
        for i, token in enumerate(tokens):
            if token.upper().startswith('UPNP/'):
                upnp_version = token[5:] or None
                platform_version = ' '.join(tokens[:i]) or None
                product_version: Optional[str] = None
                if i + 1 < len(tokens) and '/' in tokens[i + 1]:
                    product_version = tokens[i + 1].split('/', 1)[1] or None
                return cls(product_version, upnp_version, platform_version)
        return cls()

    def __str__(self) -> str:
        return f"ProductVersions(product={self.product_version}, upnp={self.upnp_version}, platform={self.platform_version})"

    def __repr__(self) -> str:
        return str(self)


class SearchResponse:
    """A single reply to a search request."""

    service_name: str
    """The USN header of the reply."""

    location: str
    """The LOCATION header of the reply; the URL of the device description."""

    versions: ProductVersions
    """The versions parsed from the SERVER header."""

    src_addr: SockAddr
    """The source address of the reply"""

    response: HttpuResponse
    """The parsed reply datagram"""

    monotonic_time: float
    """The local time (in seconds) since an arbitrary point in the past at which
       the reply was received, as returned by time.monotonic()."""

    utc_time: datetime.datetime
    """The UTC time at which the reply was received."""

    def __init__(
            self,
            service_name: str,
            location: str,
            versions: ProductVersions,
            src_addr: SockAddr,
            response: HttpuResponse,
          ) -> None:
        self.service_name = service_name
        self.location = location
        self.versions = versions
        self.src_addr = src_addr
        self.response = response
        self.monotonic_time = time.monotonic()
        self.utc_time = datetime.datetime.now(datetime.timezone.utc)

    @classmethod
    def from_httpu_response(cls, src_addr: SockAddr, response: HttpuResponse) -> Optional[SearchResponse]:
        """Builds a SearchResponse from a "200" status reply carrying LOCATION and USN.

        Returns None for anything else.
        """
        if response.status_code != 200:
            return None
        location = response.headers.get(HTTP_HEADER_LOCATION)
        service_name = response.headers.get(HTTP_HEADER_USN)
        if location is None or service_name is None:
            return None
        versions = ProductVersions.parse(response.headers.get(HTTP_HEADER_SERVER))
        return cls(service_name, location, versions, src_addr, response)

    @property
    def search_target(self) -> Optional[str]:
        """The ST header of the reply, if any."""
        return self.response.headers.get(HTTP_HEADER_ST)

    def __str__(self) -> str:
        return f"SearchResponse(service_name='{self.service_name}', location='{self.location}', versions={self.versions}, src_addr={self.src_addr})"

    def __repr__(self) -> str:
        return str(self)


class SearchOptions:
    """Options for a single search. Unset addresses and ports fall back to the SSDP defaults."""

    spec_version: SpecVersion
    network_interface: Optional[str]
    network_version: Optional[IPVersion]
    address: Optional[str]
    """The multicast address to search. None selects 239.255.255.250, or FF02::C for IPv6."""
    port: Optional[int]
    """The multicast port to search. None selects 1900."""
    bind_port: Optional[int]
    search_target: SearchTarget
    domain: str
    """The domain used to qualify bare device-type and service-type targets."""
    max_wait_time: int
    """The MX value, and the number of seconds to collect replies for."""
    packet_ttl: int
    product_and_version: Optional[ProductVersion]

    def __init__(
            self,
            spec_version: SpecVersion=SpecVersion.V10,
            network_interface: Optional[str]=None,
            network_version: Optional[IPVersion]=None,
            address: Optional[str]=None,
            port: Optional[int]=None,
            bind_port: Optional[int]=None,
            search_target: Optional[SearchTarget]=None,
            domain: str=UPNP_DOMAIN,
            max_wait_time: int=DEFAULT_MAX_WAIT_TIME,
            packet_ttl: Optional[int]=None,
            product_and_version: Optional[ProductVersion]=None,
          ):
        self.spec_version = spec_version
        self.network_interface = network_interface
        self.network_version = network_version
        self.address = address
        self.port = port
        self.bind_port = bind_port
        self.search_target = SearchTarget.root_device() if search_target is None else search_target
        self.domain = domain
        self.max_wait_time = max_wait_time
        if packet_ttl is None:
            packet_ttl = DEFAULT_PACKET_TTL_V10 if spec_version == SpecVersion.V10 else DEFAULT_PACKET_TTL
        self.packet_ttl = packet_ttl
        self.product_and_version = product_and_version

    @classmethod
    def default_for(cls, spec_version: SpecVersion) -> SearchOptions:
        return cls(spec_version=spec_version)

    def validate(self) -> None:
        """Raises InvalidParameterValueError if the options cannot be used."""
        mx = self.max_wait_time
        if isinstance(mx, bool) or not isinstance(mx, int) or mx < 1 or mx > MAX_MAX_WAIT_TIME:
            raise InvalidParameterValueError("max_wait_time", mx)
        if self.port is not None and not (0 < self.port < 65536):
            raise InvalidParameterValueError("port", self.port)
        if self.bind_port is not None and not (0 <= self.bind_port < 65536):
            raise InvalidParameterValueError("bind_port", self.bind_port)

    @property
    def multicast_destination(self) -> HostAndPort:
        address = self.address
        if address is None:
            address = SSDP_MULTICAST_ADDRESS_V6 if self.network_version == IPVersion.V6 else SSDP_MULTICAST_ADDRESS
        port = SSDP_PORT if self.port is None else self.port
        return (address, port)

    @property
    def effective_search_target(self) -> SearchTarget:
        if self.domain != UPNP_DOMAIN:
            return self.search_target.with_domain(self.domain)
        return self.search_target

    def httpu_options(self) -> HttpuOptions:
        return HttpuOptions(
            network_interface=self.network_interface,
            network_version=self.network_version,
            packet_ttl=self.packet_ttl,
            bind_port=self.bind_port,
          )

def build_search_message(options: SearchOptions) -> HttpuMessage:
    """Validates options and builds the M-SEARCH request for them."""
    options.validate()
    address, port = options.multicast_destination
    message = HttpuMessage(HTTP_METHOD_SEARCH)
    message \
        .add_header(HTTP_HEADER_HOST, host_header_value(address, port)) \
        .add_header(HTTP_HEADER_MAN, MAN_DISCOVER) \
        .add_header(HTTP_HEADER_MX, options.max_wait_time) \
        .add_header(HTTP_HEADER_ST, options.effective_search_target.to_wire_string())
    if options.spec_version >= SpecVersion.V11:
        message.add_header(
            HTTP_HEADER_USER_AGENT,
            user_agent_string(options.spec_version, options.product_and_version))
    return message

class SsdpSearchRequest(
        AsyncContextManager['SsdpSearchRequest'],
        AsyncIterable[SearchResponse]
      ):
    """An object that manages a single search request and all of the received replies
       within an AsyncContextManager/AsyncIterable interface.

    Usage:
        async with SsdpSearchRequest(options) as search_request:
            async for response in search_request:
                print(response.service_name, response.location)
                # It is possible to break out of the loop early if desired
    """

    options: SearchOptions
    httpu_socket: Optional[HttpuSocket] = None
    end_time: float = 0.0

    def __init__(self, options: Optional[SearchOptions]=None):
        self.options = SearchOptions() if options is None else options

    async def __aenter__(self) -> SsdpSearchRequest:
        message = build_search_message(self.options)
        sock, dest_sockaddr = create_httpu_socket(self.options.multicast_destination, self.options.httpu_options())
        httpu_socket = HttpuSocket(sock)
        # start receiving before the request goes out so that no reply is missed
        await httpu_socket.start()
        try:
            httpu_socket.sendto(message, dest_sockaddr)
            self.end_time = time.monotonic() + self.options.max_wait_time
        except BaseException:
            httpu_socket.close()
            raise
        self.httpu_socket = httpu_socket
        logger.debug(f"Sent search for {self.options.effective_search_target} to {dest_sockaddr}, waiting {self.options.max_wait_time} seconds")
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        if self.httpu_socket is not None:
            self.httpu_socket.close()
            self.httpu_socket = None
        return False

    async def iter_responses(self) -> AsyncIterator[SearchResponse]:
        if self.httpu_socket is None:
            raise RuntimeError("SsdpSearchRequest must be entered before iterating responses")
        while True:
            result = await self.httpu_socket.receive_with_deadline(self.end_time)
            if result is None:
                break
            addr, response = result
            info = SearchResponse.from_httpu_response(addr, response)
            if info is None:
                logger.debug(f"Ignoring non-search reply from {addr}: {response.statement_line}")
                continue
            logger.debug(f"Received search reply from {addr}: {info}")
            yield info

    def __aiter__(self) -> AsyncIterator[SearchResponse]:
        return self.iter_responses()

async def async_search(options: Optional[SearchOptions]=None) -> List[SearchResponse]:
    """Sends one search request and returns every reply received before the MX wait time
       elapses, in arrival order. No replies is not an error; an empty list is returned."""
    results: List[SearchResponse] = []
    async with SsdpSearchRequest(options) as search_request:
        async for response in search_request:
            results.append(response)
    return results

def search_once(options: Optional[SearchOptions]=None) -> List[SearchResponse]:
    """Blocking form of async_search(), run on a private event loop.

    Must not be called from a thread that is already running an event loop.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(async_search(options))
    finally:
        loop.close()
