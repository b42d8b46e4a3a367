#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
HTTP over UDP (HTTPU/HTTPMU) -- the transport under SSDP.

  1. HttpuMessage builds an outbound request: a "<METHOD> * HTTP/1.1" request line followed by
     header lines in insertion order (duplicate names allowed) and a blank line.
  2. HttpuResponse parses an inbound datagram into a statement line and headers.
  3. send_unicast_once() sends one message as a single datagram from a transient socket. A
     multicast send is the same operation with a group address as the destination.
  4. HttpuSocket wraps a bound socket in an asyncio datagram endpoint so that replies can be
     received with a deadline.
"""

from __future__ import annotations

import asyncio
import re
import socket
import time

from .internal_types import *
from .pkg_logging import logger
from .constants import HTTP_REQUEST_PATH, HTTP_PROTOCOL, DEFAULT_PACKET_TTL
from .exceptions import ConfigurationError, HttpuFormatError, InvalidParameterValueError
from .spec_version import IPVersion
from .util import (
    CaseInsensitiveDict,
    split_bytes_at_lf_or_crlf,
    split_headers_and_body,
    parse_http_header_lines,
    encode_http_header,
    get_interface_address,
  )

MAX_QUEUE_SIZE = 1000

HeaderValue = Union[str, int]

class HttpuMessage:
    """An outbound HTTPU request.

    Headers are kept as an ordered list of (name, value) pairs; nothing is added beyond what
    the caller adds, and adding a name that is already present appends a second line.
    """

    method: str
    """The request method; e.g., "M-SEARCH" or "NOTIFY"."""

    _headers: List[HeaderPair]

    def __init__(self, method: str, headers: Optional[Iterable[Tuple[str, HeaderValue]]]=None):
        self.method = method
        self._headers = []
        if headers is not None:
            for name, value in headers:
                self.add_header(name, value)

    def add_header(self, name: str, value: HeaderValue) -> HttpuMessage:
        """Appends a header line. Returns self so that calls can be chained."""
        self._headers.append((name, str(value)))
        return self

    @property
    def statement_line(self) -> str:
        return f"{self.method} {HTTP_REQUEST_PATH} {HTTP_PROTOCOL}"

    @property
    def headers(self) -> List[HeaderPair]:
        """A copy of the (name, value) header pairs, in the order they were added."""
        return list(self._headers)

    def get(self, name: str, default: Optional[str]=None) -> Optional[str]:
        """Returns the last value of a header, matching the name case-insensitively."""
        values = self.get_all(name)
        return values[-1] if len(values) > 0 else default

    def get_all(self, name: str) -> List[str]:
        """Returns every value of a header, in order, matching the name case-insensitively."""
        lname = name.lower()
        return [ v for k, v in self._headers if k.lower() == lname ]

    @property
    def raw_data(self) -> bytes:
        """The serialized message, ready to be sent as a single datagram."""
        raw_data = self.statement_line.encode('utf-8') + b'\r\n'
        for name, value in self._headers:
            raw_data += encode_http_header(name, value)
        raw_data += b'\r\n'
        return raw_data

    def __str__(self) -> str:
        return f"HttpuMessage('{self.statement_line}', headers={self._headers})"

    def __repr__(self) -> str:
        return str(self)


class HttpuResponse:
    """A parsed inbound HTTPU datagram.

    The statement line may be a status line ("HTTP/1.1 200 OK") or a request line
    ("NOTIFY * HTTP/1.1"); protocol_version, status_code and status are only set for
    status lines.
    """

    _status_line_re = re.compile(r'^HTTP/(?P<version>[0-9]+\.[0-9]+) +(?P<status_code>[0-9]{3})(?: +(?P<status>.*?))? *$')

    raw_data: bytes
    """The raw UDP datagram contents"""

    statement_line: str
    """The first line of the datagram."""

    raw_headers: List[HeaderPair]
    """The headers in the order received, including duplicates. Names keep their received case."""

    headers: CaseInsensitiveDict[str]
    """The headers keyed case-insensitively. When a name is repeated the last value wins."""

    body: bytes
    """Anything following the blank line that terminates the headers. Usually b''."""

    protocol_version: Optional[str] = None
    status_code: Optional[int] = None
    status: Optional[str] = None

    def __init__(self, raw_data: bytes, statement_line: str, raw_headers: List[HeaderPair], body: bytes=b''):
        self.raw_data = raw_data
        self.statement_line = statement_line
        self.raw_headers = raw_headers
        self.headers = CaseInsensitiveDict()
        for name, value in raw_headers:
            self.headers[name] = value
        self.body = body
        m = self._status_line_re.match(statement_line)
        if m:
            self.protocol_version = m.group('version')
            self.status_code = int(m.group('status_code'))
            self.status = m.group('status') or ''

    @classmethod
    def parse(cls, data: bytes) -> HttpuResponse:
        """Parses a raw datagram.

        LF is accepted in place of CRLF. Raises HttpuFormatError if the datagram is empty,
        has an empty statement line, or has no blank line terminating the headers.
        """
        if len(data) == 0:
            raise HttpuFormatError("Empty datagram")
        split = split_headers_and_body(data)
        if split is None:
            raise HttpuFormatError("Datagram has no header terminator")
        header_section, body = split
        lines = split_bytes_at_lf_or_crlf(header_section)
        statement_line = lines[0].decode('utf-8', errors='replace').strip()
        if statement_line == '':
            raise HttpuFormatError("Datagram has an empty statement line")
        raw_headers = parse_http_header_lines(lines[1:])
        return cls(data, statement_line, raw_headers, body)

    @property
    def is_status(self) -> bool:
        return self.status_code is not None

    def __str__(self) -> str:
        return f"HttpuResponse('{self.statement_line}', headers={self.raw_headers}, body={self.body!r})"

    def __repr__(self) -> str:
        return str(self)


class HttpuOptions:
    """Socket options applied to every HTTPU socket."""

    network_interface: Optional[str] = None
    """A network interface name to bind to and send multicast from. None binds to all interfaces."""

    network_version: Optional[IPVersion] = None
    """Restricts the socket to IPv4 or IPv6. None infers it from the destination address."""

    packet_ttl: int = DEFAULT_PACKET_TTL
    """The multicast TTL (IPv4) or hop limit (IPv6)."""

    bind_port: Optional[int] = None
    """The local port to bind. None lets the OS choose an ephemeral port."""

    def __init__(
            self,
            network_interface: Optional[str]=None,
            network_version: Optional[IPVersion]=None,
            packet_ttl: int=DEFAULT_PACKET_TTL,
            bind_port: Optional[int]=None,
          ):
        self.network_interface = network_interface
        self.network_version = network_version
        self.packet_ttl = packet_ttl
        self.bind_port = bind_port

    def __repr__(self) -> str:
        return (f"HttpuOptions(network_interface={self.network_interface!r}, network_version={self.network_version}, "
                f"packet_ttl={self.packet_ttl}, bind_port={self.bind_port})")

def _resolve_destination(
        destination: HostAndPort,
        network_version: Optional[IPVersion],
      ) -> Tuple[socket.AddressFamily, SockAddr]:
    host, port = destination
    if network_version is None:
        family = 0
    else:
        family = socket.AF_INET6 if network_version == IPVersion.V6 else socket.AF_INET
    try:
        addrinfo = socket.getaddrinfo(host, port, family, socket.SOCK_DGRAM)[0]
    except socket.gaierror as e:
        raise InvalidParameterValueError("address", host) from e
    address_family = addrinfo[0]
    if address_family not in (socket.AF_INET, socket.AF_INET6):
        raise InvalidParameterValueError("address", host)
    return (address_family, addrinfo[4])

def _setsockopt(sock: socket.socket, level: int, option: int, value: Union[int, bytes], what: str) -> None:
    try:
        sock.setsockopt(level, option, value)
    except OSError as e:
        raise ConfigurationError(f"Unable to set socket option {what}: {e}") from e

def create_httpu_socket(destination: HostAndPort, options: Optional[HttpuOptions]=None) -> Tuple[socket.socket, SockAddr]:
    """Creates and binds a UDP socket suitable for sending to destination, applying the
       interface, IP version, TTL and bind port options.

       Returns Tuple[sock: socket.socket, destination_sockaddr: SockAddr]. The caller owns the socket.

       Raises ConfigurationError (before any socket is created) if the interface or address is unusable,
       ConfigurationError if a socket option cannot be applied, and OSError if the bind fails.
    """
    if options is None:
        options = HttpuOptions()
    address_family, dest_sockaddr = _resolve_destination(destination, options.network_version)
    is_ipv6 = address_family == socket.AF_INET6
    bind_host = ''
    scope_id = 0
    if options.network_interface is not None:
        bind_host, scope_id = get_interface_address(options.network_interface, address_family)
    if is_ipv6 and scope_id != 0:
        dest_host, dest_port, flowinfo, dest_scope_id = dest_sockaddr  # type: ignore[misc]
        if dest_scope_id == 0:
            dest_sockaddr = (dest_host, dest_port, flowinfo, scope_id)
    bind_port = 0 if options.bind_port is None else options.bind_port

    sock = socket.socket(address_family, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        _setsockopt(sock, socket.SOL_SOCKET, socket.SO_REUSEADDR, 1, "SO_REUSEADDR")
        if is_ipv6:
            _setsockopt(sock, socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_HOPS, options.packet_ttl, "IPV6_MULTICAST_HOPS")
            if scope_id != 0:
                _setsockopt(sock, socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_IF, scope_id, "IPV6_MULTICAST_IF")
            sock.bind((bind_host, bind_port, 0, scope_id))
        else:
            _setsockopt(sock, socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, options.packet_ttl, "IP_MULTICAST_TTL")
            if bind_host != '':
                _setsockopt(sock, socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(bind_host), "IP_MULTICAST_IF")
            sock.bind((bind_host, bind_port))
    except BaseException:
        sock.close()
        raise
    logger.debug(f"Created HTTPU socket bound to {sock.getsockname()} for destination {dest_sockaddr}, options={options!r}")
    return (sock, dest_sockaddr)

def send_unicast_once(message: HttpuMessage, destination: HostAndPort, options: Optional[HttpuOptions]=None) -> None:
    """Sends message as a single datagram to destination from a transient socket, then closes the socket.

    destination may be a unicast or a multicast group address. Socket and send failures are raised
    to the caller unchanged; nothing is retried.
    """
    sock, dest_sockaddr = create_httpu_socket(destination, options)
    with sock:
        logger.debug(f"Sending {message} to {dest_sockaddr}")
        sock.sendto(message.raw_data, dest_sockaddr)


class _HttpuSocketProtocol(asyncio.DatagramProtocol):
    """An adapter between the asyncio transport and HttpuSocket."""
    httpu_socket: HttpuSocket

    def __init__(self, httpu_socket: HttpuSocket):
        self.httpu_socket = httpu_socket

    def connection_made(self, transport: asyncio.BaseTransport):
        """Called when a connection is made."""
        self.httpu_socket.transport = transport # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        """Called when some datagram is received."""
        self.httpu_socket.on_datagram(addr, data)

    def error_received(self, exc: Exception):
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)
        """
        self.httpu_socket.on_error(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        """Called when the connection is lost or closed."""
        self.httpu_socket.on_connection_lost(exc)


class HttpuSocket(AsyncContextManager['HttpuSocket']):
    """
    An async HTTPU socket around an already-bound socket.socket:

      1. Sends HttpuMessages to a unicast or multicast address
      2. Queues received datagrams until they are read with receive_with_deadline()

    Transport errors reported by asyncio are raised from the next receive_with_deadline().

    Usage:
        sock, dest = create_httpu_socket(destination, options)
        async with HttpuSocket(sock) as httpu_socket:
            httpu_socket.sendto(message, dest)
            result = await httpu_socket.receive_with_deadline(time.monotonic() + 2.0)
    """

    sock: Optional[socket.socket]
    transport: Optional[asyncio.DatagramTransport] = None
    queue: Optional[asyncio.Queue[Union[Tuple[SockAddr, bytes], Exception, None]]] = None
    closed: bool = False

    def __init__(self, sock: socket.socket):
        self.sock = sock

    async def start(self) -> None:
        assert self.sock is not None
        self.queue = asyncio.Queue(MAX_QUEUE_SIZE)
        loop = asyncio.get_running_loop()
        try:
            await loop.create_datagram_endpoint(lambda: _HttpuSocketProtocol(self), sock=self.sock)
        except BaseException:
            self.close()
            raise

    @property
    def sockname(self) -> Optional[SockAddr]:
        if self.sock is None:
            return None
        try:
            return self.sock.getsockname()
        except OSError:
            return None

    def sendto(self, message: HttpuMessage, addr: SockAddr) -> None:
        logger.debug(f"Sending {message} via {self.sockname} to {addr}")
        if self.transport is None:
            raise OSError("HTTPU socket is not open")
        self.transport.sendto(message.raw_data, addr)

    def _put(self, item: Union[Tuple[SockAddr, bytes], Exception, None]) -> bool:
        if self.queue is None:
            return False
        try:
            self.queue.put_nowait(item)
        except asyncio.QueueFull:
            return False
        return True

    def on_datagram(self, addr: SockAddr, data: bytes) -> None:
        if not self._put((addr, data)):
            logger.warning(f"Queue full, dropping datagram from {addr}: {data!r}")

    def on_error(self, exc: Exception) -> None:
        logger.info(f"Error received from transport on {self.sockname}: {exc}")
        self._put(exc)

    def on_connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"Connection to transport lost, exc={exc}")
        self.transport = None
        self._put(exc)

    async def receive_with_deadline(self, deadline: float) -> Optional[Tuple[SockAddr, HttpuResponse]]:
        """Waits until a well-formed datagram arrives or deadline (a time.monotonic() value) passes.

        Malformed datagrams are discarded and the wait continues against the same deadline.
        At most MAX_QUEUE_SIZE datagrams are held unread; any beyond that are dropped with a
        warning until the caller catches up.

        Returns Tuple[src_addr, response], or None if the deadline passed or the socket was closed.
        """
        assert self.queue is not None
        while True:
            remaining_time = deadline - time.monotonic()
            if remaining_time <= 0.0:
                return None
            try:
                item = await asyncio.wait_for(self.queue.get(), remaining_time)
            except asyncio.TimeoutError:
                return None
            if item is None:
                self._put(None)
                return None
            if isinstance(item, Exception):
                raise item
            addr, data = item
            try:
                response = HttpuResponse.parse(data)
            except HttpuFormatError as e:
                logger.debug(f"Discarding malformed datagram from {addr}, raw=[{data!r}]: {e}")
                continue
            logger.debug(f"Received datagram from {addr}: {response}")
            return (addr, response)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.transport is not None:
            try:
                self.transport.close()
            except BaseException as e:
                logger.error(f"Error closing transport on {self.sockname}: {e}")
            self.transport = None
        if self.sock is not None:
            try:
                self.sock.close()
            except BaseException as e:
                logger.error(f"Error closing socket: {e}")
            self.sock = None

    async def __aenter__(self) -> HttpuSocket:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        self.close()
        return False

def host_header_value(address: str, port: int) -> str:
    """Formats the value of a HOST header, bracketing IPv6 literals."""
    if ':' in address:
        return f"[{address}]:{port}"
    return f"{address}:{port}"
