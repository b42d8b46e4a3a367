# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SSDP notify -- a device's presence announcements, multicast to the SSDP group:

  1. device_available()   NTS: ssdp:alive    the device (or a service) is on the network
  2. device_update()      NTS: ssdp:update   the device's BOOTID is about to change (UPnP 1.1+)
  3. device_unavailable() NTS: ssdp:byebye   the device is leaving the network

Each call builds one message, sends it once, and on success increments device.boot_id by 1.
If building or sending fails, device.boot_id is left unchanged. A real device sends one of
these per root device, embedded device and service; that sequencing is left to the caller,
as is serializing calls that share a Device.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    SSDP_MULTICAST_ADDRESS,
    SSDP_MULTICAST_ADDRESS_V6,
    SSDP_PORT,
    DEFAULT_MAX_AGE,
    DEFAULT_PACKET_TTL,
    DEFAULT_PACKET_TTL_V10,
    HTTP_METHOD_NOTIFY,
    HTTP_HEADER_HOST,
    HTTP_HEADER_CACHE_CONTROL,
    HTTP_HEADER_LOCATION,
    HTTP_HEADER_NT,
    HTTP_HEADER_NTS,
    HTTP_HEADER_SERVER,
    HTTP_HEADER_USN,
    HTTP_HEADER_BOOTID,
    HTTP_HEADER_NEXT_BOOTID,
    HTTP_HEADER_CONFIGID,
    HTTP_HEADER_SEARCH_PORT,
    NTS_ALIVE,
    NTS_UPDATE,
    NTS_BYEBYE,
  )
from .exceptions import ConfigurationError, UnsupportedVersionError
from .spec_version import SpecVersion, IPVersion
from .search_target import SearchTarget
from .httpu import HttpuMessage, HttpuOptions, send_unicast_once, host_header_value
from .util import ProductVersion, user_agent_string

MAX_BOOT_ID = 0xFFFFFFFF
"""BOOTID.UPNP.ORG is a 32-bit unsigned value; a device at this value cannot advance further."""

class Device:
    """The description of a device sent in notifications. Owned by the caller; boot_id is
       advanced by every successful notification."""

    notification_type: SearchTarget
    """Sent in the NT header."""

    service_name: str
    """The Unique Service Name, sent in the USN header."""

    location: str
    """The URL of the device description, sent in the LOCATION header."""

    boot_id: int
    """The BOOTID.UPNP.ORG value for the next notification. A 32-bit unsigned value on the
       wire, so a notification sent with 0xFFFFFFFF is refused rather than wrapped."""

    config_id: int
    """The CONFIGID.UPNP.ORG value."""

    search_port: Optional[int]
    """Sent in SEARCHPORT.UPNP.ORG when the device answers unicast searches on a port other than 1900."""

    secure_location: Optional[str]
    """Replaces the USN at UPnP 2.0 when set."""

    def __init__(
            self,
            notification_type: SearchTarget,
            service_name: str,
            location: str,
            boot_id: int=0,
            config_id: int=0,
            search_port: Optional[int]=None,
            secure_location: Optional[str]=None,
          ):
        self.notification_type = notification_type
        self.service_name = service_name
        self.location = location
        self.boot_id = boot_id
        self.config_id = config_id
        self.search_port = search_port
        self.secure_location = secure_location

    def __repr__(self) -> str:
        return (f"Device(notification_type={self.notification_type!r}, service_name={self.service_name!r}, "
                f"location={self.location!r}, boot_id={self.boot_id}, config_id={self.config_id}, "
                f"search_port={self.search_port}, secure_location={self.secure_location!r})")


class NotifyOptions:
    """Protocol and network options for sending notifications."""

    spec_version: SpecVersion
    network_interface: Optional[str]
    network_version: Optional[IPVersion]
    packet_ttl: int
    """Defaults to 4 for UPnP 1.0 and 2 otherwise."""
    max_age: int
    """The CACHE-CONTROL max-age of an alive message, in seconds."""
    product_and_version: Optional[ProductVersion]
    address: Optional[str]
    port: Optional[int]

    def __init__(
            self,
            spec_version: SpecVersion=SpecVersion.V10,
            network_interface: Optional[str]=None,
            network_version: Optional[IPVersion]=None,
            packet_ttl: Optional[int]=None,
            max_age: int=DEFAULT_MAX_AGE,
            product_and_version: Optional[ProductVersion]=None,
            address: Optional[str]=None,
            port: Optional[int]=None,
          ):
        self.spec_version = spec_version
        self.network_interface = network_interface
        self.network_version = network_version
        if packet_ttl is None:
            packet_ttl = DEFAULT_PACKET_TTL_V10 if spec_version == SpecVersion.V10 else DEFAULT_PACKET_TTL
        self.packet_ttl = packet_ttl
        self.max_age = max_age
        self.product_and_version = product_and_version
        self.address = address
        self.port = port

    @classmethod
    def default_for(cls, spec_version: SpecVersion) -> NotifyOptions:
        return cls(spec_version=spec_version)

    @property
    def multicast_destination(self) -> HostAndPort:
        address = self.address
        if address is None:
            address = SSDP_MULTICAST_ADDRESS_V6 if self.network_version == IPVersion.V6 else SSDP_MULTICAST_ADDRESS
        port = SSDP_PORT if self.port is None else self.port
        return (address, port)

    def httpu_options(self) -> HttpuOptions:
        return HttpuOptions(
            network_interface=self.network_interface,
            network_version=self.network_version,
            packet_ttl=self.packet_ttl,
          )

def _new_notify_message(options: NotifyOptions) -> HttpuMessage:
    address, port = options.multicast_destination
    return HttpuMessage(HTTP_METHOD_NOTIFY).add_header(HTTP_HEADER_HOST, host_header_value(address, port))

def build_alive_message(device: Device, options: NotifyOptions) -> HttpuMessage:
    """Builds the ssdp:alive message for device."""
    message = _new_notify_message(options)
    message \
        .add_header(HTTP_HEADER_CACHE_CONTROL, f"max-age={options.max_age}") \
        .add_header(HTTP_HEADER_LOCATION, device.location) \
        .add_header(HTTP_HEADER_NT, device.notification_type.to_wire_string()) \
        .add_header(HTTP_HEADER_NTS, NTS_ALIVE) \
        .add_header(HTTP_HEADER_SERVER, user_agent_string(options.spec_version, options.product_and_version)) \
        .add_header(HTTP_HEADER_USN, device.service_name)

    if options.spec_version >= SpecVersion.V11:
        message \
            .add_header(HTTP_HEADER_BOOTID, device.boot_id) \
            .add_header(HTTP_HEADER_CONFIGID, device.config_id)
        if device.search_port is not None:
            message.add_header(HTTP_HEADER_SEARCH_PORT, device.search_port)

    if options.spec_version >= SpecVersion.V20 and device.secure_location is not None:
        # A second USN line; receivers take the last one.
        message.add_header(HTTP_HEADER_USN, device.secure_location)

    return message

def build_update_message(device: Device, options: NotifyOptions) -> HttpuMessage:
    """Builds the ssdp:update message for device.

    Raises UnsupportedVersionError for UPnP 1.0, which has no update message.
    """
    if options.spec_version < SpecVersion.V11:
        raise UnsupportedVersionError(options.spec_version, f"ssdp:update requires UPnP 1.1 or later, not {options.spec_version}")
    message = _new_notify_message(options)
    message \
        .add_header(HTTP_HEADER_LOCATION, device.location) \
        .add_header(HTTP_HEADER_NT, device.notification_type.to_wire_string()) \
        .add_header(HTTP_HEADER_NTS, NTS_UPDATE) \
        .add_header(HTTP_HEADER_USN, device.service_name) \
        .add_header(HTTP_HEADER_BOOTID, device.boot_id) \
        .add_header(HTTP_HEADER_NEXT_BOOTID, device.boot_id + 1) \
        .add_header(HTTP_HEADER_CONFIGID, device.config_id)

    if device.search_port is not None:
        message.add_header(HTTP_HEADER_SEARCH_PORT, device.search_port)

    if options.spec_version >= SpecVersion.V20 and device.secure_location is not None:
        message.add_header(HTTP_HEADER_USN, device.secure_location)

    return message

def build_byebye_message(device: Device, options: NotifyOptions) -> HttpuMessage:
    """Builds the ssdp:byebye message for device. It carries no LOCATION or CACHE-CONTROL."""
    message = _new_notify_message(options)
    message \
        .add_header(HTTP_HEADER_NT, device.notification_type.to_wire_string()) \
        .add_header(HTTP_HEADER_NTS, NTS_BYEBYE) \
        .add_header(HTTP_HEADER_USN, device.service_name)

    if options.spec_version >= SpecVersion.V11:
        message \
            .add_header(HTTP_HEADER_BOOTID, device.boot_id) \
            .add_header(HTTP_HEADER_CONFIGID, device.config_id)

    return message

def _send_notification(device: Device, message: HttpuMessage, options: NotifyOptions) -> None:
    if not 0 <= device.boot_id < MAX_BOOT_ID:
        raise ConfigurationError(f"boot_id {device.boot_id} cannot be advanced within 32 bits")
    next_boot_id = device.boot_id + 1
    logger.debug(
        f"Sending {message.get(HTTP_HEADER_NTS)} for NT={message.get(HTTP_HEADER_NT)} "
        f"USN={message.get(HTTP_HEADER_USN)} to {options.multicast_destination}")
    send_unicast_once(message, options.multicast_destination, options.httpu_options())
    device.boot_id = next_boot_id

def device_available(device: Device, options: Optional[NotifyOptions]=None) -> None:
    """Multicasts an ssdp:alive notification for device, then increments device.boot_id.

    When a device is added to the network it advertises its root device, any embedded
    devices and any services, each with a target in NT, an identifier in USN, the URL of
    its description in LOCATION and a validity period in CACHE-CONTROL.
    """
    if options is None:
        options = NotifyOptions()
    _send_notification(device, build_alive_message(device, options), options)

def device_update(device: Device, options: Optional[NotifyOptions]=None) -> None:
    """Multicasts an ssdp:update notification for device, then increments device.boot_id.

    Sent when a multi-homed device's BOOTID.UPNP.ORG changes (an interface is added, or an
    interface's address changes), before re-advertising with the new value. BOOTID carries the
    current value and NEXTBOOTID the value that will follow.

    Raises UnsupportedVersionError for UPnP 1.0 without sending anything.
    """
    if options is None:
        options = NotifyOptions()
    _send_notification(device, build_update_message(device, options), options)

def device_unavailable(device: Device, options: Optional[NotifyOptions]=None) -> None:
    """Multicasts an ssdp:byebye notification for device, then increments device.boot_id.

    A device leaving the network should send one byebye for each unexpired alive it sent.
    """
    if options is None:
        options = NotifyOptions()
    _send_notification(device, build_byebye_message(device, options), options)
