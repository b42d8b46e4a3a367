# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

SSDP_MULTICAST_ADDRESS = "239.255.255.250"
"""The IPv4 multicast address used by SSDP for UDP multicast."""

SSDP_MULTICAST_ADDRESS_V6 = "FF02::C"
"""The link-local IPv6 multicast address used by SSDP for UDP multicast."""

SSDP_PORT = 1900
"""The port number used by SSDP for UDP multicast."""

UPNP_DOMAIN = "schemas-upnp-org"
"""The standard UPnP Forum domain used in device and service type URNs."""

HTTP_METHOD_SEARCH = "M-SEARCH"
HTTP_METHOD_NOTIFY = "NOTIFY"

HTTP_REQUEST_PATH = "*"
HTTP_PROTOCOL = "HTTP/1.1"

HTTP_HEADER_HOST = "HOST"
HTTP_HEADER_MAN = "MAN"
HTTP_HEADER_MX = "MX"
HTTP_HEADER_ST = "ST"
HTTP_HEADER_NT = "NT"
HTTP_HEADER_NTS = "NTS"
HTTP_HEADER_USN = "USN"
HTTP_HEADER_LOCATION = "LOCATION"
HTTP_HEADER_SERVER = "SERVER"
HTTP_HEADER_USER_AGENT = "USER-AGENT"
HTTP_HEADER_CACHE_CONTROL = "CACHE-CONTROL"
HTTP_HEADER_BOOTID = "BOOTID.UPNP.ORG"
HTTP_HEADER_NEXT_BOOTID = "NEXTBOOTID.UPNP.ORG"
HTTP_HEADER_CONFIGID = "CONFIGID.UPNP.ORG"
HTTP_HEADER_SEARCH_PORT = "SEARCHPORT.UPNP.ORG"

MAN_DISCOVER = '"ssdp:discover"'

NTS_ALIVE = "ssdp:alive"
NTS_UPDATE = "ssdp:update"
NTS_BYEBYE = "ssdp:byebye"

DEFAULT_MAX_WAIT_TIME = 2
"""The default value of the MX header, in seconds."""

MAX_MAX_WAIT_TIME = 120
"""The largest MX value a responder is obliged to honor."""

DEFAULT_MAX_AGE = 1800
"""The default CACHE-CONTROL max-age of an advertisement, in seconds."""

DEFAULT_PACKET_TTL = 2
"""The default multicast TTL for UPnP 1.1 and later."""

DEFAULT_PACKET_TTL_V10 = 4
"""The default multicast TTL for UPnP 1.0."""
