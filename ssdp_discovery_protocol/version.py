# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package ssdp_discovery_protocol version information
"""

# The following line is automatically updated with "semantic-release version"
__version__ =  "0.2.0"

DISTRIBUTION_NAME = "ssdp-discovery-protocol"
"""The name this package is published under; also the default product token in identity strings."""

__all__ = [ '__version__', 'DISTRIBUTION_NAME' ]
