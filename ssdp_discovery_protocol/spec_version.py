#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
UPnP specification versions and IP protocol versions.

The specification version gates which SSDP headers are legal or required in
a message; comparisons such as ``spec_version >= SpecVersion.V11`` are used
throughout the search and notify code.
"""

from __future__ import annotations

from enum import Enum, IntEnum

from .internal_types import *
from .exceptions import InvalidParameterValueError

class SpecVersion(IntEnum):
    """The three revisions of the UPnP Device Architecture, in increasing order."""
    V10 = 10
    V11 = 11
    V20 = 20

    @classmethod
    def default(cls) -> SpecVersion:
        return cls.V10

    @classmethod
    def parse(cls, value: str) -> SpecVersion:
        """Parses "1.0", "1.1" or "2.0" into a SpecVersion.

        Raises InvalidParameterValueError for anything else.
        """
        for version in cls:
            if str(version) == value.strip():
                return version
        raise InvalidParameterValueError("spec_version", value)

    @property
    def major(self) -> int:
        return self.value // 10

    @property
    def minor(self) -> int:
        return self.value % 10

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)


class IPVersion(Enum):
    """The IP protocol version used for a socket."""
    V4 = 4
    V6 = 6

    def __str__(self) -> str:
        return f"IPv{self.value}"
