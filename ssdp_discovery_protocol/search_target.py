#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SearchTarget -- the value carried in the ST header of a search request and the
NT header of a notification.

The set of variants is fixed by the protocol:

    All                          ssdp:all
    RootDevice                   upnp:rootdevice
    Device(id)                   uuid:<id>
    DeviceType(type)             urn:schemas-upnp-org:device:<type>:1
    ServiceType(type)            urn:schemas-upnp-org:service:<type>:1
    DomainDeviceType(d, type)    urn:<d>:device:<type>:1
    DomainServiceType(d, type)   urn:<d>:service:<type>:1
    Raw(s)                       <s>

Instances are immutable and compare by value.
"""

from __future__ import annotations

from enum import Enum

from .internal_types import *
from .constants import UPNP_DOMAIN
from .exceptions import InvalidParameterValueError

class SearchTargetKind(Enum):
    ALL = "all"
    ROOT_DEVICE = "root-device"
    DEVICE = "device"
    DEVICE_TYPE = "device-type"
    SERVICE_TYPE = "service-type"
    DOMAIN_DEVICE_TYPE = "domain-device-type"
    DOMAIN_SERVICE_TYPE = "domain-service-type"
    RAW = "raw"

class SearchTarget:
    """An immutable search or notification target. Use the factory classmethods to construct one."""

    __slots__ = ('_kind', '_value', '_domain')

    _kind: SearchTargetKind
    _value: Optional[str]
    _domain: Optional[str]

    def __init__(self, kind: SearchTargetKind, value: Optional[str]=None, domain: Optional[str]=None):
        if kind in (SearchTargetKind.ALL, SearchTargetKind.ROOT_DEVICE):
            if value is not None or domain is not None:
                raise ValueError(f"SearchTarget {kind.value} takes no value")
        elif kind in (SearchTargetKind.DOMAIN_DEVICE_TYPE, SearchTargetKind.DOMAIN_SERVICE_TYPE):
            if value is None or domain is None:
                raise ValueError(f"SearchTarget {kind.value} requires a domain and a type")
        else:
            if value is None or domain is not None:
                raise ValueError(f"SearchTarget {kind.value} requires exactly one value")
        object.__setattr__(self, '_kind', kind)
        object.__setattr__(self, '_value', value)
        object.__setattr__(self, '_domain', domain)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("SearchTarget is immutable")

    def __reduce__(self) -> Tuple[Any, ...]:
        return (SearchTarget, (self._kind, self._value, self._domain))

    @classmethod
    def all(cls) -> SearchTarget:
        return cls(SearchTargetKind.ALL)

    @classmethod
    def root_device(cls) -> SearchTarget:
        return cls(SearchTargetKind.ROOT_DEVICE)

    @classmethod
    def device(cls, device_id: str) -> SearchTarget:
        return cls(SearchTargetKind.DEVICE, device_id)

    @classmethod
    def device_type(cls, type_name: str) -> SearchTarget:
        return cls(SearchTargetKind.DEVICE_TYPE, type_name)

    @classmethod
    def service_type(cls, type_name: str) -> SearchTarget:
        return cls(SearchTargetKind.SERVICE_TYPE, type_name)

    @classmethod
    def domain_device_type(cls, domain: str, type_name: str) -> SearchTarget:
        return cls(SearchTargetKind.DOMAIN_DEVICE_TYPE, type_name, domain)

    @classmethod
    def domain_service_type(cls, domain: str, type_name: str) -> SearchTarget:
        return cls(SearchTargetKind.DOMAIN_SERVICE_TYPE, type_name, domain)

    @classmethod
    def raw(cls, value: str) -> SearchTarget:
        return cls(SearchTargetKind.RAW, value)

    @property
    def kind(self) -> SearchTargetKind:
        return self._kind

    @property
    def value(self) -> Optional[str]:
        """The id, type name, or opaque string carried by the target, if any."""
        return self._value

    @property
    def domain(self) -> Optional[str]:
        """The domain of a domain-qualified target, otherwise None."""
        return self._domain

    def with_domain(self, domain: str) -> SearchTarget:
        """Returns the domain-qualified form of a bare device-type or service-type target.

        Other targets are returned unchanged.
        """
        if self._kind == SearchTargetKind.DEVICE_TYPE:
            assert self._value is not None
            return SearchTarget.domain_device_type(domain, self._value)
        if self._kind == SearchTargetKind.SERVICE_TYPE:
            assert self._value is not None
            return SearchTarget.domain_service_type(domain, self._value)
        return self

    def to_wire_string(self) -> str:
        """The value of the ST or NT header for this target."""
        kind = self._kind
        if kind == SearchTargetKind.ALL:
            return "ssdp:all"
        if kind == SearchTargetKind.ROOT_DEVICE:
            return "upnp:rootdevice"
        if kind == SearchTargetKind.DEVICE:
            return f"uuid:{self._value}"
        if kind == SearchTargetKind.DEVICE_TYPE:
            return f"urn:{UPNP_DOMAIN}:device:{self._value}:1"
        if kind == SearchTargetKind.SERVICE_TYPE:
            return f"urn:{UPNP_DOMAIN}:service:{self._value}:1"
        if kind == SearchTargetKind.DOMAIN_DEVICE_TYPE:
            return f"urn:{self._domain}:device:{self._value}:1"
        if kind == SearchTargetKind.DOMAIN_SERVICE_TYPE:
            return f"urn:{self._domain}:service:{self._value}:1"
        assert kind == SearchTargetKind.RAW and self._value is not None
        return self._value

    @classmethod
    def parse(cls, value: str) -> SearchTarget:
        """Parses the caller-facing form of a search target, as accepted on the command line.

        Accepted forms are "" or "root", "all", "raw:<st>", "device:<id>",
        "device-type:<type>" and "service-type:<type>". This is not the inverse of
        to_wire_string(). Raises InvalidParameterValueError for anything else.
        """
        if value == "" or value == "root":
            return cls.root_device()
        if value == "all":
            return cls.all()
        for prefix, factory in (
                ("raw:", cls.raw),
                ("device:", cls.device),
                ("device-type:", cls.device_type),
                ("service-type:", cls.service_type),
              ):
            if value.startswith(prefix):
                return factory(value[len(prefix):])
        raise InvalidParameterValueError("search_target", value)

    def __str__(self) -> str:
        return self.to_wire_string()

    def __repr__(self) -> str:
        if self._domain is not None:
            return f"SearchTarget({self._kind.name}, domain={self._domain!r}, value={self._value!r})"
        if self._value is not None:
            return f"SearchTarget({self._kind.name}, value={self._value!r})"
        return f"SearchTarget({self._kind.name})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SearchTarget):
            return False
        return (self._kind, self._value, self._domain) == (other._kind, other._value, other._domain)

    def __hash__(self) -> int:
        return hash((self._kind, self._value, self._domain))
