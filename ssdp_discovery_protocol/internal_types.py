#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Type hints used internally by this package
"""

from __future__ import annotations

from typing import (
    Dict, List, Optional, Union, Any, Tuple, Set, Callable, Awaitable,
    Mapping, MutableMapping, Iterable, Iterator, Sequence,
    AsyncContextManager, AsyncIterable, AsyncIterator,
  )

from types import TracebackType

from typing_extensions import Self, TypeAlias

HostAndPort: TypeAlias = Tuple[str, int]
"""A (host, port) tuple as used by IPv4 socket addresses."""

SockAddr: TypeAlias = Union[Tuple[str, int], Tuple[str, int, int, int]]
"""A socket address for either IPv4 (host, port) or IPv6 (host, port, flowinfo, scope_id)."""

HeaderPair: TypeAlias = Tuple[str, str]
"""A single (name, value) HTTP header."""

Jsonable: TypeAlias = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
JsonableDict: TypeAlias = Dict[str, Jsonable]

__all__ = [
    'Dict', 'List', 'Optional', 'Union', 'Any', 'Tuple', 'Set', 'Callable', 'Awaitable',
    'Mapping', 'MutableMapping', 'Iterable', 'Iterator', 'Sequence',
    'AsyncContextManager', 'AsyncIterable', 'AsyncIterator',
    'TracebackType', 'Self', 'TypeAlias',
    'HostAndPort', 'SockAddr', 'HeaderPair',
    'Jsonable', 'JsonableDict',
]
