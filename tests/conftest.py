"""Shared fixtures: loopback UDP peers standing in for SSDP devices and control points."""

from __future__ import annotations

import socket
import threading
from typing import Callable, Iterator, List, Optional, Tuple

import pytest


class LoopbackResponder:
    """Answers the first datagram it receives with a fixed list of replies."""

    def __init__(self, replies: List[bytes], timeout: float = 5.0):
        self.replies = replies
        self.requests: List[Tuple[bytes, Tuple[str, int]]] = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(timeout)
        self.port: int = self.sock.getsockname()[1]
        self.thread = threading.Thread(target=self._run, daemon=True)
        self.thread.start()

    def _run(self) -> None:
        try:
            data, addr = self.sock.recvfrom(65507)
        except OSError:
            return
        self.requests.append((data, addr))
        for reply in self.replies:
            self.sock.sendto(reply, addr)

    def close(self) -> None:
        self.thread.join(timeout=6.0)
        self.sock.close()


class LoopbackListener:
    """A bound UDP socket that records what is sent to it."""

    def __init__(self, timeout: float = 2.0):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(timeout)
        self.port: int = self.sock.getsockname()[1]

    def receive(self) -> bytes:
        data, _ = self.sock.recvfrom(65507)
        return data

    def close(self) -> None:
        self.sock.close()


@pytest.fixture
def responder() -> Iterator[Callable[[List[bytes]], LoopbackResponder]]:
    created: List[LoopbackResponder] = []

    def factory(replies: List[bytes]) -> LoopbackResponder:
        r = LoopbackResponder(replies)
        created.append(r)
        return r

    yield factory
    for r in created:
        r.close()


@pytest.fixture
def listener() -> Iterator[LoopbackListener]:
    lst = LoopbackListener()
    yield lst
    lst.close()


SEARCH_REPLY = (
    b"HTTP/1.1 200 OK\r\n"
    b"CACHE-CONTROL: max-age=1800\r\n"
    b"LOCATION: http://10.0.0.2:80/desc.xml\r\n"
    b"SERVER: OS/1.0 UPnP/1.0 Product/2.3\r\n"
    b"ST: upnp:rootdevice\r\n"
    b"USN: uuid:abc::upnp:rootdevice\r\n"
    b"\r\n"
)


@pytest.fixture
def search_reply() -> bytes:
    return SEARCH_REPLY
