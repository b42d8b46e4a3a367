"""Unit tests for the SSDP notify engine.

Tests cover:
- alive/update/byebye header sets per UPnP version
- boot id bookkeeping on success and failure
- Sending over loopback
"""
from __future__ import annotations

from typing import List, Tuple

import pytest

import ssdp_discovery_protocol.notify as notify_module
from ssdp_discovery_protocol import (
    SpecVersion,
    SearchTarget,
    Device,
    NotifyOptions,
    HttpuMessage,
    HttpuResponse,
    UnsupportedVersionError,
    ConfigurationError,
    build_alive_message,
    build_update_message,
    build_byebye_message,
    device_available,
    device_update,
    device_unavailable,
)


def make_device(**kwargs) -> Device:
    values = dict(
        notification_type=SearchTarget.root_device(),
        service_name="uuid:abc",
        location="http://10.0.0.2:80/desc.xml",
        boot_id=5,
        config_id=100,
    )
    values.update(kwargs)
    return Device(**values)


def header_names(message: HttpuMessage) -> List[str]:
    return [name for name, _ in message.headers]


@pytest.fixture
def sent(monkeypatch) -> List[Tuple[HttpuMessage, Tuple[str, int]]]:
    """Captures notifications instead of multicasting them."""
    captured: List[Tuple[HttpuMessage, Tuple[str, int]]] = []

    def fake_send(message, destination, options=None) -> None:
        captured.append((message, destination))

    monkeypatch.setattr(notify_module, "send_unicast_once", fake_send)
    return captured


class TestNotifyOptions:

    def test_version_dependent_ttl(self) -> None:
        assert NotifyOptions.default_for(SpecVersion.V10).packet_ttl == 4
        assert NotifyOptions.default_for(SpecVersion.V11).packet_ttl == 2
        assert NotifyOptions.default_for(SpecVersion.V20).packet_ttl == 2
        assert NotifyOptions(packet_ttl=7).packet_ttl == 7

    def test_defaults(self) -> None:
        options = NotifyOptions()
        assert options.spec_version == SpecVersion.V10
        assert options.max_age == 1800
        assert options.multicast_destination == ("239.255.255.250", 1900)


class TestAlive:

    def test_v10_headers(self) -> None:
        message = build_alive_message(make_device(), NotifyOptions.default_for(SpecVersion.V10))
        assert message.method == "NOTIFY"
        assert header_names(message) == ["HOST", "CACHE-CONTROL", "LOCATION", "NT", "NTS", "SERVER", "USN"]
        assert message.get("CACHE-CONTROL") == "max-age=1800"
        assert message.get("NT") == "upnp:rootdevice"
        assert message.get("NTS") == "ssdp:alive"
        assert "UPnP/1.0" in (message.get("SERVER") or "")

    def test_v11_adds_boot_and_config_ids(self) -> None:
        message = build_alive_message(make_device(search_port=1901), NotifyOptions.default_for(SpecVersion.V11))
        assert message.get("BOOTID.UPNP.ORG") == "5"
        assert message.get("CONFIGID.UPNP.ORG") == "100"
        assert message.get("SEARCHPORT.UPNP.ORG") == "1901"
        assert message.get("NEXTBOOTID.UPNP.ORG") is None

    def test_secure_location_ignored_before_v20(self) -> None:
        message = build_alive_message(make_device(secure_location="https://x"), NotifyOptions.default_for(SpecVersion.V11))
        assert message.get_all("USN") == ["uuid:abc"]

    def test_v20_secure_location_overrides_usn(self) -> None:
        message = build_alive_message(make_device(secure_location="https://x"), NotifyOptions.default_for(SpecVersion.V20))
        assert message.get_all("USN") == ["uuid:abc", "https://x"]
        assert message.get("USN") == "https://x"
        assert HttpuResponse.parse(message.raw_data).headers["USN"] == "https://x"

    def test_scenario_v11(self, sent) -> None:
        device = make_device()
        device_available(device, NotifyOptions.default_for(SpecVersion.V11))
        assert device.boot_id == 6
        assert len(sent) == 1
        message, destination = sent[0]
        assert destination == ("239.255.255.250", 1900)
        raw = message.raw_data
        assert b"BOOTID.UPNP.ORG: 5\r\n" in raw
        assert b"CONFIGID.UPNP.ORG: 100\r\n" in raw
        assert b"NTS: ssdp:alive\r\n" in raw


class TestUpdate:

    def test_v10_unsupported(self, sent) -> None:
        device = make_device()
        with pytest.raises(UnsupportedVersionError) as excinfo:
            device_update(device, NotifyOptions.default_for(SpecVersion.V10))
        assert excinfo.value.spec_version == SpecVersion.V10
        assert device.boot_id == 5
        assert sent == []

    def test_v11_headers_and_boot_ids(self, sent) -> None:
        device = make_device(search_port=1901)
        device_update(device, NotifyOptions.default_for(SpecVersion.V11))
        message, _ = sent[0]
        assert header_names(message) == [
            "HOST", "LOCATION", "NT", "NTS", "USN",
            "BOOTID.UPNP.ORG", "NEXTBOOTID.UPNP.ORG", "CONFIGID.UPNP.ORG", "SEARCHPORT.UPNP.ORG",
        ]
        assert message.get("NTS") == "ssdp:update"
        assert message.get("BOOTID.UPNP.ORG") == "5"
        assert message.get("NEXTBOOTID.UPNP.ORG") == "6"
        assert device.boot_id == 6

    def test_v20_secure_location(self) -> None:
        message = build_update_message(make_device(secure_location="https://x"), NotifyOptions.default_for(SpecVersion.V20))
        assert message.get("USN") == "https://x"


class TestByebye:

    def test_v10_headers(self) -> None:
        message = build_byebye_message(make_device(), NotifyOptions.default_for(SpecVersion.V10))
        assert header_names(message) == ["HOST", "NT", "NTS", "USN"]
        assert message.get("NTS") == "ssdp:byebye"

    def test_v11_headers(self) -> None:
        message = build_byebye_message(make_device(search_port=1901), NotifyOptions.default_for(SpecVersion.V11))
        assert header_names(message) == ["HOST", "NT", "NTS", "USN", "BOOTID.UPNP.ORG", "CONFIGID.UPNP.ORG"]
        assert message.get("LOCATION") is None
        assert message.get("CACHE-CONTROL") is None

    def test_increments_boot_id(self, sent) -> None:
        device = make_device()
        device_unavailable(device, NotifyOptions.default_for(SpecVersion.V11))
        assert device.boot_id == 6


class TestBootIdBookkeeping:

    def test_each_call_increments_by_one(self, sent) -> None:
        device = make_device(boot_id=0)
        options = NotifyOptions.default_for(SpecVersion.V11)
        device_available(device, options)
        device_update(device, options)
        device_unavailable(device, options)
        assert device.boot_id == 3
        assert [m.get("BOOTID.UPNP.ORG") for m, _ in sent] == ["0", "1", "2"]

    def test_transport_failure_leaves_boot_id(self, monkeypatch) -> None:
        def failing_send(message, destination, options=None) -> None:
            raise OSError("Network is unreachable")

        monkeypatch.setattr(notify_module, "send_unicast_once", failing_send)
        device = make_device()
        with pytest.raises(OSError):
            device_available(device, NotifyOptions.default_for(SpecVersion.V11))
        assert device.boot_id == 5

    def test_boot_id_limit(self, sent) -> None:
        device = make_device(boot_id=0xFFFFFFFE)
        options = NotifyOptions.default_for(SpecVersion.V11)
        device_available(device, options)
        assert device.boot_id == 0xFFFFFFFF
        with pytest.raises(ConfigurationError):
            device_available(device, options)
        assert device.boot_id == 0xFFFFFFFF
        assert len(sent) == 1


def test_alive_over_loopback(listener) -> None:
    device = make_device(notification_type=SearchTarget.device_type("MediaServer"))
    options = NotifyOptions(spec_version=SpecVersion.V11, address="127.0.0.1", port=listener.port, max_age=60)
    device_available(device, options)
    received = HttpuResponse.parse(listener.receive())
    assert received.statement_line == "NOTIFY * HTTP/1.1"
    assert received.headers["HOST"] == f"127.0.0.1:{listener.port}"
    assert received.headers["NT"] == "urn:schemas-upnp-org:device:MediaServer:1"
    assert received.headers["CACHE-CONTROL"] == "max-age=60"
    assert received.headers["BOOTID.UPNP.ORG"] == "5"
    assert device.boot_id == 6
