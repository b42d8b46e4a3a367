"""Unit tests for SearchTarget wire strings and caller-facing parsing."""
from __future__ import annotations

import copy
import pickle

import pytest

from ssdp_discovery_protocol import (
    SearchTarget,
    SearchTargetKind,
    SearchOptions,
    Device,
    InvalidParameterValueError,
    ConfigurationError,
)


class TestToWireString:

    @pytest.mark.parametrize("target,expected", [
        (SearchTarget.all(), "ssdp:all"),
        (SearchTarget.root_device(), "upnp:rootdevice"),
        (SearchTarget.device("abc-123"), "uuid:abc-123"),
        (SearchTarget.device_type("MediaServer"), "urn:schemas-upnp-org:device:MediaServer:1"),
        (SearchTarget.service_type("ContentDirectory"), "urn:schemas-upnp-org:service:ContentDirectory:1"),
        (SearchTarget.domain_device_type("example-com", "Printer"), "urn:example-com:device:Printer:1"),
        (SearchTarget.domain_service_type("example-com", "Ink"), "urn:example-com:service:Ink:1"),
        (SearchTarget.raw("urn:foo:bar"), "urn:foo:bar"),
    ])
    def test_variants(self, target: SearchTarget, expected: str) -> None:
        assert target.to_wire_string() == expected
        assert str(target) == expected

    def test_deterministic(self) -> None:
        target = SearchTarget.domain_service_type("example-com", "Ink")
        assert target.to_wire_string() == target.to_wire_string()


class TestParse:

    @pytest.mark.parametrize("text,expected", [
        ("", SearchTarget.root_device()),
        ("root", SearchTarget.root_device()),
        ("all", SearchTarget.all()),
        ("raw:ssdp:all", SearchTarget.raw("ssdp:all")),
        ("device:abc", SearchTarget.device("abc")),
        ("device-type:MediaRenderer", SearchTarget.device_type("MediaRenderer")),
        ("service-type:AVTransport", SearchTarget.service_type("AVTransport")),
    ])
    def test_accepted_forms(self, text: str, expected: SearchTarget) -> None:
        assert SearchTarget.parse(text) == expected

    def test_wire_form_is_not_accepted(self) -> None:
        with pytest.raises(InvalidParameterValueError) as excinfo:
            SearchTarget.parse("upnp:rootdevice")
        assert excinfo.value.parameter == "search_target"
        assert excinfo.value.value == "upnp:rootdevice"
        assert isinstance(excinfo.value, ConfigurationError)


class TestValueSemantics:

    def test_equality_and_hash(self) -> None:
        assert SearchTarget.device("x") == SearchTarget.device("x")
        assert SearchTarget.device("x") != SearchTarget.raw("x")
        assert len({SearchTarget.all(), SearchTarget.all(), SearchTarget.root_device()}) == 2

    def test_immutable(self) -> None:
        target = SearchTarget.device("x")
        with pytest.raises(AttributeError):
            target._value = "y"  # type: ignore[misc]

    def test_with_domain(self) -> None:
        assert SearchTarget.device_type("Printer").with_domain("example-com") == \
            SearchTarget.domain_device_type("example-com", "Printer")
        assert SearchTarget.service_type("Ink").with_domain("example-com").kind == \
            SearchTargetKind.DOMAIN_SERVICE_TYPE
        assert SearchTarget.all().with_domain("example-com") == SearchTarget.all()

    def test_constructor_checks_arity(self) -> None:
        with pytest.raises(ValueError):
            SearchTarget(SearchTargetKind.ALL, "x")
        with pytest.raises(ValueError):
            SearchTarget(SearchTargetKind.DEVICE)
        with pytest.raises(ValueError):
            SearchTarget(SearchTargetKind.DOMAIN_DEVICE_TYPE, "Printer")

    @pytest.mark.parametrize("target", [
        SearchTarget.root_device(),
        SearchTarget.device_type("Printer"),
        SearchTarget.domain_service_type("example-com", "Ink"),
        SearchTarget.raw("urn:foo:bar"),
    ])
    def test_copy_and_pickle(self, target: SearchTarget) -> None:
        assert copy.copy(target) == target
        assert copy.deepcopy(target) == target
        restored = pickle.loads(pickle.dumps(target))
        assert restored == target
        assert restored.kind == target.kind
        with pytest.raises(AttributeError):
            restored._value = "y"  # type: ignore[misc]

    def test_deepcopy_of_holders(self) -> None:
        device = Device(SearchTarget.root_device(), "uuid:abc", "http://10.0.0.2:80/desc.xml", boot_id=5)
        snapshot = copy.deepcopy(device)
        device.boot_id = 6
        assert snapshot.boot_id == 5
        assert snapshot.notification_type == SearchTarget.root_device()

        options = SearchOptions(search_target=SearchTarget.device_type("Printer"))
        assert copy.deepcopy(options).search_target == options.search_target
