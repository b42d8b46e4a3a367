"""Unit tests for UPnP specification version ordering and parsing."""
from __future__ import annotations

import pytest

from ssdp_discovery_protocol import SpecVersion, IPVersion, InvalidParameterValueError


class TestSpecVersion:

    def test_total_order(self) -> None:
        assert SpecVersion.V10 < SpecVersion.V11 < SpecVersion.V20
        assert sorted([SpecVersion.V20, SpecVersion.V10, SpecVersion.V11]) == [
            SpecVersion.V10, SpecVersion.V11, SpecVersion.V20]

    def test_gate_comparisons(self) -> None:
        assert not SpecVersion.V10 >= SpecVersion.V11
        assert SpecVersion.V11 >= SpecVersion.V11
        assert SpecVersion.V20 >= SpecVersion.V11
        assert not SpecVersion.V11 >= SpecVersion.V20

    def test_default_is_v10(self) -> None:
        assert SpecVersion.default() == SpecVersion.V10

    @pytest.mark.parametrize("version,text,major,minor", [
        (SpecVersion.V10, "1.0", 1, 0),
        (SpecVersion.V11, "1.1", 1, 1),
        (SpecVersion.V20, "2.0", 2, 0),
    ])
    def test_str_and_parse(self, version: SpecVersion, text: str, major: int, minor: int) -> None:
        assert str(version) == text
        assert version.major == major
        assert version.minor == minor
        assert SpecVersion.parse(text) is version

    def test_parse_rejects_unknown_version(self) -> None:
        with pytest.raises(InvalidParameterValueError) as excinfo:
            SpecVersion.parse("3.0")
        assert excinfo.value.parameter == "spec_version"


def test_ip_version_str() -> None:
    assert str(IPVersion.V4) == "IPv4"
    assert str(IPVersion.V6) == "IPv6"


def test_format_matches_str() -> None:
    assert f"UPnP/{SpecVersion.V11}" == "UPnP/1.1"
    assert "{:>4}".format(SpecVersion.V20) == " 2.0"


def test_user_agent_string() -> None:
    from ssdp_discovery_protocol import user_agent_string, ProductVersion, __version__

    default = user_agent_string(SpecVersion.V10)
    parts = default.split(" ")
    assert parts[-2] == "UPnP/1.0"
    assert parts[-1] == f"ssdp-discovery-protocol/{__version__}"
    assert "/" in parts[0]
    assert user_agent_string(SpecVersion.V20, ProductVersion("Acme", "3.1")).endswith(" UPnP/2.0 Acme/3.1")
