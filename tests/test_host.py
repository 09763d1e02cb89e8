"""Tests for host inspection helpers."""

from unittest.mock import patch

import pytest

from devsetup.system.host import (
    AWS_ARCHITECTURES,
    COMPOSE_ARCHITECTURES,
    GO_ARCHITECTURES,
    Distribution,
    current_user,
    detect_distribution,
    distribution_from_release,
    map_architecture,
    parse_os_release,
)


UBUNTU_OS_RELEASE = '''PRETTY_NAME="Ubuntu 22.04.4 LTS"
NAME="Ubuntu"
VERSION_ID="22.04"
ID=ubuntu
ID_LIKE=debian
VERSION_CODENAME=jammy
'''


class TestOsRelease:
    """Tests for os-release parsing."""

    def test_parse(self):
        values = parse_os_release(UBUNTU_OS_RELEASE)
        assert values["ID"] == "ubuntu"
        assert values["PRETTY_NAME"] == "Ubuntu 22.04.4 LTS"

    def test_comments_and_blank_lines(self):
        assert parse_os_release("# comment\n\nID=fedora\n") == {"ID": "fedora"}

    @pytest.mark.parametrize("release,expected", [
        ({"ID": "ubuntu"}, Distribution.UBUNTU),
        ({"ID": "debian"}, Distribution.DEBIAN),
        ({"ID": "amzn"}, Distribution.AMAZON),
        ({"ID": "rhel"}, Distribution.REDHAT),
        ({"ID": "centos"}, Distribution.REDHAT),
        ({"ID": "fedora"}, Distribution.FEDORA),
        ({"ID": "rocky", "ID_LIKE": "rhel centos fedora"}, Distribution.REDHAT),
        ({"ID": "linuxmint", "ID_LIKE": "ubuntu debian"}, Distribution.DEBIAN),
        ({"ID": "arch"}, Distribution.UNKNOWN),
    ])
    def test_distribution_from_release(self, release, expected):
        assert distribution_from_release(release) is expected


class TestDetectDistribution:
    """Tests for marker-file detection."""

    def test_os_release(self, tmp_path):
        os_release = tmp_path / "os-release"
        os_release.write_text(UBUNTU_OS_RELEASE)
        assert detect_distribution(os_release, tmp_path / "none", tmp_path / "none") is Distribution.UBUNTU

    def test_redhat_release(self, tmp_path):
        marker = tmp_path / "redhat-release"
        marker.write_text("CentOS Linux release 7.9.2009 (Core)\n")
        assert detect_distribution(tmp_path / "none", marker, tmp_path / "none") is Distribution.REDHAT

    def test_debian_version(self, tmp_path):
        marker = tmp_path / "debian_version"
        marker.write_text("12.5\n")
        assert detect_distribution(tmp_path / "none", tmp_path / "none", marker) is Distribution.DEBIAN

    def test_nothing(self, tmp_path):
        missing = tmp_path / "none"
        assert detect_distribution(missing, missing, missing) is Distribution.UNKNOWN


class TestDistributionGroups:
    """Admin and web groups per distribution."""

    def test_debian_family(self):
        assert Distribution.UBUNTU.admin_group == "sudo"
        assert Distribution.DEBIAN.web_user == "www-data"

    @pytest.mark.parametrize("distro", [Distribution.AMAZON, Distribution.REDHAT, Distribution.FEDORA, Distribution.UNKNOWN])
    def test_wheel_family(self, distro):
        assert distro.admin_group == "wheel"
        assert distro.web_user == "apache"


class TestMapArchitecture:
    """Tests for map_architecture."""

    @pytest.mark.parametrize("machine,expected", [
        ("x86_64", "amd64"),
        ("amd64", "amd64"),
        ("aarch64", "arm64"),
        ("arm64", "arm64"),
        ("armv6l", "armv6l"),
    ])
    def test_go(self, machine, expected):
        assert map_architecture(GO_ARCHITECTURES, machine) == expected

    def test_compose(self):
        assert map_architecture(COMPOSE_ARCHITECTURES, "x86_64") == "x86_64"
        assert map_architecture(COMPOSE_ARCHITECTURES, "armv7l") == "armv7"

    def test_aws(self):
        assert map_architecture(AWS_ARCHITECTURES, "x86_64") == "x86_64"

    def test_unsupported_raises(self):
        with pytest.raises(RuntimeError, match="Unsupported architecture: mips"):
            map_architecture(GO_ARCHITECTURES, "mips")

    def test_uses_platform_machine(self):
        with patch("platform.machine", return_value="AARCH64"):
            assert map_architecture(GO_ARCHITECTURES) == "arm64"


class TestCurrentUser:
    """Tests for current_user."""

    def test_prefers_sudo_user(self):
        with patch.dict("os.environ", {"SUDO_USER": "mike", "USER": "root"}):
            assert current_user() == "mike"

    def test_falls_back_to_user(self, monkeypatch):
        monkeypatch.delenv("SUDO_USER", raising=False)
        monkeypatch.setenv("USER", "alice")
        assert current_user() == "alice"
