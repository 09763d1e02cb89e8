"""Tests for version extraction and comparison."""

import pytest

from devsetup.utils.versions import (
    ToolVersion,
    VersionComparison,
    compare_versions,
    extract_version,
    normalize_version,
    version_sort_key,
)


class TestExtractVersion:
    """Tests for extract_version."""

    @pytest.mark.parametrize("output,expected", [
        ("git version 2.43.0", "2.43.0"),
        ("go version go1.22.1 linux/amd64", "1.22.1"),
        ("Python 3.12.3", "3.12.3"),
        ("Docker version 24.0.7, build afdd53b", "24.0.7"),
        ("OpenSSL 3.0.2 15 Mar 2022 (Library: OpenSSL 3.0.2 15 Mar 2022)", "3.0.2"),
    ])
    def test_first_dotted_number(self, output, expected):
        """The first dotted number in the output is returned."""
        assert extract_version(output) == expected

    def test_no_version(self):
        """Output without a dotted number yields an empty string."""
        assert extract_version("command not found") == ""
        assert extract_version("") == ""


class TestNormalizeVersion:
    """Tests for normalize_version."""

    def test_go_prefix(self):
        assert normalize_version("go1.25.1") == "1.25.1"

    def test_v_prefix_and_suffix(self):
        assert normalize_version("v2.3.0-rc1") == "2.3.0"

    def test_colon_suffix(self):
        """Anything after ':' is dropped."""
        assert normalize_version("7.0.15:extra") == "7.0.15"

    def test_plain(self):
        assert normalize_version("1.2.3") == "1.2.3"

    def test_empty(self):
        assert normalize_version("") == ""


class TestCompareVersions:
    """Tests for compare_versions."""

    def test_newer(self):
        assert compare_versions("1.2.0", "1.3.0") is VersionComparison.NEWER

    def test_equal(self):
        assert compare_versions("2.0", "2.0") is VersionComparison.OLDER_OR_EQUAL

    def test_older(self):
        """A latest version below the installed one is not an update."""
        assert compare_versions("2.1", "2.0") is VersionComparison.OLDER_OR_EQUAL

    def test_missing_side(self):
        assert compare_versions("", "1.0") is VersionComparison.NOT_COMPARABLE
        assert compare_versions("1.0", "") is VersionComparison.NOT_COMPARABLE

    def test_numeric_not_lexical(self):
        """1.10 is newer than 1.9."""
        assert compare_versions("1.9", "1.10") is VersionComparison.NEWER

    def test_prefixes_ignored(self):
        assert compare_versions("go1.22.1", "go1.25.1") is VersionComparison.NEWER
        assert compare_versions("v2.3.0", "2.3.0") is VersionComparison.OLDER_OR_EQUAL

    def test_non_pep440_falls_back(self):
        """Versions packaging cannot parse are compared naturally."""
        assert compare_versions("2.34.1ubuntu1.10", "2.34.1ubuntu1.11") is VersionComparison.NEWER


class TestVersionSortKey:
    """Tests for version_sort_key."""

    def test_orders_like_sort_v(self):
        versions = ["1.10.0", "1.2.0", "1.9.3"]
        assert sorted(versions, key=version_sort_key) == ["1.2.0", "1.9.3", "1.10.0"]


class TestToolVersion:
    """Tests for the ToolVersion dataclass."""

    def test_not_installed(self):
        info = ToolVersion(name="Git")
        assert info.installed is False
        assert info.update_available is False

    def test_update_available(self):
        info = ToolVersion(name="Git", current="2.34.1", latest="2.43.0")
        assert info.installed is True
        assert info.update_available is True

    def test_up_to_date(self):
        info = ToolVersion(name="Git", current="2.43.0", latest="2.43.0")
        assert info.update_available is False
        assert info.comparison is VersionComparison.OLDER_OR_EQUAL
