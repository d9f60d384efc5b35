"""Tests for systemd path escaping and unit name derivation."""

from pathlib import Path

import pytest

from unit_names import derive_unit_names, escape_path, normalize_path, unescape_path


class TestEscapePath:
    """Test escape_path() against systemd-escape --path output."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/mnt/media", "mnt-media"),
            ("/mnt/my-share", "mnt-my\\x2dshare"),
            ("/", "-"),
            ("/mnt/a b", "mnt-a\\x20b"),
            ("/srv/nas_1:data", "srv-nas_1:data"),
            ("/.hidden", "\\x2ehidden"),
            ("/home/user/.cache", "home-user-.cache"),
            ("/mnt/back\\slash", "mnt-back\\x5cslash"),
            ("/mnt/ä", "mnt-\\xc3\\xa4"),
        ],
    )
    def test_known_escapes(self, path, expected):
        """Escaping matches systemd-escape --path."""
        assert escape_path(path) == expected

    def test_path_is_simplified_first(self):
        """Duplicate slashes, '.' components and trailing slashes are dropped."""
        assert escape_path("//mnt/./media/") == "mnt-media"

    def test_undecodable_bytes_are_escaped(self):
        """Raw bytes that are not UTF-8 (surrogate-escaped from argv) escape per byte."""
        assert escape_path("/mnt/\udcff") == "mnt-\\xff"

    def test_relative_path_rejected(self):
        """Relative paths can't be escaped."""
        with pytest.raises(ValueError, match="absolute"):
            escape_path("mnt/media")

    def test_dotdot_rejected(self):
        """Paths with '..' are rejected rather than guessed."""
        with pytest.raises(ValueError, match="\\.\\."):
            escape_path("/mnt/../etc")

    def test_distinct_paths_give_distinct_names(self):
        """A dash in a path component must not collide with a separator."""
        assert escape_path("/mnt/a-b") != escape_path("/mnt/a/b")


class TestUnescapePath:
    """Test unescape_path() as the inverse of escape_path()."""

    @pytest.mark.parametrize(
        "path",
        ["/mnt/media", "/mnt/my-share", "/", "/.hidden", "/mnt/ä/ö", "/a b/c\\d"],
    )
    def test_roundtrip(self, path):
        """unescape_path(escape_path(p)) returns p."""
        assert unescape_path(escape_path(path)) == path

    def test_known_name(self):
        """A systemd unit base name maps back to its mountpoint."""
        assert unescape_path("mnt-my\\x2dshare") == "/mnt/my-share"

    def test_undecodable_bytes_roundtrip(self):
        assert unescape_path("mnt-\\xff") == "/mnt/\udcff"

    def test_malformed_escape(self):
        """Truncated \\x escapes raise ValueError."""
        with pytest.raises(ValueError, match="Malformed"):
            unescape_path("mnt-\\x2")


class TestNormalizePath:
    """Test normalize_path()."""

    def test_root_stays_root(self):
        assert normalize_path("/") == "/"

    def test_collapses_components(self):
        assert normalize_path("/mnt//nas/./share/") == "/mnt/nas/share"


class TestDeriveUnitNames:
    """Test derive_unit_names()."""

    def test_pair_paths(self):
        """Both unit files live directly under the unit directory."""
        names = derive_unit_names("/mnt/my-share", Path("/etc/systemd/system"))

        assert names.base_name == "mnt-my\\x2dshare"
        assert names.mount_path == Path("/etc/systemd/system/mnt-my\\x2dshare.mount")
        assert names.automount_path == Path("/etc/systemd/system/mnt-my\\x2dshare.automount")
        assert names.mount_unit == "mnt-my\\x2dshare.mount"
        assert names.automount_unit == "mnt-my\\x2dshare.automount"
