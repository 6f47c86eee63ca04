"""Unit tests for command line option resolution."""

import os
import tempfile
from pathlib import Path

import pytest

from pyocsync.exceptions import (
    ProxyConfigError,
    SourceDirError,
    UsageError,
    VersionRequested,
)
from pyocsync.options import (
    SyncOptions,
    looks_like_flag,
    parse_flags,
    parse_proxy,
    resolve_options,
)

URL = "https://cloud.example.com"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestLooksLikeFlag:
    """Tests for the next-token heuristic."""

    def test_dash_prefixed_tokens_are_flags(self):
        """Test that anything starting with a dash looks like a flag."""
        assert looks_like_flag("-u")
        assert looks_like_flag("--exclude")
        assert looks_like_flag("-secret")

    def test_plain_tokens_are_values(self):
        """Test that plain tokens are accepted as values."""
        assert not looks_like_flag("alice")
        assert not looks_like_flag("/tmp/exclude.lst")
        assert not looks_like_flag("")

    def test_missing_token_is_not_a_value(self):
        """Test that the end of the argument list cannot be a value."""
        assert looks_like_flag(None)


class TestParseProxy:
    """Tests for proxy spec parsing."""

    def test_valid_proxy(self):
        """Test host and port extraction from a full spec."""
        assert parse_proxy("http://192.168.178.23:8080") == ("192.168.178.23", 8080)

    def test_host_without_slashes(self):
        """Test that a host without leading slashes is kept as is."""
        assert parse_proxy("http:proxy.local:3128") == ("proxy.local", 3128)

    @pytest.mark.parametrize(
        "proxy",
        [
            "proxy.local:3128",
            "http://proxy.local",
            "http://[::1]:3128",
            "",
            "http://proxy.local:3128:extra",
        ],
    )
    def test_wrong_segment_count_is_fatal(self, proxy):
        """Test that specs not splitting into three segments are rejected."""
        with pytest.raises(ProxyConfigError, match="http://hostname:port"):
            parse_proxy(proxy)

    def test_non_numeric_port_is_fatal(self):
        """Test that a non-numeric port is rejected."""
        with pytest.raises(ProxyConfigError):
            parse_proxy("http://proxy.local:http")


class TestParseFlags:
    """Tests for flag parsing."""

    def test_switches(self):
        """Test that switches set their option values."""
        values = parse_flags(["-s", "--trust", "-n", "-h", "--non-interactive"])
        assert values == {
            "silent": True,
            "trust_ssl": True,
            "use_netrc": True,
            "ignore_hidden_files": False,
            "interactive": False,
        }

    def test_value_flags(self):
        """Test that value flags consume the next token."""
        values = parse_flags(
            [
                "-u",
                "alice",
                "--password",
                "secret",
                "--exclude",
                "/tmp/ex.lst",
                "--unsyncedfolders",
                "/tmp/unsynced.lst",
                "--davpath",
                "remote.php/dav/files/alice",
                "--httpproxy",
                "http://proxy:3128",
            ]
        )
        assert values["user"] == "alice"
        assert values["password"] == "secret"
        assert values["exclude"] == "/tmp/ex.lst"
        assert values["unsynced_folders"] == "/tmp/unsynced.lst"
        assert values["dav_path"] == "remote.php/dav/files/alice"
        assert values["proxy"] == "http://proxy:3128"

    def test_rate_limits_are_stored_in_bytes(self):
        """Test that KB/s limits are multiplied by 1000."""
        values = parse_flags(["--uplimit", "50", "--downlimit", "200"])
        assert values["uplimit"] == 50000
        assert values["downlimit"] == 200000

    def test_max_sync_retries(self):
        """Test that the retry limit is parsed as an integer."""
        assert parse_flags(["--max-sync-retries", "7"]) == {"max_sync_retries": 7}

    def test_non_numeric_value_is_usage_error(self):
        """Test that numeric flags reject non-numbers."""
        with pytest.raises(UsageError, match="expects a number"):
            parse_flags(["--uplimit", "fast"])

    def test_value_that_looks_like_flag_is_not_consumed(self):
        """Test that a dash-prefixed value is not taken as the flag's value."""
        with pytest.raises(UsageError, match="requires a value"):
            parse_flags(["--password", "-secret"])

    def test_value_flag_at_end_is_usage_error(self):
        """Test that a value flag without a following token is rejected."""
        with pytest.raises(UsageError, match="requires a value"):
            parse_flags(["--user"])

    def test_unknown_flag_is_usage_error(self):
        """Test that an unknown flag is rejected."""
        with pytest.raises(UsageError, match="Unknown option: --bogus"):
            parse_flags(["--bogus"])

    def test_logdebug(self):
        """Test the debug logging switch."""
        assert parse_flags(["--logdebug"]) == {"log_debug": True}

    def test_later_flag_wins(self):
        """Test that repeating a flag keeps the last value."""
        assert parse_flags(["-u", "alice", "--user", "bob"]) == {"user": "bob"}


class TestResolveOptions:
    """Tests for resolve_options."""

    def test_positionals_are_taken_from_the_end(self, temp_dir):
        """Test that the last two tokens are source dir and URL."""
        options = resolve_options(["-u", "alice", str(temp_dir), URL])

        assert options.target_url == URL
        assert options.source_dir == os.path.abspath(str(temp_dir)) + "/"
        assert options.user == "alice"

    def test_source_dir_is_absolute_with_trailing_separator(self, temp_dir):
        """Test that a relative source dir becomes absolute and ends with /."""
        (temp_dir / "data").mkdir()
        cwd = os.getcwd()
        os.chdir(temp_dir)
        try:
            options = resolve_options(["data", URL])
        finally:
            os.chdir(cwd)

        assert os.path.isabs(options.source_dir)
        assert options.source_dir.endswith("/data/")

    def test_defaults(self, temp_dir):
        """Test default option values."""
        options = resolve_options([str(temp_dir), URL])

        assert options.max_sync_retries == 3
        assert options.interactive is True
        assert options.ignore_hidden_files is True
        assert options.uplimit == 0
        assert options.downlimit == 0
        assert options.proxy is None
        assert options.exclude == ""

    def test_missing_source_dir_is_fatal(self, temp_dir):
        """Test that a non-existent source dir raises SourceDirError."""
        missing = temp_dir / "missing"
        with pytest.raises(SourceDirError, match="does not exist"):
            resolve_options([str(missing), URL])

    def test_too_few_arguments(self):
        """Test that fewer than two positionals is a usage error."""
        with pytest.raises(UsageError):
            resolve_options([URL])
        with pytest.raises(UsageError):
            resolve_options([])

    def test_empty_url_is_usage_error(self, temp_dir):
        """Test that an empty URL is a usage error."""
        with pytest.raises(UsageError):
            resolve_options([str(temp_dir), ""])

    def test_unknown_flag_is_reported_before_source_dir(self, temp_dir):
        """Test that flag errors win over a missing source dir."""
        with pytest.raises(UsageError):
            resolve_options(["--bogus", str(temp_dir / "missing"), URL])

    @pytest.mark.parametrize("flag", ["-v", "--version"])
    def test_version_flag(self, flag, temp_dir):
        """Test that a version flag anywhere requests the version."""
        with pytest.raises(VersionRequested):
            resolve_options([flag])
        with pytest.raises(VersionRequested):
            resolve_options([flag, str(temp_dir), URL])

    def test_source_dir_named_like_version_flag(self, temp_dir):
        """Test that positionals are never read as the version flag."""
        (temp_dir / "-v").mkdir()
        cwd = os.getcwd()
        os.chdir(temp_dir)
        try:
            options = resolve_options(["-v", URL])
        finally:
            os.chdir(cwd)

        assert options.source_dir.endswith("/-v/")
        assert options.target_url == URL

    def test_options_are_immutable(self, temp_dir):
        """Test that the options record cannot be changed after validation."""
        options = resolve_options([str(temp_dir), URL])
        with pytest.raises(AttributeError):
            options.user = "mallory"  # type: ignore[misc]

    def test_password_not_in_repr(self):
        """Test that the password does not leak into log output."""
        options = SyncOptions(source_dir="/tmp/", target_url=URL, password="hunter2")
        assert "hunter2" not in repr(options)
