"""Unit tests for permission helpers and local-path validation."""

import os
import stat
from pathlib import Path

import pytest

from materiatrack.common.exceptions import ConfigurationError
from materiatrack.security.permissions import (
    check_file_permissions,
    ensure_secure_directory,
    set_secure_permissions,
    validate_local_storage,
)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestSecurePermissions:
    """Tests for owner-only permissions."""

    def test_file_mode(self, tmp_path):
        path = tmp_path / "data.db"
        path.write_text("x")
        os.chmod(path, 0o644)

        set_secure_permissions(path)
        assert _mode(path) == 0o600

    def test_directory_mode(self, tmp_path):
        path = tmp_path / "state"
        path.mkdir()
        os.chmod(path, 0o755)

        set_secure_permissions(path)
        assert _mode(path) == 0o700

    def test_ensure_secure_directory(self, tmp_path):
        path = ensure_secure_directory(tmp_path / "a" / "b")

        assert path.is_dir()
        assert _mode(path) == 0o700

    def test_check_reports_group_or_other_access(self, tmp_path):
        path = tmp_path / "data.db"
        path.write_text("x")

        os.chmod(path, 0o600)
        assert check_file_permissions(path) is True
        os.chmod(path, 0o640)
        assert check_file_permissions(path) is False
        os.chmod(path, 0o604)
        assert check_file_permissions(path) is False

    def test_check_missing_path(self, tmp_path):
        assert check_file_permissions(tmp_path / "missing") is True

    def test_check_is_read_only(self, tmp_path):
        path = tmp_path / "data.db"
        path.write_text("x")
        os.chmod(path, 0o644)

        check_file_permissions(path)
        assert _mode(path) == 0o644


class TestValidateLocalStorage:
    """Tests for remote and traversal rejection."""

    @pytest.mark.parametrize("path", [
        "http://example.com/audit.log",
        "https://example.com/audit.log",
        "ftp://example.com/audit.log",
        "s3://bucket/audit.log",
        "S3://bucket/audit.log",
        Path("https://example.com/audit.log"),
    ])
    def test_remote_rejected(self, path):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_local_storage(path)
        assert "Remote storage" in exc_info.value.message

    @pytest.mark.parametrize("path", [
        "../audit.log",
        "/var/lib/../../etc/passwd",
        Path("state") / ".." / "audit.log",
    ])
    def test_traversal_rejected(self, path):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_local_storage(path)
        assert "traversal" in exc_info.value.message

    def test_local_paths_accepted(self, tmp_path):
        validate_local_storage(tmp_path / "audit.log")
        validate_local_storage("relative/audit.log")
        validate_local_storage("C:/Users/alice/audit.log")
