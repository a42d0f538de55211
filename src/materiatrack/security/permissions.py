"""Owner-only permission helpers and local-path validation."""

import os
import stat
from pathlib import Path
from typing import Union

from materiatrack.common.constants import SecurityConstants
from materiatrack.common.exceptions import ConfigurationError

PathLike = Union[str, Path]


def set_secure_permissions(path: PathLike) -> None:
    """Restrict a file to 0600 or a directory to 0700."""
    path = Path(path)
    mode = (
        SecurityConstants.SECURE_DIR_MODE
        if path.is_dir()
        else SecurityConstants.SECURE_FILE_MODE
    )
    os.chmod(path, mode)


def ensure_secure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) if needed and make it owner-only."""
    path = Path(path)
    path.mkdir(mode=SecurityConstants.SECURE_DIR_MODE, parents=True, exist_ok=True)
    set_secure_permissions(path)
    return path


def check_file_permissions(path: PathLike) -> bool:
    """Report whether ``path`` grants nothing to group or others.

    A path that does not exist is considered secure.
    """
    path = Path(path)
    if not path.exists():
        return True

    mode = stat.S_IMODE(path.stat().st_mode)
    return (mode & 0o077) == 0


def validate_local_storage(path: PathLike) -> None:
    """Reject remote URLs and parent-directory traversal.

    Raises:
        ConfigurationError: If the path is not a plain local path
    """
    path_str = str(path)

    # Path() collapses "scheme://" to "scheme:/", so match on the scheme
    scheme, sep, _ = path_str.partition(":/")
    if sep and scheme.lower() in SecurityConstants.REMOTE_SCHEMES:
        raise ConfigurationError(
            "Remote storage paths are not allowed for security reasons",
            details={"path": path_str},
        )

    if ".." in Path(path_str).parts:
        raise ConfigurationError(
            "Path traversal not allowed",
            details={"path": path_str},
        )
