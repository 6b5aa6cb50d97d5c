"""Reading and rewriting `.u` files without trusting the filesystem.

Formatting rewrites source files in place, so every path is checked before it
is opened: it must be a regular `.u` file inside the working directory and no
component may be a symlink. The file is fingerprinted when it is read and
again just before it is replaced, and the replacement is an atomic rename of
a fully synced temporary file.
"""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from .constants import DEFAULT_MAX_FILE_SIZE, UNISON_EXTENSIONS

MAX_FILE_SIZE_ENV_VAR = "UNISON_FORMAT_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the size limit for source files, in bytes.

    `UNISON_FORMAT_MAX_FILE_SIZE` wins over `default` when it is set, which
    lets a CI job raise or lower the limit without touching project config.

    Raises:
        ValueError: If the variable is set to anything but a positive integer.

    Examples:
        get_max_file_size(default=config.max_file_size)
    """
    raw_limit = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw_limit is None:
        return default

    try:
        limit = int(raw_limit)
    except ValueError as error:
        raise ValueError(
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {raw_limit} (expected positive integer)"
        ) from error

    if limit <= 0:
        raise ValueError(f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {limit}.")
    return limit


def contains_symlink(path: Path) -> bool:
    """Whether `path` or any directory above it is a symlink."""
    for component in (path, *path.parents):
        try:
            if component.is_symlink():
                return True
        except OSError:
            # unreadable components are reported when the path is resolved
            continue
    return False


def normalize_filepath(raw_path: str, base_dir: Path) -> Path:
    """Turn a command-line path into the absolute path of a source file.

    Args:
        raw_path: Path as typed by the user, relative to the current directory
            or absolute; `~` is expanded.
        base_dir: Resolved working directory. Files outside it are refused.

    Returns:
        Path: The resolved path of an existing regular `.u` file.

    Raises:
        ValueError: With a message suitable for the user when the path goes
            through a symlink, is missing, is not a regular file, escapes
            `base_dir`, or is not a Unison source file.
    """
    path = Path(raw_path).expanduser()
    if contains_symlink(path):
        raise ValueError(f"Symlinks are not supported for security reasons: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")

    if not resolved.is_relative_to(base_dir):
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.")

    if resolved.suffix.lower() not in UNISON_EXTENSIONS:
        supported = ", ".join(UNISON_EXTENSIONS)
        raise ValueError(
            f"{resolved} is not a Unison source file.\nSupported extensions are: {supported}"
        )

    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Stat a source file without following symlinks.

    FIFOs, sockets and devices are refused here, before anything tries to
    read from them.

    Raises:
        IOError: If the file cannot be stat'ed or is not a regular file.
    """
    try:
        file_stat = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error

    if stat.S_ISLNK(file_stat.st_mode):
        raise IOError(f"Symlinks are not supported: {filepath}.")
    if not stat.S_ISREG(file_stat.st_mode):
        raise IOError(f"{filepath} is not a regular file.")
    return file_stat


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Raise `IOError` when the file is larger than `max_size` bytes."""
    if stat_result.st_size > max_size:
        raise IOError(f"{filepath} exceeds the maximum allowed size of {max_size} bytes.")


def _fingerprint(file_stat: os.stat_result) -> tuple[object, ...]:
    return (
        getattr(file_stat, "st_ino", None),
        getattr(file_stat, "st_dev", None),
        file_stat.st_size,
        file_stat.st_mtime_ns,
    )


def ensure_file_unchanged(
    expected_stat: os.stat_result, current_stat: os.stat_result, filepath: Path
):
    """Refuse to overwrite a file that changed after it was read.

    Two snapshots match when inode, device, size and modification time are
    all equal. An editor saving the file, or another formatter run, between
    reading and writing shows up as a mismatch.

    Raises:
        IOError: If the snapshots differ.
    """
    if _fingerprint(expected_stat) != _fingerprint(current_stat):
        raise IOError(f"{filepath} changed during formatting; refusing to overwrite.")


def safe_read(filepath: Path) -> TextIO:
    """Open a source file as UTF-8 text with newlines left untranslated.

    Keeping ``\\r\\n`` intact lets the formatter decide how line endings are
    normalized. Decoding errors surface as `UnicodeDecodeError` on read.

    Raises:
        IOError: If the file cannot be opened.

    Examples:
        with safe_read(path) as handle:
            source = handle.read()
    """
    try:
        return open(filepath, "r", encoding="UTF-8", newline="")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        raise IOError(f"Error accessing {filepath}: {error}") from error


def _copy_ownership(
    temp_name: str,
    expected_stat: os.stat_result,
    filepath: Path,
    warn: Callable[[str], None] | None,
):
    uid = getattr(expected_stat, "st_uid", None)
    gid = getattr(expected_stat, "st_gid", None)
    if uid is None or gid is None or not hasattr(os, "chown"):
        return

    try:
        os.chown(temp_name, uid, gid)
    except PermissionError:
        # only root can hand a file to another user; the rewrite still happens
        if warn is not None:
            warn(
                f"Warning: Could not preserve file ownership for {filepath.name} "
                "(requires elevated privileges)"
            )


def write_formatted(
    filepath: Path,
    content: str,
    expected_stat: os.stat_result,
    warn: Callable[[str], None] | None = None,
):
    """Replace a source file with its formatted text.

    The text goes to a temporary file next to the original, which is synced
    to disk, given the original mode and, where permitted, owner, and then
    renamed over the original. Readers therefore see either the old file or
    the new one. The access time of the original is carried over; the
    modification time records the rewrite.

    Args:
        filepath: Source file to replace.
        content: Formatted text, written as UTF-8 with newlines untranslated.
        expected_stat: Snapshot taken before the file was read.
        warn: Receives warnings that do not stop the rewrite.

    Raises:
        IOError: If the file changed since `expected_stat`, or the temporary
            file cannot be written or renamed.
    """
    ensure_file_unchanged(expected_stat, collect_file_stat(filepath), filepath)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", newline="", delete=False, dir=filepath.parent
        ) as temp_file:
            temp_path = Path(temp_file.name)
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            os.chmod(temp_file.name, stat.S_IMODE(expected_stat.st_mode))
            _copy_ownership(temp_file.name, expected_stat, filepath, warn)

        os.replace(temp_path, filepath)
        os.utime(filepath, ns=(expected_stat.st_atime_ns, filepath.stat().st_mtime_ns))
    except OSError as error:
        raise IOError(f"Error writing {filepath}: {error}") from error
    finally:
        # after a successful rename there is nothing left to remove
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
