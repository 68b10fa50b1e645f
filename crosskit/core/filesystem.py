"""
File system utilities for CrossKit.

This module provides the file operations the provisioner needs at its
boundaries:
- Atomic writes, and content-aware writes that preserve mtime
- Safe directory removal with a required-prefix guard
- Run-scoped working directories namespaced per run
"""

import os
import shutil
import tempfile
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to parent.

    Args:
        path: Path to check
        parent: Potential parent path

    Returns:
        True if path is under parent
    """
    try:
        path.resolve().relative_to(parent.resolve())
        return True
    except ValueError:
        return False


def default_work_dir() -> Path:
    """Root directory under which run directories are created."""
    return Path(tempfile.gettempdir()) / "crosskit"


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)

    Example:
        >>> atomic_write('toolchain.cmake', 'set(CMAKE_SYSTEM_NAME Linux)\\n')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            # newline="" keeps generated text byte-stable across platforms
            with open(temp_fd, "w", encoding=encoding, newline="") as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def write_if_changed(
    file_path: Union[str, Path], content: str, encoding: str = "utf-8"
) -> bool:
    """
    Write text only when it differs from what is already on disk.

    Build systems cache on file content and mtime, so an unchanged file
    must not be touched.

    Args:
        file_path: Destination path
        content: Desired text content
        encoding: Text encoding

    Returns:
        True if the file was written, False if it was already up to date
    """
    file_path = Path(file_path)
    data = content.encode(encoding)

    if file_path.is_file() and file_path.read_bytes() == data:
        return False

    atomic_write(file_path, data)
    return True


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix):
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


# ============================================================================
# Run-Scoped Directories
# ============================================================================


def new_run_id() -> str:
    """Unique run identifier: timestamp, pid and a random suffix."""
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return f"{stamp}-{os.getpid()}-{uuid.uuid4().hex[:8]}"


@contextmanager
def run_directory(
    work_dir: Optional[Path] = None,
    run_id: Optional[str] = None,
    cleanup: bool = True,
) -> Iterator[Path]:
    """
    Context manager for a namespaced per-run working directory.

    Concurrent runs (for example parallel CI jobs) each get their own
    subdirectory, so temp files never collide.

    Args:
        work_dir: Parent directory (default: <tmp>/crosskit)
        run_id: Identifier for the run (default: generated)
        cleanup: Remove the directory on exit

    Yields:
        Path to the run directory

    Example:
        >>> with run_directory() as run_dir:
        ...     (run_dir / "probe.c").write_text("int main(void){return 0;}")
    """
    parent = Path(work_dir) if work_dir else default_work_dir()
    parent.mkdir(parents=True, exist_ok=True)
    run_dir = parent / f"run-{run_id or new_run_id()}"
    run_dir.mkdir()

    try:
        yield run_dir
    finally:
        if cleanup and run_dir.exists():
            safe_rmtree(run_dir, require_prefix=parent)


__all__ = [
    "FilesystemError",
    "is_relative_to",
    "default_work_dir",
    "atomic_write",
    "write_if_changed",
    "safe_rmtree",
    "new_run_id",
    "run_directory",
]
