"""
Concurrent access control for CrossKit.

Host package managers keep their own global lock (dpkg, rpm, pacman), so two
mutating calls against the same manager fail rather than queue. This module
serializes those calls, both across worker threads of one run and across
concurrent CrossKit processes, with file-based locks.

A lock is held for exactly one adapter call and released before the next.

Usage:
    from crosskit.core.locking import LockManager

    lock_manager = LockManager()
    with lock_manager.provider_lock("apt", timeout=300):
        run_command(["apt-get", "install", "-y", "gcc-aarch64-linux-gnu"])
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout as LockTimeout

from crosskit.core.filesystem import default_work_dir

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages locks for CrossKit resources.

    Uses file-based locking with the `filelock` library for cross-platform
    compatibility and automatic cleanup on process death. A fresh FileLock is
    created per acquisition so that worker threads exclude each other too.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Optional[Path] = None):
        """
        Initialize lock manager.

        Args:
            lock_dir: Directory for lock files (default: <work_dir>/lock)
        """
        if lock_dir is None:
            lock_dir = default_work_dir() / "lock"

        self.lock_dir = Path(lock_dir)
        self.lock_dir.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def provider_lock(self, provider_id: str, timeout: float = 300):
        """
        Acquire the lock guarding one package manager.

        Args:
            provider_id: Package provider identifier (e.g., 'apt', 'dnf')
            timeout: Maximum wait time in seconds

        Yields:
            None

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        safe_id = provider_id.replace("/", "-").replace("\\", "-").replace(":", "-")
        lock_path = self.lock_dir / f"provider-{safe_id}.lock"
        lock = FileLock(str(lock_path), timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired provider lock: {lock_path}")
                yield
                logger.debug(f"Released provider lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire {provider_id} lock after {timeout}s. "
                "Another CrossKit process may be installing packages."
            )
            raise LockTimeout(str(lock_path)) from e


__all__ = ["LockManager", "LockTimeout"]
