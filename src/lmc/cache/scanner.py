"""Executable discovery inside candidate PATH directories."""

from __future__ import annotations

import logging
import os
import stat

logger = logging.getLogger(__name__)


def scan_path(path: str, warnings: list[str] | None = None, origin: str | None = None) -> list[str]:
    """List the executables directly inside ``path``.

    An entry counts when it is a regular file (symlinks are followed) and the
    current process has execute permission on it. Subdirectories are not
    descended into.

    Args:
        path: Directory to scan
        warnings: Optional list that receives non-fatal warning messages
        origin: Module code the path came from, used in log messages

    Returns:
        Sorted list of executable file names (empty if the directory is missing
        or unreadable)
    """
    source = f" (from {origin})" if origin else ""

    def warn(message: str, level: int = logging.WARNING) -> None:
        logger.log(level, message)
        if warnings is not None:
            warnings.append(message)

    try:
        with os.scandir(path) as it:
            names = sorted(entry.name for entry in it)
    except FileNotFoundError:
        logger.debug(f"potential path {path}{source} does not exist")
        return []
    except OSError as err:
        warn(f"couldn't open potential path {path}{source}: {err}", logging.INFO)
        return []

    found = []
    for name in names:
        abs_path = os.path.join(path, name)
        try:
            st = os.stat(abs_path)
        except OSError as err:
            warn(f"stat() failed for {abs_path}: {err}")
            continue

        if not stat.S_ISREG(st.st_mode):
            continue
        if not os.access(abs_path, os.X_OK):
            continue
        found.append(name)

    return found
