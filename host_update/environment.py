"""
Host environment checks.
"""

from __future__ import annotations

import os
import sys


def is_windows() -> bool:
    return sys.platform == "win32"


def is_elevated() -> bool:
    """
    Check whether the process runs with administrative privileges.

    Returns:
        True for an elevated Windows token or root on POSIX, False otherwise
        (including when the check itself fails)
    """
    if is_windows():
        try:
            import ctypes
            return bool(ctypes.windll.shell32.IsUserAnAdmin())
        except (AttributeError, OSError):
            return False

    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return False
    return geteuid() == 0
