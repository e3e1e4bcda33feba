"""Shared utility functions used by the app, the controller and the CLI."""

from __future__ import annotations

import base64
import math
import platform
import shutil
import subprocess
import sys
from datetime import datetime

from .log import logger

_SIZE_UNITS = ("B", "KB", "MB")


def format_size(num_bytes: int) -> str:
    """Format a byte count as a short human-readable label (``"1.50 KB"``)."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    exponent = min(int(math.floor(math.log(num_bytes) / math.log(1024))), len(_SIZE_UNITS) - 1)
    return f"{num_bytes / 1024 ** exponent:.2f} {_SIZE_UNITS[exponent]}"


def format_time(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M:%S")


def truncate_text(text: object, max_length: int) -> str:
    """Cut *text* to *max_length* characters, appending ``...`` when cut."""
    if not text or not isinstance(text, str):
        return ""
    return text[:max_length] + "..." if len(text) > max_length else text


def read_clipboard() -> str | None:
    """Return the system clipboard text, or ``None`` if no tool can read it."""
    commands: list[list[str]] = []
    if platform.system() == "Darwin":
        commands.append(["pbpaste"])
    elif platform.system() == "Windows":
        commands.append(["powershell", "-NoProfile", "-Command", "Get-Clipboard"])
    else:
        commands.extend(
            [
                ["wl-paste", "--no-newline"],
                ["xclip", "-selection", "clipboard", "-o"],
                ["xsel", "--clipboard", "--output"],
            ]
        )

    for cmd in commands:
        if not shutil.which(cmd[0]):
            continue
        try:
            result = subprocess.run(cmd, capture_output=True, check=True, timeout=2)
        except (subprocess.SubprocessError, OSError):
            logger.debug("Clipboard read via %s failed", cmd[0], exc_info=True)
            continue
        return result.stdout.decode("utf-8", errors="replace")
    return None


def copy_to_clipboard(text: str) -> bool:
    """Copy text to system clipboard. Tries OSC 52 first, then native tools."""
    # OSC 52 works in most modern terminals, including over SSH.
    try:
        encoded = base64.b64encode(text.encode()).decode()
        sys.__stdout__.write(f"\033]52;c;{encoded}\a")
        sys.__stdout__.flush()
        return True
    except (OSError, AttributeError):
        logger.debug("OSC 52 clipboard write failed", exc_info=True)

    if platform.system() == "Darwin" and shutil.which("pbcopy"):
        try:
            subprocess.run(["pbcopy"], input=text.encode(), check=True, timeout=2)
            return True
        except (subprocess.SubprocessError, OSError):
            logger.debug("pbcopy clipboard copy failed", exc_info=True)

    for cmd in [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]:
        if shutil.which(cmd[0]):
            try:
                subprocess.run(cmd, input=text.encode(), check=True, timeout=2)
                return True
            except (subprocess.SubprocessError, OSError):
                logger.debug("Clipboard copy via %s failed", cmd[0], exc_info=True)
                continue

    return False
