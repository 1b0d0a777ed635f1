# dockbrowse/utils/formatting.py - Console formatting helpers

from typing import Optional

SIZE_NAMES = ["B", "KB", "MB", "GB", "TB"]


def format_size(size_bytes: Optional[int]) -> str:
    """Format file size in human readable format"""
    if size_bytes is None:
        return ""
    if size_bytes < 1024:
        return f"{size_bytes} B"

    size = float(size_bytes)
    i = 0
    while size >= 1024 and i < len(SIZE_NAMES) - 1:
        size /= 1024.0
        i += 1
    return f"{size:.1f} {SIZE_NAMES[i]}"


def banner(message: str) -> str:
    return f"[!] {message}"
