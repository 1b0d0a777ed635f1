# dockbrowse/core/config.py - Environment driven configuration

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# --- Configuration ---
load_dotenv()
DEFAULT_HISTORY_FILE = Path.home() / ".dockbrowse" / "history.json"
HISTORY_FILE = os.getenv("DOCKBROWSE_HISTORY_FILE", str(DEFAULT_HISTORY_FILE))
BOOKMARKS_FILE = os.getenv("DOCKBROWSE_BOOKMARKS_FILE")  # Optional JSON override of the built-in bookmarks
EXEC_TIMEOUT = int(os.getenv("DOCKBROWSE_EXEC_TIMEOUT", 30))
PAGE_SIZE = int(os.getenv("DOCKBROWSE_PAGE_SIZE", 40))
LOCAL_ROOT = os.getenv("DOCKBROWSE_LOCAL_ROOT")
LOG_LEVEL = os.getenv("DOCKBROWSE_LOG_LEVEL", "WARNING")

MAX_RECENT_PATHS = 10
SEARCH_MAX_DEPTH = 5
SEARCH_MAX_RESULTS = 15
PREVIEW_LINES = 30

HOST_IDENTITY = "host"
HOST_CATEGORY = "HostFile"
CONTAINER_CATEGORY_PREFIX = "container:"


class BrowserSettings(BaseModel):
    """Effective settings injected into the store, backends and navigator."""
    history_file: Path = Field(default_factory=lambda: Path(HISTORY_FILE))
    bookmarks_file: Optional[Path] = Field(default_factory=lambda: Path(BOOKMARKS_FILE) if BOOKMARKS_FILE else None)
    exec_timeout: int = Field(EXEC_TIMEOUT, gt=0, description="Seconds before a Docker API call is abandoned.")
    page_size: int = Field(PAGE_SIZE, gt=0, description="Entries rendered per page of a listing.")
    local_root: Optional[str] = Field(LOCAL_ROOT, description="Boundary for '..' on the local host. Defaults to the drive/anchor.")
    max_recent: int = Field(MAX_RECENT_PATHS, gt=0)
    search_max_depth: int = Field(SEARCH_MAX_DEPTH, gt=0)
    search_max_results: int = Field(SEARCH_MAX_RESULTS, gt=0)
    preview_lines: int = Field(PREVIEW_LINES, gt=0)


def category_for(container: Optional[str]) -> str:
    """History category for a selection target."""
    if not container:
        return HOST_CATEGORY
    return f"{CONTAINER_CATEGORY_PREFIX}{container}"
