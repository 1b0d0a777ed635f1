# dockbrowse/core/history.py - Recent path history and static bookmarks

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError, TypeAdapter

from ..models.files import Bookmark, HistoryDocument
from ..utils.cleanup import cleanup_temp_file
from .config import MAX_RECENT_PATHS, HOST_IDENTITY
from .errors import CorruptHistoryError

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Persisted most-recent-first path lists, one per category.

    The whole document is rewritten on every insert through a temporary file
    and os.replace, so a reader never sees a half-written file. There is no
    locking: two sessions inserting at the same time lose one of the updates
    (last writer wins).
    """

    def __init__(self, history_file: Path | str, max_entries: int = MAX_RECENT_PATHS):
        self.history_file = Path(history_file)
        self.max_entries = max_entries

    def _load(self) -> HistoryDocument:
        if not self.history_file.exists():
            return HistoryDocument()
        try:
            raw = self.history_file.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise CorruptHistoryError(f"Cannot read history file: {e}", path=str(self.history_file))
        if not raw.strip():
            return HistoryDocument()
        try:
            return HistoryDocument.model_validate_json(raw)
        except ValidationError as e:
            raise CorruptHistoryError(f"Malformed history file: {e.error_count()} error(s)", path=str(self.history_file))

    def _load_or_empty(self) -> HistoryDocument:
        try:
            return self._load()
        except CorruptHistoryError as e:
            logger.info(f"Ignoring history file '{self.history_file}': {e.message}")
            return HistoryDocument()

    def _write(self, document: HistoryDocument) -> None:
        self.history_file.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self.history_file.name}.", suffix=".tmp", dir=self.history_file.parent
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(document.model_dump_json(indent=2))
            os.replace(temp_path, self.history_file)
        except OSError:
            cleanup_temp_file(temp_path)
            raise

    def get_recent(self, category: str) -> List[str]:
        """Recent paths for `category`, most recent first. Empty when absent or unreadable."""
        paths = self._load_or_empty().categories.get(category, [])
        return list(paths[:self.max_entries])

    def add_recent(self, category: str, path: str) -> None:
        """Moves `path` to the front of `category`, trimming the list to the cap."""
        document = self._load_or_empty()
        existing = [p for p in document.categories.get(category, []) if p != path]
        document.categories[category] = ([path] + existing)[:self.max_entries]
        try:
            self._write(document)
            logger.debug(f"Recorded recent path for '{category}': {path}")
        except OSError as e:
            logger.warning(f"Could not save history to '{self.history_file}': {e}")


# --- Bookmarks ---

DEFAULT_CONTAINER_BOOKMARKS = [
    Bookmark(label="Root", path="/"),
    Bookmark(label="Temp", path="/tmp"),
]

CONTAINER_BOOKMARKS: Dict[str, List[Bookmark]] = {
    "hospital_db": [
        Bookmark(label="PostgreSQL data", path="/var/lib/postgresql/data"),
        Bookmark(label="Backups", path="/backups"),
        Bookmark(label="Init scripts", path="/docker-entrypoint-initdb.d"),
        Bookmark(label="Temp", path="/tmp"),
    ],
    "hospital_backend": [
        Bookmark(label="Application", path="/app"),
        Bookmark(label="Logs", path="/app/logs"),
        Bookmark(label="Uploads", path="/app/uploads"),
        Bookmark(label="Temp", path="/tmp"),
    ],
    "hospital_frontend": [
        Bookmark(label="Web root", path="/usr/share/nginx/html"),
        Bookmark(label="Nginx config", path="/etc/nginx/conf.d"),
        Bookmark(label="Nginx logs", path="/var/log/nginx"),
    ],
}

_bookmark_file_adapter = TypeAdapter(Dict[str, List[Bookmark]])


def host_bookmarks() -> List[Bookmark]:
    """Home and working directory shortcuts, resolved when called."""
    cwd = Path.cwd()
    return [
        Bookmark(label="Home", path=str(Path.home())),
        Bookmark(label="Backups", path=str(cwd / "backups")),
        Bookmark(label="Working directory", path=str(cwd)),
    ]


def builtin_bookmarks() -> Dict[str, List[Bookmark]]:
    bookmarks = {HOST_IDENTITY: host_bookmarks()}
    bookmarks.update(CONTAINER_BOOKMARKS)
    return bookmarks


class BookmarkSet:
    """Static shortcut paths per target identity (the host or a container name)."""

    def __init__(self, bookmarks: Optional[Dict[str, List[Bookmark]]] = None):
        source = builtin_bookmarks() if bookmarks is None else bookmarks
        self._bookmarks = {identity: tuple(items) for identity, items in source.items()}

    @classmethod
    def from_file(cls, bookmarks_file: Optional[Path | str]) -> "BookmarkSet":
        """Built-in bookmarks, with identities from the JSON file replacing them."""
        merged = builtin_bookmarks()
        if not bookmarks_file:
            return cls(merged)
        try:
            raw = Path(bookmarks_file).read_text(encoding='utf-8')
            merged.update(_bookmark_file_adapter.validate_json(raw))
            logger.info(f"Loaded bookmarks from '{bookmarks_file}'.")
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Ignoring bookmarks file '{bookmarks_file}': {e}")
        return cls(merged)

    def get_bookmarks(self, identity: str) -> List[Bookmark]:
        if identity in self._bookmarks:
            return list(self._bookmarks[identity])
        if identity == HOST_IDENTITY:
            return []
        return list(DEFAULT_CONTAINER_BOOKMARKS)
