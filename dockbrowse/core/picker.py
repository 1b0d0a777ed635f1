# dockbrowse/core/picker.py - Quick-pick menu over history, bookmarks and the navigator

import logging
from typing import Callable, Optional

from ..models.files import BrowseResult, SelectMode
from ..utils.formatting import banner
from .errors import BrowserError, PathNotFoundError
from .filesystem import FilesystemAccess
from .history import BookmarkSet, HistoryStore
from .navigator import Navigator

logger = logging.getLogger(__name__)


class PathPicker:
    """
    Entry menu shown before browsing: recent paths for the category, the
    target's bookmarks, plus browse / manual entry / cancel. Any path picked
    through it is recorded in the history store.
    """

    def __init__(
        self,
        fs: FilesystemAccess,
        history: HistoryStore,
        bookmarks: BookmarkSet,
        category: str,
        identity: str,
        navigator_factory: Optional[Callable[..., Navigator]] = None,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
        **navigator_options,
    ):
        self.fs = fs
        self.history = history
        self.bookmarks = bookmarks
        self.category = category
        self.identity = identity
        self.navigator_factory = navigator_factory or Navigator
        self.prompt = prompt
        self.echo = echo
        self.navigator_options = navigator_options

    def pick(self, select_mode: SelectMode = 'file', name_filter: Optional[str] = None,
             start_path: Optional[str] = None) -> BrowseResult:
        while True:
            recent = self.history.get_recent(self.category)
            marks = self.bookmarks.get_bookmarks(self.identity)
            self._render(recent, marks, select_mode)

            try:
                choice = self.prompt("> ").strip()
            except EOFError:
                return BrowseResult.cancelled()

            if choice in ("q", "quit"):
                return BrowseResult.cancelled()

            result = None
            if choice == "b":
                result = self._browse(select_mode, name_filter, start_path)
            elif choice == "m":
                result = self._manual_entry(select_mode)
            elif choice.isdigit():
                index = int(choice)
                if 1 <= index <= len(recent):
                    result = self._use_path(recent[index - 1], select_mode)
                elif len(recent) < index <= len(recent) + len(marks):
                    bookmark = marks[index - len(recent) - 1]
                    result = self._browse(select_mode, name_filter, bookmark.path)

            if result is None:
                continue
            if result.is_selected:
                self.history.add_recent(self.category, result.path)
                logger.info(f"Selected '{result.path}' for category '{self.category}'.")
            return result

    def _render(self, recent, marks, select_mode: SelectMode) -> None:
        what = "folder" if select_mode == 'folder' else "file"
        self.echo("")
        self.echo(f"Select a {what} ({self.identity})")
        self.echo("=" * 60)
        index = 1
        if recent:
            self.echo("Recent:")
            for path in recent:
                self.echo(f"  {index:>3}) {path}")
                index += 1
        if marks:
            self.echo("Bookmarks:")
            for bookmark in marks:
                self.echo(f"  {index:>3}) {bookmark.label:<20} {bookmark.path}")
                index += 1
        self.echo("    b) Browse")
        self.echo("    m) Enter a path manually")
        self.echo("    q) Cancel")

    def _browse(self, select_mode: SelectMode, name_filter: Optional[str], start_path: Optional[str]) -> Optional[BrowseResult]:
        navigator = self.navigator_factory(
            self.fs,
            select_mode=select_mode,
            name_filter=name_filter,
            prompt=self.prompt,
            echo=self.echo,
            **self.navigator_options,
        )
        result = navigator.start(start_path)
        # Cancelling the browser goes back to this menu, not out of it
        return result if result.is_selected else None

    def _manual_entry(self, select_mode: SelectMode) -> Optional[BrowseResult]:
        try:
            path = self.prompt("Path: ").strip().strip('"')
        except EOFError:
            return None
        if not path:
            return None
        return self._use_path(self.fs.normalize(path), select_mode)

    def _use_path(self, path: str, select_mode: SelectMode) -> Optional[BrowseResult]:
        """Accepts `path` if it still exists and is the kind the mode asks for."""
        try:
            info = self.fs.stat(path)
        except PathNotFoundError:
            self.echo(banner(f"{path} does not exist"))
            return None
        except BrowserError as e:
            logger.warning(f"Stat of '{path}' failed: {e.message}")
            self.echo(banner(f"Error: {e.message}"))
            return None

        wanted = 'directory' if select_mode == 'folder' else 'file'
        if info.kind != wanted:
            self.echo(banner(f"{path} is not a {'folder' if wanted == 'directory' else 'file'}"))
            return None
        return BrowseResult.selected(info.path)
