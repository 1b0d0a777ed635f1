# dockbrowse/core/navigator.py - Interactive directory navigator

import fnmatch
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..models.files import BrowseResult, DirectoryEntry, SelectMode
from ..utils.formatting import banner, format_size
from .config import PAGE_SIZE, SEARCH_MAX_DEPTH, SEARCH_MAX_RESULTS, PREVIEW_LINES
from .errors import BrowserError, ChannelFailureError, NotAccessibleError
from .filesystem import FilesystemAccess

logger = logging.getLogger(__name__)

GLOB_CHARS = "*?["
PREVIEW_PATTERN = re.compile(r"^cat\s+(\d+)$")


class NavigatorMode(str, Enum):
    BROWSING = "browsing"
    SEARCHING = "searching"
    PREVIEWING = "previewing"
    TERMINATED = "terminated"


class CommandKind(Enum):
    QUIT = "quit"
    SELECT_CURRENT = "select_current"
    UP = "up"
    SEARCH = "search"
    PREVIEW = "preview"
    OPEN = "open"
    NEXT_PAGE = "next_page"
    PREV_PAGE = "prev_page"
    NOOP = "noop"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    text: str = ""
    index: Optional[int] = None


@dataclass
class NavigatorState:
    root: str
    current_path: str
    select_mode: SelectMode
    name_filter: Optional[str] = None
    page: int = 0
    mode: NavigatorMode = NavigatorMode.BROWSING


def parse_command(line: str) -> Command:
    """
    Maps one input line to a command. Keywords are case-sensitive and checked
    in precedence order; anything unrecognized is a NOOP (re-render).
    """
    text = line.strip()
    if text in ("q", "quit"):
        return Command(CommandKind.QUIT)
    if text == ".":
        return Command(CommandKind.SELECT_CURRENT)
    if text == "..":
        return Command(CommandKind.UP)
    if text.startswith("/"):
        query = text[1:].strip()
        return Command(CommandKind.SEARCH, text=query) if query else Command(CommandKind.NOOP)
    match = PREVIEW_PATTERN.match(text)
    if match:
        return Command(CommandKind.PREVIEW, index=int(match.group(1)))
    if text.isdigit():
        return Command(CommandKind.OPEN, index=int(text))
    if text == "n":
        return Command(CommandKind.NEXT_PAGE)
    if text == "p":
        return Command(CommandKind.PREV_PAGE)
    return Command(CommandKind.NOOP)


def matches_filter(name: str, pattern: Optional[str]) -> bool:
    """Glob when the pattern has wildcard characters, substring otherwise. Case-insensitive."""
    if not pattern:
        return True
    if any(c in pattern for c in GLOB_CHARS):
        return fnmatch.fnmatchcase(name.lower(), pattern.lower())
    return pattern.lower() in name.lower()


def sort_entries(entries: list[DirectoryEntry]) -> list[DirectoryEntry]:
    """Directories first, then by name within each kind."""
    return sorted(
        (e for e in entries if e.name not in (".", "..")),
        key=lambda e: (not e.is_dir, e.name),
    )


class Navigator:
    """
    Console browser over one FilesystemAccess backend.

    Each loop iteration lists the current directory, renders one page of it
    and handles a single command. Searching and previewing are sub-modes that
    always come back to browsing; the session ends only with a selection or a
    cancel. The navigator never touches the history store.
    """

    def __init__(
        self,
        fs: FilesystemAccess,
        select_mode: SelectMode = 'file',
        name_filter: Optional[str] = None,
        root: Optional[str] = None,
        page_size: int = PAGE_SIZE,
        search_max_depth: int = SEARCH_MAX_DEPTH,
        search_max_results: int = SEARCH_MAX_RESULTS,
        preview_lines: int = PREVIEW_LINES,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
    ):
        self.fs = fs
        self.select_mode = select_mode
        self.name_filter = name_filter
        self.root = root
        self.page_size = page_size
        self.search_max_depth = search_max_depth
        self.search_max_results = search_max_results
        self.preview_lines = preview_lines
        self.prompt = prompt
        self.echo = echo
        self.state: Optional[NavigatorState] = None

    # --- Session ---

    def start(self, initial_path: Optional[str] = None) -> BrowseResult:
        root = self.fs.normalize(self.root or self.fs.default_root(initial_path))
        current = self.fs.normalize(initial_path) if initial_path else root
        if not self.fs.is_within(current, root):
            logger.info(f"Initial path '{current}' is outside root '{root}'. Starting at root.")
            current = root

        listing = self._try_list(current)
        if listing is None and current != root:
            self.echo(banner(f"Cannot open {current}, starting at {root}"))
            current = root
        self.state = NavigatorState(
            root=root, current_path=current, select_mode=self.select_mode, name_filter=self.name_filter
        )
        logger.info(f"Browse session started at '{current}' (root '{root}', mode '{self.select_mode}').")

        while True:
            if listing is None:
                listing = self._list_current()
            entries = self.visible_entries(listing)
            page_entries = self._render(entries)
            listing = None

            try:
                line = self.prompt(self._prompt_text())
            except EOFError:
                return self._terminate(BrowseResult.cancelled())

            result = self.handle(parse_command(line), page_entries)
            if isinstance(result, BrowseResult):
                return self._terminate(result)
            listing = result

    def _terminate(self, result: BrowseResult) -> BrowseResult:
        self.state.mode = NavigatorMode.TERMINATED
        logger.info(f"Browse session ended: {result.status} {result.path or ''}".rstrip())
        return result

    def handle(self, command: Command, page_entries: dict[int, DirectoryEntry]):
        """
        Applies one command in Browsing mode.

        Returns a BrowseResult when the session terminates, otherwise the
        listing of the new current directory (or None to re-list it).
        """
        state = self.state
        kind = command.kind

        if kind is CommandKind.QUIT:
            return BrowseResult.cancelled()

        if kind is CommandKind.SELECT_CURRENT:
            if state.select_mode == 'folder':
                return BrowseResult.selected(state.current_path)
            return None

        if kind is CommandKind.UP:
            if state.current_path == state.root:
                return None
            parent = self.fs.parent(state.current_path)
            if not parent or not self.fs.is_within(parent, state.root):
                parent = state.root
            return self._change_directory(parent)

        if kind is CommandKind.SEARCH:
            return self._search(command.text)

        if kind is CommandKind.PREVIEW:
            entry = page_entries.get(command.index)
            if self.fs.supports_preview and entry is not None:
                self._preview(entry)
            return None

        if kind is CommandKind.OPEN:
            entry = page_entries.get(command.index)
            if entry is None:
                return None
            return self._open(entry)

        if kind is CommandKind.NEXT_PAGE:
            state.page += 1
            return None

        if kind is CommandKind.PREV_PAGE:
            state.page = max(0, state.page - 1)
            return None

        # NOOP: stay in Browsing and re-render
        return None

    def _open(self, entry: DirectoryEntry):
        if entry.is_dir:
            return self._change_directory(entry.full_path)
        if self.state.select_mode == 'file':
            return BrowseResult.selected(entry.full_path)
        return None

    # --- Listing ---

    def _try_list(self, path: str) -> Optional[list[DirectoryEntry]]:
        try:
            return self.fs.list(path)
        except (NotAccessibleError, ChannelFailureError) as e:
            logger.warning(f"Listing '{path}' failed: {e.message}")
            return None

    def _list_current(self) -> list[DirectoryEntry]:
        try:
            return self.fs.list(self.state.current_path)
        except (NotAccessibleError, ChannelFailureError) as e:
            logger.warning(f"Listing '{self.state.current_path}' failed: {e.message}")
            self.echo(banner(f"Error: {e.message}"))
            return []

    def _change_directory(self, target: str) -> Optional[list[DirectoryEntry]]:
        listing = self._try_list(target)
        if listing is None:
            self.echo(banner(f"Cannot open {target}"))
            return None
        self.state.current_path = target
        self.state.page = 0
        return listing

    def visible_entries(self, listing: list[DirectoryEntry]) -> list[DirectoryEntry]:
        entries = sort_entries(listing)
        if self.state.name_filter and self.state.select_mode == 'file':
            entries = [e for e in entries if e.is_dir or matches_filter(e.name, self.state.name_filter)]
        return entries

    # --- Rendering ---

    def _page_count(self, total: int) -> int:
        return max(1, -(-total // self.page_size))

    def _render(self, entries: list[DirectoryEntry]) -> dict[int, DirectoryEntry]:
        state = self.state
        pages = self._page_count(len(entries))
        state.page = min(state.page, pages - 1)
        start = state.page * self.page_size
        shown = entries[start:start + self.page_size]

        self.echo("")
        self.echo(f"Location: {state.current_path}")
        if state.name_filter and state.select_mode == 'file':
            self.echo(f"Filter: {state.name_filter}")
        self.echo("-" * 60)
        if not shown:
            self.echo("  (empty)")

        page_entries = {}
        for offset, entry in enumerate(shown):
            index = start + offset + 1
            page_entries[index] = entry
            if entry.is_dir:
                self.echo(f"  {index:>3}) [DIR]  {entry.name}/")
            else:
                size = format_size(entry.size_bytes)
                self.echo(f"  {index:>3})        {entry.name}" + (f"  ({size})" if size else ""))

        if pages > 1:
            self.echo(f"Page {state.page + 1}/{pages}  (n: next, p: previous)")
        return page_entries

    def _prompt_text(self) -> str:
        hints = ["number: open", "..: up", "/text: search"]
        if self.fs.supports_preview:
            hints.append("cat N: preview")
        if self.select_mode == 'folder':
            hints.append(".: select this folder")
        hints.append("q: cancel")
        return f"{', '.join(hints)}\n> "

    # --- Sub-modes ---

    def _search(self, text: str):
        state = self.state
        state.mode = NavigatorMode.SEARCHING
        try:
            self.echo(f"Searching for '{text}' under {state.current_path}...")
            try:
                results = self.fs.search(
                    state.current_path, text, self.search_max_depth, self.search_max_results
                )
            except BrowserError as e:
                logger.warning(f"Search for '{text}' in '{state.current_path}' failed: {e.message}")
                self.echo(banner(f"Search failed: {e.message}"))
                return None

            results = results[:self.search_max_results]
            if not results:
                self.echo("No matches found.")
                return None

            for i, entry in enumerate(results, start=1):
                marker = "[DIR]" if entry.is_dir else "     "
                self.echo(f"  {i:>3}) {marker} {entry.full_path}")

            try:
                choice = self.prompt("Select number (Enter to go back): ").strip()
            except EOFError:
                return None
            if not choice.isdigit() or not 1 <= int(choice) <= len(results):
                return None

            entry = results[int(choice) - 1]
            if entry.is_dir:
                return self._change_directory(entry.full_path)
            if state.select_mode == 'file':
                return BrowseResult.selected(entry.full_path)
            return None
        finally:
            state.mode = NavigatorMode.BROWSING

    def _preview(self, entry: DirectoryEntry) -> None:
        state = self.state
        state.mode = NavigatorMode.PREVIEWING
        try:
            if entry.is_dir:
                self.echo(banner(f"{entry.name} is a directory"))
            else:
                try:
                    lines = self.fs.read_head(entry.full_path, self.preview_lines)
                except BrowserError as e:
                    logger.warning(f"Preview of '{entry.full_path}' failed: {e.message}")
                    self.echo(banner(f"Preview failed: {e.message}"))
                else:
                    self.echo(f"--- {entry.full_path} (first {self.preview_lines} lines) ---")
                    for text in lines:
                        self.echo(text)
                    self.echo("--- end of preview ---")
            try:
                self.prompt("Press Enter to continue...")
            except EOFError:
                pass
        finally:
            state.mode = NavigatorMode.BROWSING
