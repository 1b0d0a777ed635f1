# dockbrowse/core/filesystem.py - Local and container filesystem backends

import logging
import os
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

from ..models.files import DirectoryEntry, FileStat
from . import scripting
from .docker_runner import ContainerExecChannel
from .errors import NotAccessibleError, PathNotFoundError, ChannelFailureError

logger = logging.getLogger(__name__)


class FilesystemAccess(ABC):
    """Capability set the navigator and picker depend on."""

    supports_preview = False
    separator = "/"

    @abstractmethod
    def list(self, path: str) -> List[DirectoryEntry]:
        """Entries of the directory at `path`. Raises NotAccessibleError."""

    @abstractmethod
    def search(self, path: str, text: str, max_depth: int, max_results: int) -> List[DirectoryEntry]:
        """Entries under `path` whose name contains `text` (case-insensitive)."""

    @abstractmethod
    def read_head(self, path: str, max_lines: int) -> List[str]:
        """First `max_lines` lines of a file. Raises PathNotFoundError."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def stat(self, path: str) -> FileStat:
        ...

    @abstractmethod
    def normalize(self, path: str) -> str:
        """Canonical absolute form of `path`."""

    @abstractmethod
    def join(self, directory: str, name: str) -> str:
        ...

    @abstractmethod
    def parent(self, path: str) -> str:
        ...

    @abstractmethod
    def default_root(self, path: Optional[str] = None) -> str:
        """Boundary above which '..' is not allowed."""

    def is_within(self, path: str, root: str) -> bool:
        return path == root or path.startswith(root.rstrip("/\\") + self.separator)


# --- Local host ---

class LocalFilesystem(FilesystemAccess):
    """Operates directly on the host filesystem with OS-native paths."""

    separator = os.sep

    def __init__(self, root: Optional[str] = None):
        self.root = root

    def list(self, path: str) -> List[DirectoryEntry]:
        entries = []
        try:
            with os.scandir(path) as it:
                for item in it:
                    if item.name in (".", ".."):
                        continue
                    entries.append(self._entry_from_dirent(item))
        except OSError as e:
            logger.warning(f"Cannot list local directory '{path}': {e}")
            raise NotAccessibleError(f"Cannot list '{path}': {e.strerror or e}", path=path)
        return entries

    def _entry_from_dirent(self, item: os.DirEntry) -> DirectoryEntry:
        try:
            is_dir = item.is_dir()
        except OSError:
            is_dir = False
        size = None
        if not is_dir:
            try:
                size = item.stat().st_size
            except OSError:
                # Broken symlinks and files removed mid-listing have no size
                size = None
        return DirectoryEntry(
            name=item.name,
            kind='directory' if is_dir else 'file',
            size_bytes=size,
            full_path=os.path.abspath(item.path),
        )

    def search(self, path: str, text: str, max_depth: int, max_results: int) -> List[DirectoryEntry]:
        if not os.path.isdir(path):
            raise NotAccessibleError(f"Cannot search '{path}': not a readable directory.", path=path)

        needle = text.lower()
        base_depth = os.path.abspath(path).rstrip(os.sep).count(os.sep)
        dirs: List[DirectoryEntry] = []
        files: List[DirectoryEntry] = []

        for dirpath, dirnames, filenames in os.walk(path):
            depth = os.path.abspath(dirpath).rstrip(os.sep).count(os.sep) - base_depth + 1
            dirnames.sort()
            for name in dirnames:
                if needle in name.lower() and len(dirs) < max_results:
                    dirs.append(DirectoryEntry(name=name, kind='directory', full_path=os.path.abspath(os.path.join(dirpath, name))))
            for name in sorted(filenames):
                if needle in name.lower() and len(files) < max_results:
                    full = os.path.abspath(os.path.join(dirpath, name))
                    try:
                        size = os.path.getsize(full)
                    except OSError:
                        size = None
                    files.append(DirectoryEntry(name=name, kind='file', size_bytes=size, full_path=full))
            if depth >= max_depth:
                dirnames[:] = []
            if len(dirs) >= max_results and len(files) >= max_results:
                break

        return (dirs + files)[:max_results]

    def read_head(self, path: str, max_lines: int) -> List[str]:
        lines = []
        try:
            with open(path, 'r', encoding='utf-8', errors='replace') as f:
                for line in f:
                    if len(lines) >= max_lines:
                        break
                    lines.append(line.rstrip('\r\n'))
        except FileNotFoundError:
            raise PathNotFoundError(f"File not found: '{path}'", path=path)
        except OSError as e:
            raise NotAccessibleError(f"Cannot read '{path}': {e.strerror or e}", path=path)
        return lines

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def stat(self, path: str) -> FileStat:
        try:
            st = Path(path).stat()
        except FileNotFoundError:
            raise PathNotFoundError(f"Path not found: '{path}'", path=path)
        except OSError as e:
            raise NotAccessibleError(f"Cannot stat '{path}': {e.strerror or e}", path=path)
        if os.path.isdir(path):
            return FileStat(path=os.path.abspath(path), kind='directory')
        return FileStat(path=os.path.abspath(path), kind='file', size_bytes=st.st_size)

    def normalize(self, path: str) -> str:
        return os.path.abspath(os.path.expanduser(path))

    def join(self, directory: str, name: str) -> str:
        return os.path.join(directory, name)

    def parent(self, path: str) -> str:
        return str(Path(os.path.abspath(path)).parent)

    def default_root(self, path: Optional[str] = None) -> str:
        if self.root:
            return os.path.abspath(self.root)
        anchor = Path(os.path.abspath(path or os.getcwd())).anchor
        return anchor or os.sep

    def is_within(self, path: str, root: str) -> bool:
        path = os.path.abspath(path)
        root = os.path.abspath(root)
        return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


# --- Container ---

def parse_ls_output(stdout: str, directory: str, directory_links: Iterable[str] = ()) -> List[DirectoryEntry]:
    """
    Parses `ls -la` long listing text into entries.

    The name is the trailing field, so names containing spaces survive.
    '.', '..' and the 'total' header are dropped. Symlinks keep their own
    name (the ' -> target' suffix is removed). A symlink is a directory when
    its name is in `directory_links`, otherwise a file.
    """
    directory_links = set(directory_links)
    entries = []
    for line in stdout.splitlines():
        line = line.rstrip('\r')
        if not line.strip() or line.startswith('total '):
            continue

        type_char = line[0]
        # Device nodes print "major, minor" in place of the size
        if type_char in ('c', 'b'):
            parts = line.split(None, 9)
            if len(parts) < 10:
                continue
            name, size = parts[9], None
        else:
            parts = line.split(None, 8)
            if len(parts) < 9:
                logger.debug(f"Skipping unparseable ls line: {line!r}")
                continue
            name = parts[8]
            size = int(parts[4]) if parts[4].isdigit() else None

        if type_char == 'l' and ' -> ' in name:
            name = name.split(' -> ', 1)[0]
        if name in ('.', '..'):
            continue

        if type_char == 'd' or (type_char == 'l' and name in directory_links):
            entries.append(DirectoryEntry(name=name, kind='directory', full_path=posixpath.join(directory, name)))
        else:
            entries.append(DirectoryEntry(
                name=name,
                kind='file',
                size_bytes=size if type_char == '-' else None,
                full_path=posixpath.join(directory, name),
            ))
    return entries


def parse_search_output(stdout: str, search_root: str) -> List[DirectoryEntry]:
    entries = []
    for line in stdout.splitlines():
        if len(line) < 3 or line[1] != ' ' or line[0] not in ('d', 'f'):
            continue
        full_path = line[2:]
        if full_path.rstrip("/") == search_root.rstrip("/"):
            continue
        name = posixpath.basename(full_path.rstrip('/'))
        if name in ('', '.', '..'):
            continue
        entries.append(DirectoryEntry(
            name=name,
            kind='directory' if line[0] == 'd' else 'file',
            full_path=full_path,
        ))
    return entries


class ContainerFilesystem(FilesystemAccess):
    """Operates on a container's filesystem through the exec channel."""

    supports_preview = True

    def __init__(self, channel: ContainerExecChannel, container: str):
        self.channel = channel
        self.container = container

    def normalize(self, path: str) -> str:
        return posixpath.normpath("/" + (path or "").lstrip("/"))

    def list(self, path: str) -> List[DirectoryEntry]:
        directory = self.normalize(path)
        # The trailing slash makes ls fail on plain files and follow directory symlinks
        target = directory if directory.endswith('/') else directory + '/'
        result = self.channel.run(self.container, scripting.list_command(target))
        if not result.ok:
            if not result.stdout.strip():
                logger.warning(f"List failed in '{self.container}' for '{directory}'. Exit: {result.exit_code}, Stderr: {result.stderr.strip()}")
                detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else f"exit code {result.exit_code}"
                raise NotAccessibleError(f"Cannot list '{directory}': {detail}", path=directory)
            logger.warning(f"Partial listing of '{directory}' in '{self.container}': {result.stderr.strip()}")

        directory_links = set()
        if any(line.startswith('l') for line in result.stdout.splitlines()):
            directory_links = self._directory_links(directory)
        return parse_ls_output(result.stdout, directory, directory_links)

    def _directory_links(self, directory: str) -> set:
        """Names of the symlinks in `directory` that resolve to directories."""
        result = self.channel.run(self.container, scripting.directory_links_command(directory))
        if not result.ok:
            logger.warning(f"Resolving symlinks in '{directory}' failed: {result.stderr.strip()}")
        return {line for line in result.stdout.splitlines() if line}

    def search(self, path: str, text: str, max_depth: int, max_results: int) -> List[DirectoryEntry]:
        directory = self.normalize(path)
        result = self.channel.run(self.container, scripting.search_command(directory, text, max_depth, max_results))
        if not result.ok and not result.stdout.strip():
            detail = result.stderr.strip().splitlines()[-1] if result.stderr.strip() else f"exit code {result.exit_code}"
            raise NotAccessibleError(f"Cannot search '{directory}': {detail}", path=directory)
        return parse_search_output(result.stdout, directory)[:max_results]

    def read_head(self, path: str, max_lines: int) -> List[str]:
        target = self.normalize(path)
        result = self.channel.run(self.container, scripting.head_command(target, max_lines))
        if not result.ok:
            stderr = result.stderr
            if "No such file" in stderr or "can't open" in stderr:
                raise PathNotFoundError(f"File not found: '{target}'", path=target)
            if "Is a directory" in stderr or "Permission denied" in stderr:
                raise NotAccessibleError(f"Cannot read '{target}': {stderr.strip()}", path=target)
            raise ChannelFailureError(f"Reading '{target}' failed (exit code {result.exit_code}): {stderr.strip()}", path=target)
        return result.stdout.splitlines()[:max_lines]

    def exists(self, path: str) -> bool:
        target = self.normalize(path)
        result = self.channel.run(self.container, scripting.exists_command(target))
        if result.exit_code in (0, 1):
            return result.exit_code == 0
        raise ChannelFailureError(f"Existence check for '{target}' failed (exit code {result.exit_code}).", path=target)

    def stat(self, path: str) -> FileStat:
        target = self.normalize(path)
        result = self.channel.run(self.container, scripting.stat_command(target))
        if not result.ok:
            if "No such file" in result.stderr or "can't stat" in result.stderr:
                raise PathNotFoundError(f"Path not found: '{target}'", path=target)
            raise NotAccessibleError(f"Cannot stat '{target}': {result.stderr.strip()}", path=target)

        file_type, _, size = result.stdout.strip().partition('|')
        if file_type == 'directory':
            return FileStat(path=target, kind='directory')
        return FileStat(path=target, kind='file', size_bytes=int(size) if size.isdigit() else None)

    def join(self, directory: str, name: str) -> str:
        return posixpath.join(directory, name)

    def parent(self, path: str) -> str:
        return posixpath.dirname(self.normalize(path).rstrip('/')) or '/'

    def default_root(self, path: Optional[str] = None) -> str:
        return '/'
