# tests/conftest.py - Shared fakes for the browser tests

import posixpath
from typing import Optional

import pytest

from dockbrowse.core.errors import NotAccessibleError, PathNotFoundError
from dockbrowse.core.filesystem import FilesystemAccess
from dockbrowse.models.execution import ExecResult
from dockbrowse.models.files import DirectoryEntry, FileStat


class ScriptedInput:
    """Stands in for input(): returns queued answers, then raises EOFError."""

    def __init__(self, *answers: str):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt: str = "") -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


class Output:
    """Collects echoed lines."""

    def __init__(self):
        self.lines = []

    def __call__(self, text: str = "") -> None:
        self.lines.append(text)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class MemoryFilesystem(FilesystemAccess):
    """
    In-memory container-like filesystem. Keys are absolute paths; a None value
    is a directory, a string value is a file's content.
    """

    supports_preview = True

    def __init__(self, tree: dict[str, Optional[str]], unreadable=(), search_results=None):
        self.dirs = {"/"}
        self.files: dict[str, str] = {}
        for path, content in tree.items():
            if content is None:
                self._add_dir(path)
            else:
                self._add_dir(posixpath.dirname(path))
                self.files[path] = content
        self.unreadable = set(unreadable)
        self.search_results = search_results
        self.list_calls = []
        self.search_calls = []

    def _add_dir(self, path: str) -> None:
        while path and path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def _children(self, path: str):
        for d in sorted(self.dirs):
            if d != "/" and posixpath.dirname(d) == path:
                yield DirectoryEntry(name=posixpath.basename(d), kind='directory', full_path=d)
        for f, content in sorted(self.files.items()):
            if posixpath.dirname(f) == path:
                yield DirectoryEntry(name=posixpath.basename(f), kind='file', size_bytes=len(content), full_path=f)

    def list(self, path):
        self.list_calls.append(path)
        if path not in self.dirs or path in self.unreadable:
            raise NotAccessibleError(f"Cannot list '{path}'", path=path)
        return list(self._children(path))

    def search(self, path, text, max_depth, max_results):
        self.search_calls.append((path, text, max_depth, max_results))
        if self.search_results is not None:
            return list(self.search_results)[:max_results]
        prefix = path.rstrip("/") + "/"
        found = [d for d in sorted(self.dirs) if d.startswith(prefix) and text.lower() in posixpath.basename(d).lower()]
        found += [f for f in sorted(self.files) if f.startswith(prefix) and text.lower() in posixpath.basename(f).lower()]
        return [
            DirectoryEntry(name=posixpath.basename(p), kind='directory' if p in self.dirs else 'file', full_path=p)
            for p in found
        ][:max_results]

    def read_head(self, path, max_lines):
        if path not in self.files:
            raise PathNotFoundError(f"File not found: '{path}'", path=path)
        return self.files[path].splitlines()[:max_lines]

    def exists(self, path):
        return path in self.dirs or path in self.files

    def stat(self, path):
        if path in self.dirs:
            return FileStat(path=path, kind='directory')
        if path in self.files:
            return FileStat(path=path, kind='file', size_bytes=len(self.files[path]))
        raise PathNotFoundError(f"Path not found: '{path}'", path=path)

    def normalize(self, path):
        return posixpath.normpath("/" + path.lstrip("/"))

    def join(self, directory, name):
        return posixpath.join(directory, name)

    def parent(self, path):
        return posixpath.dirname(path.rstrip("/")) or "/"

    def default_root(self, path=None):
        return "/"


class FakeChannel:
    """Exec channel returning canned results keyed by a command substring."""

    def __init__(self, responses: Optional[dict[str, ExecResult]] = None, default: Optional[ExecResult] = None):
        self.responses = responses or {}
        self.default = default or ExecResult(exit_code=0)
        self.commands = []

    def run(self, container_name: str, command: str) -> ExecResult:
        self.commands.append((container_name, command))
        for fragment, result in self.responses.items():
            if fragment in command:
                return result
        return self.default


# --- Fixtures ---

@pytest.fixture
def app_tree():
    return MemoryFilesystem({
        "/app/config/app.json": '{"debug": false}\n',
        "/app/src/config.py": "DEBUG = False\n",
        "/app/src/main.py": "\n".join(f"line {i}" for i in range(1, 51)),
        "/app/README.md": "# Hospital backend\n",
        "/app/logs": None,
        "/tmp": None,
    })


@pytest.fixture
def output():
    return Output()
