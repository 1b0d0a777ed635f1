# tests/test_filesystem.py - Pytest tests for the local and container filesystem backends

import os

import pytest

from conftest import FakeChannel, Output, ScriptedInput
from dockbrowse.core import scripting
from dockbrowse.core.errors import ChannelFailureError, NotAccessibleError, PathNotFoundError
from dockbrowse.core.filesystem import (
    ContainerFilesystem, FilesystemAccess, LocalFilesystem, parse_ls_output, parse_search_output,
)
from dockbrowse.core.navigator import Navigator
from dockbrowse.models.execution import ExecResult

# --- Test Data ---

GNU_LS_OUTPUT = """total 28
drwxr-xr-x 1 root root 4096 Oct 19 10:00 .
drwxr-xr-x 1 root root 4096 Oct 19 09:58 ..
-rw-r--r-- 1 root root  120 Oct 19 10:00 app.json
drwxr-xr-x 2 root root 4096 Oct 19 10:00 logs
-rw-r--r-- 1 root root 2048 Oct 18  2025 nightly backup 2025.sql
lrwxrwxrwx 1 root root    7 Oct 19 10:00 current -> app.json
crw-rw-rw- 1 root root 1, 3 Oct 19 10:00 null
"""

BUSYBOX_LS_OUTPUT = """total 8
drwxr-xr-x    2 postgres postgres      4096 Oct 19 10:00 .
drwxr-xr-x    1 root     root          4096 Oct 19 09:00 ..
-rw-r--r--    1 postgres postgres    524288 Oct 19 10:00 hospital.sql
drwx------   19 postgres postgres      4096 Oct 19 10:00 data
"""

LINKED_ROOT_LS_OUTPUT = """total 4
drwxr-xr-x 1 root root 4096 Oct 19 10:00 app
lrwxrwxrwx 1 root root    7 Oct 19 10:00 lib -> usr/lib
lrwxrwxrwx 1 root root   14 Oct 19 10:00 latest.sql -> /backups/x.sql
"""

SEARCH_OUTPUT = """d /app/config
d /app/src/config
f /app/config/config.yaml
f /app/src/config.py
"""


# --- ls parsing ---

def test_parse_ls_drops_dot_entries_and_total():
    entries = parse_ls_output(GNU_LS_OUTPUT, "/app")
    names = [e.name for e in entries]
    assert "." not in names
    assert ".." not in names
    assert not any(name.startswith("total") for name in names)


def test_parse_ls_classifies_and_sizes():
    entries = {e.name: e for e in parse_ls_output(GNU_LS_OUTPUT, "/app")}
    assert entries["logs"].kind == "directory"
    assert entries["logs"].size_bytes is None
    assert entries["app.json"].kind == "file"
    assert entries["app.json"].size_bytes == 120
    assert entries["app.json"].full_path == "/app/app.json"


def test_parse_ls_keeps_names_with_spaces():
    """The name is the trailing field, not a fixed column."""
    entries = {e.name: e for e in parse_ls_output(GNU_LS_OUTPUT, "/app")}
    assert "nightly backup 2025.sql" in entries
    assert entries["nightly backup 2025.sql"].size_bytes == 2048
    assert entries["nightly backup 2025.sql"].full_path == "/app/nightly backup 2025.sql"


def test_parse_ls_symlink_and_device():
    entries = {e.name: e for e in parse_ls_output(GNU_LS_OUTPUT, "/app")}
    assert entries["current"].kind == "file"
    assert entries["current"].full_path == "/app/current"
    assert entries["null"].kind == "file"
    assert entries["null"].size_bytes is None


def test_parse_busybox_ls_at_root():
    entries = parse_ls_output(BUSYBOX_LS_OUTPUT, "/")
    assert [(e.name, e.kind, e.full_path) for e in entries] == [
        ("hospital.sql", "file", "/hospital.sql"),
        ("data", "directory", "/data"),
    ]


def test_parse_search_output_skips_root_and_junk():
    entries = parse_search_output("d /app\n" + SEARCH_OUTPUT + "find: permission denied\n", "/app")
    assert [(e.kind, e.full_path) for e in entries] == [
        ("directory", "/app/config"),
        ("directory", "/app/src/config"),
        ("file", "/app/config/config.yaml"),
        ("file", "/app/src/config.py"),
    ]
    assert entries[3].name == "config.py"


# --- Command builders ---

def test_commands_quote_paths():
    assert scripting.list_command("/my dir/") == "ls -la -- '/my dir/'"
    assert scripting.head_command("/a b.txt", 30) == "head -n 30 -- '/a b.txt'"
    assert scripting.exists_command("/x") == "test -e /x"
    assert "'*conf ig*'" in scripting.search_command("/app", "conf ig", 5, 15)


def test_search_command_bounds():
    command = scripting.search_command("/app", "config", 3, 15)
    assert "-maxdepth 3" in command
    assert command.endswith("head -n 15")
    assert command.index("-type d") < command.index("! -type d")


# --- Container backend ---

def test_container_list_uses_channel():
    channel = FakeChannel({"ls -la": ExecResult(exit_code=0, stdout=BUSYBOX_LS_OUTPUT)})
    fs = ContainerFilesystem(channel, "hospital_db")
    entries = fs.list("/var/lib/postgresql")
    assert channel.commands == [("hospital_db", "ls -la -- /var/lib/postgresql/")]
    assert entries[0].full_path == "/var/lib/postgresql/hospital.sql"


def test_container_list_failure_is_not_accessible():
    channel = FakeChannel({"ls -la": ExecResult(exit_code=2, stderr="ls: /nope/: No such file or directory\n")})
    fs = ContainerFilesystem(channel, "hospital_backend")
    with pytest.raises(NotAccessibleError) as excinfo:
        fs.list("/nope")
    assert "No such file or directory" in excinfo.value.message


def test_container_partial_listing_is_kept():
    """ls exiting non-zero but still printing entries is not a failure."""
    channel = FakeChannel({"ls -la": ExecResult(exit_code=1, stdout=BUSYBOX_LS_OUTPUT, stderr="ls: cannot access 'x'")})
    fs = ContainerFilesystem(channel, "hospital_db")
    assert len(fs.list("/")) == 2


def test_container_channel_failure_propagates():
    class BrokenChannel:
        def run(self, container_name, command):
            raise ChannelFailureError("Container 'gone' not found.")

    fs = ContainerFilesystem(BrokenChannel(), "gone")
    with pytest.raises(ChannelFailureError):
        fs.list("/")


def test_container_search():
    channel = FakeChannel({"find": ExecResult(exit_code=0, stdout=SEARCH_OUTPUT)})
    fs = ContainerFilesystem(channel, "hospital_backend")
    entries = fs.search("/app", "config", 5, 3)
    assert len(entries) == 3
    assert "-maxdepth 5" in channel.commands[0][1]


def test_container_read_head():
    channel = FakeChannel({"head -n": ExecResult(exit_code=0, stdout="a\nb\nc\n")})
    fs = ContainerFilesystem(channel, "hospital_backend")
    assert fs.read_head("/app/x.txt", 2) == ["a", "b"]


def test_container_read_head_missing_file():
    channel = FakeChannel({"head -n": ExecResult(exit_code=1, stderr="head: /app/x.txt: No such file or directory")})
    fs = ContainerFilesystem(channel, "hospital_backend")
    with pytest.raises(PathNotFoundError):
        fs.read_head("/app/x.txt", 30)


def test_container_read_head_other_failure():
    channel = FakeChannel({"head -n": ExecResult(exit_code=126, stderr="sh: head: not found")})
    fs = ContainerFilesystem(channel, "scratch")
    with pytest.raises(ChannelFailureError):
        fs.read_head("/x", 30)


def test_container_exists():
    fs = ContainerFilesystem(FakeChannel(default=ExecResult(exit_code=0)), "c")
    assert fs.exists("/app") is True
    fs = ContainerFilesystem(FakeChannel(default=ExecResult(exit_code=1)), "c")
    assert fs.exists("/app") is False
    fs = ContainerFilesystem(FakeChannel(default=ExecResult(exit_code=127)), "c")
    with pytest.raises(ChannelFailureError):
        fs.exists("/app")


def test_container_stat():
    channel = FakeChannel({"stat -L -c": ExecResult(exit_code=0, stdout="regular file|512\n")})
    info = ContainerFilesystem(channel, "c").stat("/backups/x.sql")
    assert info.kind == "file"
    assert info.size_bytes == 512

    channel = FakeChannel({"stat -L -c": ExecResult(exit_code=0, stdout="directory|4096\n")})
    assert ContainerFilesystem(channel, "c").stat("/backups").kind == "directory"

    channel = FakeChannel({"stat -L -c": ExecResult(exit_code=1, stderr="stat: can't stat '/x': No such file or directory")})
    with pytest.raises(PathNotFoundError):
        ContainerFilesystem(channel, "c").stat("/x")


def test_container_path_helpers():
    fs = ContainerFilesystem(FakeChannel(), "c")
    assert fs.normalize("app//src/../config/") == "/app/config"
    assert fs.parent("/app/config") == "/app"
    assert fs.parent("/app") == "/"
    assert fs.parent("/") == "/"
    assert fs.join("/app", "my file") == "/app/my file"
    assert fs.default_root("/app") == "/"


# --- Local backend ---

@pytest.fixture
def local_tree(tmp_path):
    (tmp_path / "backups").mkdir()
    (tmp_path / "backups" / "nightly.sql").write_text("-- dump\n" * 50)
    (tmp_path / "backups" / "old").mkdir()
    (tmp_path / "backups" / "old" / "backup_2024.sql").write_text("x")
    (tmp_path / "notes.txt").write_text("hello\nworld\n")
    return tmp_path


def test_local_list(local_tree):
    entries = {e.name: e for e in LocalFilesystem().list(str(local_tree))}
    assert set(entries) == {"backups", "notes.txt"}
    assert entries["backups"].kind == "directory"
    assert entries["notes.txt"].size_bytes == 12
    assert entries["notes.txt"].full_path == os.path.join(str(local_tree), "notes.txt")


def test_local_list_missing_directory(tmp_path):
    with pytest.raises(NotAccessibleError):
        LocalFilesystem().list(str(tmp_path / "missing"))


def test_local_search_depth_and_cap(local_tree):
    fs = LocalFilesystem()
    shallow = fs.search(str(local_tree), "backup", max_depth=1, max_results=15)
    assert [e.name for e in shallow] == ["backups"]

    deep = fs.search(str(local_tree), "backup", max_depth=3, max_results=15)
    assert [e.name for e in deep] == ["backups", "backup_2024.sql"]

    capped = fs.search(str(local_tree), "backup", max_depth=3, max_results=1)
    assert len(capped) == 1


def test_local_search_is_case_insensitive(local_tree):
    assert [e.name for e in LocalFilesystem().search(str(local_tree), "NOTES", 2, 15)] == ["notes.txt"]


def test_local_read_head(local_tree):
    fs = LocalFilesystem()
    assert fs.read_head(str(local_tree / "notes.txt"), 1) == ["hello"]
    assert len(fs.read_head(str(local_tree / "backups" / "nightly.sql"), 30)) == 30
    with pytest.raises(PathNotFoundError):
        fs.read_head(str(local_tree / "nope.txt"), 30)


def test_local_exists_and_stat(local_tree):
    fs = LocalFilesystem()
    assert fs.exists(str(local_tree / "notes.txt"))
    assert not fs.exists(str(local_tree / "nope"))
    assert fs.stat(str(local_tree / "backups")).kind == "directory"
    assert fs.stat(str(local_tree / "notes.txt")).size_bytes == 12
    with pytest.raises(PathNotFoundError):
        fs.stat(str(local_tree / "nope"))


def test_local_root_and_parent(local_tree):
    fs = LocalFilesystem(root=str(local_tree))
    assert fs.default_root() == str(local_tree)
    assert fs.parent(str(local_tree / "backups")) == str(local_tree)
    assert fs.is_within(str(local_tree / "backups"), str(local_tree))
    assert not fs.is_within(str(local_tree.parent), str(local_tree))
    assert LocalFilesystem().default_root(str(local_tree)) == local_tree.anchor


def test_backends_implement_filesystem_access():
    assert isinstance(LocalFilesystem(), FilesystemAccess)
    assert isinstance(ContainerFilesystem(FakeChannel(), "c"), FilesystemAccess)


# --- Symlinks ---

def test_parse_ls_directory_links():
    entries = {e.name: e for e in parse_ls_output(LINKED_ROOT_LS_OUTPUT, "/", directory_links={"lib"})}
    assert entries["lib"].kind == "directory"
    assert entries["lib"].full_path == "/lib"
    assert entries["latest.sql"].kind == "file"


def test_container_list_resolves_directory_symlinks():
    channel = FakeChannel({
        "ls -la": ExecResult(exit_code=0, stdout=LINKED_ROOT_LS_OUTPUT),
        "[ -L": ExecResult(exit_code=0, stdout="lib\n"),
    })
    entries = {e.name: e for e in ContainerFilesystem(channel, "hospital_backend").list("/")}
    assert entries["lib"].is_dir
    assert not entries["latest.sql"].is_dir
    assert channel.commands[1][1].startswith("cd / && ")


def test_container_list_without_symlinks_runs_one_command():
    channel = FakeChannel({"ls -la": ExecResult(exit_code=0, stdout=BUSYBOX_LS_OUTPUT)})
    ContainerFilesystem(channel, "hospital_db").list("/")
    assert len(channel.commands) == 1


def test_symlinked_directory_is_entered_not_selected():
    """Opening a link to a directory descends into it in file mode."""
    channel = FakeChannel({
        "ls -la": ExecResult(exit_code=0, stdout=LINKED_ROOT_LS_OUTPUT),
        "[ -L": ExecResult(exit_code=0, stdout="lib\n"),
    })
    fs = ContainerFilesystem(channel, "hospital_backend")
    navigator = Navigator(fs, prompt=ScriptedInput("2", "q"), echo=Output())
    result = navigator.start()
    assert not result.is_selected
    assert navigator.state.current_path == "/lib"
    assert ("hospital_backend", "ls -la -- /lib/") in channel.commands


def test_stat_follows_symlinks():
    assert scripting.stat_command("/lib").startswith("stat -L ")


# --- Search text and roots ---

def test_search_text_is_literal():
    command = scripting.search_command("/backups", "*.sql", 5, 15)
    assert "-iname '*\\*.sql*'" in command
    assert scripting.escape_find_pattern("a[1]?\\") == "a\\[1]\\?\\\\"


def test_local_search_is_literal(local_tree):
    assert LocalFilesystem().search(str(local_tree), "*.sql", 3, 15) == []


def test_search_command_checks_root():
    command = scripting.search_command("/gone", "x", 5, 15)
    assert command.startswith("{ test -d /gone && test -r /gone; }")
    assert "exit 2" in command


def test_container_search_missing_root_is_not_accessible():
    channel = FakeChannel({"find": ExecResult(exit_code=2, stderr="/gone: not a readable directory\n")})
    fs = ContainerFilesystem(channel, "hospital_backend")
    with pytest.raises(NotAccessibleError) as excinfo:
        fs.search("/gone", "x", 5, 15)
    assert "not a readable directory" in excinfo.value.message
