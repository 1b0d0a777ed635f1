# dockbrowse/core/scripting.py - Helper functions for building container shell commands

import re
import shlex

# Commands are kept to what both GNU coreutils and busybox images understand,
# since the database image is alpine based.

FIND_PATTERN_SPECIALS = re.compile(r'([\\*?\[])')


def list_command(path: str) -> str:
    return f"ls -la -- {shlex.quote(path)}"


def directory_links_command(path: str) -> str:
    """Prints the name of every symlink in `path` whose target is a directory."""
    return (
        f"cd {shlex.quote(path)} && for f in * .*; do "
        "if [ -L \"$f\" ] && [ -d \"$f\" ]; then printf '%s\\n' \"$f\"; fi; done"
    )


def escape_find_pattern(text: str) -> str:
    return FIND_PATTERN_SPECIALS.sub(r'\\\1', text)


def search_command(path: str, text: str, max_depth: int, max_results: int) -> str:
    """
    Depth-bounded, case-insensitive name search for the literal `text`.
    Directories are emitted before files, each line prefixed with 'd ' or
    'f ', capped at max_results. Exits 2 when `path` is not a readable
    directory.
    """
    quoted_path = shlex.quote(path)
    pattern = shlex.quote(f"*{escape_find_pattern(text)}*")
    find_dirs = f"find {quoted_path} -mindepth 1 -maxdepth {int(max_depth)} -type d -iname {pattern}"
    find_files = f"find {quoted_path} -mindepth 1 -maxdepth {int(max_depth)} ! -type d -iname {pattern}"
    return (
        f"{{ test -d {quoted_path} && test -r {quoted_path}; }}"
        f" || {{ echo {shlex.quote(f'{path}: not a readable directory')} >&2; exit 2; }};"
        f" {{ {find_dirs} | sed 's|^|d |'; {find_files} | sed 's|^|f |'; }} 2>/dev/null"
        f" | head -n {int(max_results)}"
    )


def head_command(path: str, max_lines: int) -> str:
    return f"head -n {int(max_lines)} -- {shlex.quote(path)}"


def exists_command(path: str) -> str:
    return f"test -e {shlex.quote(path)}"


def stat_command(path: str) -> str:
    # -L reports what a symlink points to
    return f"stat -L -c '%F|%s' -- {shlex.quote(path)}"
