# dockbrowse/main.py - Command line entry point for the container file picker

import argparse
import logging
import sys
from typing import Callable, Optional

from .core.config import BrowserSettings, HOST_IDENTITY, LOG_LEVEL, category_for
from .core.docker_runner import ContainerExecChannel
from .core.errors import BrowserError, ChannelFailureError
from .core.filesystem import ContainerFilesystem, FilesystemAccess, LocalFilesystem
from .core.history import BookmarkSet, HistoryStore
from .core.picker import PathPicker
from .models.execution import sanitize_container_name

logger = logging.getLogger(__name__)

EXIT_SELECTED = 0
EXIT_CANCELLED = 1
EXIT_UNAVAILABLE = 2


# --- Logging Setup ---
def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL.upper(), logging.WARNING)
    # stderr keeps log lines away from the selected path printed on stdout
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


# Menus and prompts go to stderr so stdout carries only the selected path
def stderr_echo(text: str) -> None:
    print(text, file=sys.stderr)


def stderr_prompt(text: str) -> str:
    sys.stderr.write(text)
    sys.stderr.flush()
    return input()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dockbrowse",
        description="Pick a file or folder on the host or inside a running container.",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--container", "-c", help="Browse inside this running container instead of the host.")
    target.add_argument("--choose-container", action="store_true", help="Choose the container from the running ones.")
    parser.add_argument("--folder", action="store_true", help="Select a folder instead of a file.")
    parser.add_argument("--filter", dest="name_filter", help="Only show files matching this glob or substring.")
    parser.add_argument("--start", help="Directory to start browsing from.")
    parser.add_argument("--history-file", help="Where recent selections are stored.")
    parser.add_argument("--bookmarks-file", help="JSON file with extra bookmarks per target.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser


def choose_container(channel: ContainerExecChannel, prompt: Callable[[str], str] = input,
                     echo: Callable[[str], None] = print) -> Optional[str]:
    names = channel.list_running_containers()
    if not names:
        echo("No running containers.")
        return None
    echo("Running containers:")
    for i, name in enumerate(names, start=1):
        echo(f"  {i:>3}) {name}")
    try:
        choice = prompt("Container number (q to cancel): ").strip()
    except EOFError:
        return None
    if choice.isdigit() and 1 <= int(choice) <= len(names):
        return names[int(choice) - 1]
    return None


def build_settings(args: argparse.Namespace) -> BrowserSettings:
    overrides = {}
    if args.history_file:
        overrides["history_file"] = args.history_file
    if args.bookmarks_file:
        overrides["bookmarks_file"] = args.bookmarks_file
    return BrowserSettings(**overrides)


def run(args: argparse.Namespace, channel: Optional[ContainerExecChannel] = None,
        prompt: Callable[[str], str] = input, echo: Callable[[str], None] = print) -> int:
    settings = build_settings(args)

    container = args.container
    if args.choose_container or container:
        channel = channel or ContainerExecChannel(timeout=settings.exec_timeout)
    if args.choose_container:
        try:
            container = choose_container(channel, prompt=prompt, echo=echo)
        except ChannelFailureError as e:
            logger.error(f"Cannot list containers: {e.message}")
            echo(f"Error: {e.message}")
            return EXIT_UNAVAILABLE
        if not container:
            return EXIT_CANCELLED

    fs: FilesystemAccess
    if container:
        fs = ContainerFilesystem(channel, container)
        identity = container
        category = category_for(sanitize_container_name(container))
    else:
        fs = LocalFilesystem(root=settings.local_root)
        identity = HOST_IDENTITY
        category = category_for(None)

    if args.start:
        try:
            if not fs.exists(args.start):
                logger.warning(f"Start path '{args.start}' does not exist on {identity}.")
        except BrowserError as e:
            logger.error(f"Cannot reach {identity}: {e.message}")
            echo(f"Error: {e.message}")
            return EXIT_UNAVAILABLE

    picker = PathPicker(
        fs,
        HistoryStore(settings.history_file, max_entries=settings.max_recent),
        BookmarkSet.from_file(settings.bookmarks_file),
        category=category,
        identity=identity,
        prompt=prompt,
        echo=echo,
        page_size=settings.page_size,
        search_max_depth=settings.search_max_depth,
        search_max_results=settings.search_max_results,
        preview_lines=settings.preview_lines,
    )
    result = picker.pick(
        select_mode='folder' if args.folder else 'file',
        name_filter=args.name_filter,
        start_path=args.start,
    )
    if not result.is_selected:
        return EXIT_CANCELLED
    sys.stdout.write(result.path + "\n")
    return EXIT_SELECTED


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return run(args, prompt=stderr_prompt, echo=stderr_echo)
    except KeyboardInterrupt:
        stderr_echo("")
        return EXIT_CANCELLED


# --- Main execution block ---
if __name__ == "__main__":
    sys.exit(main())
