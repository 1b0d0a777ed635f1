# dockbrowse/models/files.py - Pydantic models for filesystem browsing

from pydantic import BaseModel, Field
from typing import Literal, List, Optional

EntryKind = Literal['directory', 'file']
SelectMode = Literal['file', 'folder']


class DirectoryEntry(BaseModel):
    """Represents an entry (file or directory) in a directory listing."""
    name: str = Field(..., description="Base name of the file or directory. Never '.' or '..'.")
    kind: EntryKind = Field(..., description="Type of the entry.")
    size_bytes: Optional[int] = Field(None, ge=0, description="Size in bytes, files only, when the backend reports it.")
    full_path: str = Field(..., description="Absolute path of the entry on the same backend.")

    @property
    def is_dir(self) -> bool:
        return self.kind == 'directory'


class FileStat(BaseModel):
    """Result of a stat call against a backend."""
    path: str
    kind: EntryKind
    size_bytes: Optional[int] = Field(None, ge=0)


class Bookmark(BaseModel):
    """A static, preconfigured shortcut path."""
    label: str = Field(..., description="Text shown in the quick-pick menu.")
    path: str = Field(..., description="Absolute path the bookmark points to.")


class BrowseResult(BaseModel):
    """Outcome of a browse or pick session."""
    status: Literal['selected', 'cancelled']
    path: Optional[str] = Field(None, description="The chosen path when status is 'selected'.")

    @classmethod
    def selected(cls, path: str) -> "BrowseResult":
        return cls(status='selected', path=path)

    @classmethod
    def cancelled(cls) -> "BrowseResult":
        return cls(status='cancelled')

    @property
    def is_selected(self) -> bool:
        return self.status == 'selected'


class HistoryDocument(BaseModel):
    """On-disk layout of the recent-path history file."""
    version: int = 1
    categories: dict[str, List[str]] = Field(default_factory=dict, description="Category -> paths, most recent first.")
