"""
Folder Ingestion

Walks a directory handle into an explorer tree plus a name-keyed content map.
The walk only depends on the small DirectoryHandle capability, so local
folders and in-memory fakes go through the same code.
"""

import asyncio
import locale
import logging
from pathlib import Path
from typing import Dict, List, Protocol, Tuple

from .models import FileSystemNode, FolderData

logger = logging.getLogger(__name__)


class PickerCancelled(Exception):
    """The user dismissed the folder picker."""


class DirectoryReadError(RuntimeError):
    """A directory could not be enumerated; the whole build is abandoned."""


class DirectoryEntry(Protocol):
    name: str
    is_directory: bool

    async def read_text(self) -> str: ...

    def open_directory(self) -> "DirectoryHandle": ...


class DirectoryHandle(Protocol):
    name: str

    async def list_entries(self) -> List[DirectoryEntry]: ...


class LocalEntry:
    """A file or subdirectory on the local disk."""

    def __init__(self, path: Path, is_directory: bool):
        self.path = path
        self.name = path.name
        self.is_directory = is_directory

    async def read_text(self) -> str:
        return await asyncio.to_thread(self.path.read_text, encoding="utf-8")

    def open_directory(self) -> "LocalDirectoryHandle":
        return LocalDirectoryHandle(self.path)


class LocalDirectoryHandle:
    """DirectoryHandle backed by a local folder. Symlinks are skipped."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.name = self.path.name

    def _scan(self) -> List[LocalEntry]:
        entries = []
        for child in self.path.iterdir():
            if child.is_symlink():
                logger.debug(f"Skipping symlink: {child}")
                continue
            entries.append(LocalEntry(child, child.is_dir()))
        return entries

    async def list_entries(self) -> List[LocalEntry]:
        return await asyncio.to_thread(self._scan)


def sort_key(node: FileSystemNode) -> Tuple[bool, str, str]:
    """Folders first, then names in locale order, case-insensitively."""
    return (not node.is_folder, locale.strxfrm(node.name.casefold()), node.name)


async def build_folder_data(handle: DirectoryHandle) -> FolderData:
    """
    Build the explorer tree and content map for a directory handle.

    Args:
        handle: Root directory capability

    Returns:
        FolderData with the sorted tree and the file contents keyed by name

    Raises:
        DirectoryReadError: If any directory in the tree cannot be listed
    """
    file_contents: Dict[str, str] = {}
    children = await _read_directory(handle, "", file_contents)
    logger.info(f"Built tree for '{handle.name}': {len(file_contents)} files")
    return FolderData(folder_name=handle.name, children=children, file_contents=file_contents)


async def _read_directory(
    handle: DirectoryHandle,
    parent_path: str,
    file_contents: Dict[str, str],
) -> List[FileSystemNode]:
    try:
        entries = await handle.list_entries()
    except Exception as e:
        logger.error(f"Could not list directory '{parent_path or handle.name}': {e}")
        raise DirectoryReadError(f"Unable to read directory '{parent_path or handle.name}': {e}") from e

    nodes: List[FileSystemNode] = []
    for entry in entries:
        entry_path = f"{parent_path}/{entry.name}" if parent_path else entry.name

        if entry.is_directory:
            sub_children = await _read_directory(entry.open_directory(), entry_path, file_contents)
            nodes.append(FileSystemNode.folder(entry_path, entry.name, sub_children))
            continue

        try:
            file_contents[entry.name] = await entry.read_text()
        except Exception as e:
            # Unreadable files still show up, with empty content
            logger.warning(f"Could not read '{entry_path}': {e}")
            file_contents[entry.name] = ""

        nodes.append(FileSystemNode.file(entry_path, entry.name))

    nodes.sort(key=sort_key)
    return nodes
