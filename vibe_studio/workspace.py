"""
Workspace Session

In-memory state for one opened folder and its active file. The tree and the
content map are replaced together on every successful folder open and are
never written back to disk.
"""

import logging
from typing import Callable, Dict, List, Optional

from .models import FileSystemNode, WorkspaceResponse
from .tree_builder import DirectoryHandle, build_folder_data

logger = logging.getLogger(__name__)


class WorkspaceSession:
    """Owns the explorer tree, the file contents and the active file."""

    def __init__(self, on_active_changed: Optional[Callable[[str, str], None]] = None):
        """
        Args:
            on_active_changed: Called with (content, file_name) whenever the
                active file or its content changes
        """
        self.folder_name: str = ""
        self.tree: List[FileSystemNode] = []
        self.file_contents: Dict[str, str] = {}
        self.active_file: Optional[str] = None
        self.on_active_changed = on_active_changed

    @property
    def active_content(self) -> str:
        if self.active_file is None:
            return ""
        return self.file_contents.get(self.active_file, "")

    def _notify(self) -> None:
        if self.on_active_changed and self.active_file is not None:
            self.on_active_changed(self.active_content, self.active_file)

    async def open_folder(self, handle: Optional[DirectoryHandle]) -> bool:
        """
        Replace the workspace with the folder behind `handle`.

        A None handle means the picker was dismissed: nothing changes.
        Build errors propagate and leave the previous workspace in place.

        Returns:
            True if the workspace was replaced
        """
        if handle is None:
            logger.debug("Folder picker dismissed; keeping current workspace")
            return False

        data = await build_folder_data(handle)

        self.folder_name = data.folder_name
        self.tree = data.children
        self.file_contents = data.file_contents
        self.active_file = None
        logger.info(f"Opened folder '{self.folder_name}' ({len(self.file_contents)} files)")
        return True

    def open_file(self, name: str, content: str) -> None:
        """Replace the workspace with a single picked file and make it active."""
        self.folder_name = ""
        self.tree = [FileSystemNode.file(name, name)]
        self.file_contents = {name: content}
        self.active_file = name
        logger.info(f"Opened file: {name}")
        self._notify()

    def select_file(self, name: str) -> str:
        """
        Make a workspace file active.

        Raises:
            KeyError: If the file is not part of the workspace
        """
        if name not in self.file_contents:
            raise KeyError(name)
        self.active_file = name
        self._notify()
        return self.file_contents[name]

    def toggle_folder(self, node_id: str) -> bool:
        """
        Flip a folder's expanded flag.

        Returns:
            The new expanded state

        Raises:
            KeyError: If no folder has that id
        """
        node = self._find_folder(self.tree, node_id)
        if node is None:
            raise KeyError(node_id)
        node.expanded = not node.expanded
        return node.expanded

    def _find_folder(self, nodes: List[FileSystemNode], node_id: str) -> Optional[FileSystemNode]:
        for node in nodes:
            if not node.is_folder:
                continue
            if node.id == node_id:
                return node
            found = self._find_folder(node.children or [], node_id)
            if found is not None:
                return found
        return None

    def update_active_content(self, content: str) -> None:
        """
        Record an edit to the active file.

        Raises:
            LookupError: If no file is active
        """
        if self.active_file is None:
            raise LookupError("No active file")
        self.file_contents[self.active_file] = content
        self._notify()

    def replace_file_content(self, content: str, name: str) -> None:
        """
        Commit target for agent edits: full overwrite of the named file.

        The name is the file the task started on, which may no longer be the
        active one. Files dropped by a workspace swap are left alone.
        """
        if name not in self.file_contents:
            logger.warning(f"Discarding edit for {name}: no longer in the workspace")
            return
        self.file_contents[name] = content
        logger.info(f"Replaced contents of {name} ({len(content)} chars)")
        if name == self.active_file:
            self._notify()

    def snapshot(self) -> WorkspaceResponse:
        return WorkspaceResponse(
            folder_name=self.folder_name,
            children=self.tree,
            active_file=self.active_file,
        )
