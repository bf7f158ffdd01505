"""
Vibe Studio Models

Pydantic models for workspace state, assistant results and API
request/response validation.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr


# Workspace models

class NodeKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class FileSystemNode(BaseModel):
    """A file or folder in the explorer tree."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Path-derived key: 'folder:<path>' or 'file:<path>'")
    name: str = Field(..., description="Entry name")
    kind: NodeKind = Field(..., alias="type", description="'file' or 'folder'")
    children: Optional[List["FileSystemNode"]] = Field(None, description="Ordered children (folders only)")
    expanded: Optional[bool] = Field(None, alias="isOpen", description="Explorer expansion state (folders only)")

    @classmethod
    def folder(cls, path: str, name: str, children: List["FileSystemNode"]) -> "FileSystemNode":
        return cls(id=f"folder:{path}", name=name, kind=NodeKind.FOLDER, children=children, expanded=False)

    @classmethod
    def file(cls, path: str, name: str) -> "FileSystemNode":
        return cls(id=f"file:{path}", name=name, kind=NodeKind.FILE)

    @property
    def is_folder(self) -> bool:
        return self.kind == NodeKind.FOLDER


class FolderData(BaseModel):
    """Result of one folder ingestion: the tree plus a name-keyed content map."""
    model_config = ConfigDict(populate_by_name=True)

    folder_name: str = Field("", alias="folderName", description="Name of the opened folder")
    children: List[FileSystemNode] = Field(default_factory=list, description="Top-level nodes")
    file_contents: Dict[str, str] = Field(default_factory=dict, alias="fileContents", description="File name -> text")


# Assistant models

class AssistantMode(str, Enum):
    TEACHER = "teacher"
    REVIEWER = "reviewer"
    VIBE = "vibe"


class ExplanationEntry(BaseModel):
    """One function explained by the assistant."""
    model_config = ConfigDict(populate_by_name=True)

    function_name: StrictStr = Field(..., alias="functionName", min_length=1)
    explanation: StrictStr = Field(..., min_length=1)


class EditResult(BaseModel):
    """A whole-file replacement proposed by the agent."""
    model_config = ConfigDict(populate_by_name=True)

    summary: Optional[StrictStr] = Field(None, description="Short description of changes")
    updated_content: StrictStr = Field(..., alias="updatedContent", description="Full updated file content")


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineStatus(BaseModel):
    """Current state of a pipeline, always displayable as-is."""
    state: PipelineState = PipelineState.IDLE
    message: str = "Ready"

    @classmethod
    def idle(cls) -> "PipelineStatus":
        return cls()

    @classmethod
    def running(cls, message: str) -> "PipelineStatus":
        return cls(state=PipelineState.RUNNING, message=message)

    @classmethod
    def succeeded(cls, message: str) -> "PipelineStatus":
        return cls(state=PipelineState.SUCCEEDED, message=message)

    @classmethod
    def failed(cls, message: str) -> "PipelineStatus":
        return cls(state=PipelineState.FAILED, message=message)


# Editor models

class SelectionBounds(BaseModel):
    """Selection offsets reported by the editor textarea."""
    start: Optional[int] = Field(None, ge=0, description="selectionStart")
    end: Optional[int] = Field(None, ge=0, description="selectionEnd")


# Workspace API models

class OpenFolderRequest(BaseModel):
    """Request to open a folder; no path means the picker was dismissed."""
    path: Optional[str] = Field(None, description="Folder path, relative to the workspace root")


class OpenFileRequest(BaseModel):
    """A single file picked in the browser."""
    name: str = Field(..., description="File name")
    content: str = Field("", description="File contents")


class SelectFileRequest(BaseModel):
    name: str = Field(..., description="Name of the file to activate")


class ToggleFolderRequest(BaseModel):
    id: str = Field(..., description="Folder node id")


class WorkspaceResponse(BaseModel):
    """Explorer state for the current workspace session."""
    folder_name: str = Field("", description="Name of the opened folder")
    children: List[FileSystemNode] = Field(default_factory=list, description="Explorer tree")
    active_file: Optional[str] = Field(None, description="Active file name")


class FileContentResponse(BaseModel):
    name: str = Field(..., description="File name")
    content: str = Field(..., description="File contents as a string")


class UpdateContentRequest(BaseModel):
    content: str = Field(..., description="Editor contents after the change")


class SelectionResponse(BaseModel):
    text: str = Field("", description="Selected text")


# Assistant API models

class ModeRequest(BaseModel):
    mode: AssistantMode = Field(..., description="'teacher', 'reviewer' or 'vibe'")


class VibeTaskRequest(BaseModel):
    prompt: str = Field(..., description="What the agent should do to the active file")


class VibeTaskResponse(BaseModel):
    status: PipelineStatus = Field(..., description="Terminal status of the task")
    name: Optional[str] = Field(None, description="Active file name")
    content: str = Field("", description="Active file contents after the task")


class AssistantStateResponse(BaseModel):
    mode: AssistantMode
    explanation: str = Field("", description="Latest explanation text")
    explain_status: PipelineStatus
    edit_status: PipelineStatus
    busy: bool = Field(False, description="True while a vibe task is running")


# Error response model

class ErrorResponse(BaseModel):
    """Error response."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
