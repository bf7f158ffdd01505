"""
Vibe Studio Backend

FastAPI application behind the browser editor: folder ingestion, editor
state, the AI assistant panel and the terminal bridge.
"""

import asyncio
import logging
import os
from typing import Optional

from dotenv import load_dotenv

# Load .env before reading configuration
load_dotenv()

import ptyprocess
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .ai_client import GeminiProvider, Provider
from .assistant import AssistantBusy, AssistantPanel, WrongMode
from .models import (
    AssistantStateResponse,
    ErrorResponse,
    FileContentResponse,
    FolderData,
    ModeRequest,
    OpenFileRequest,
    OpenFolderRequest,
    SelectFileRequest,
    SelectionBounds,
    SelectionResponse,
    ToggleFolderRequest,
    UpdateContentRequest,
    VibeTaskRequest,
    VibeTaskResponse,
    WorkspaceResponse,
)
from .selection import SelectionTracker
from .tree_builder import DirectoryReadError, LocalDirectoryHandle
from .workspace import WorkspaceSession

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Vibe Studio",
    description="Browser code editor backend with an AI assistant",
    version="1.0.0",
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Session singletons, created on startup
provider: Optional[Provider] = None
workspace: Optional[WorkspaceSession] = None
assistant: Optional[AssistantPanel] = None
selection_tracker: Optional[SelectionTracker] = None
current_selection = ""


def create_provider() -> Provider:
    """Build the AI provider from configuration."""
    return GeminiProvider(
        api_key=config.GEMINI_API_KEY,
        model=config.GEMINI_MODEL,
        base_url=config.GEMINI_BASE_URL,
        credential_name=config.CREDENTIAL_NAME,
        timeout=config.AI_TIMEOUT,
    )


def _remember_selection(text: str) -> None:
    global current_selection
    current_selection = text


@app.on_event("startup")
async def startup_event():
    """Initialize the workspace session and assistant on startup."""
    global provider, workspace, assistant, selection_tracker, current_selection
    provider = create_provider()
    workspace = WorkspaceSession()
    assistant = AssistantPanel(
        provider,
        workspace,
        debounce_seconds=config.EXPLAIN_DEBOUNCE_SECONDS,
        credential_name=config.CREDENTIAL_NAME,
    )
    selection_tracker = SelectionTracker(on_selection_changed=_remember_selection)
    current_selection = ""
    logger.info(f"Vibe Studio starting on {config.HOST}:{config.PORT}")
    logger.info(f"Workspace root: {config.get_workspace_root()}")


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on shutdown."""
    if assistant:
        await assistant.close()
    close = getattr(provider, "close", None)
    if close:
        await close()
    logger.info("Vibe Studio shut down")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Vibe Studio",
        "workspace": str(config.get_workspace_root()),
    }


# ============================================================================
# Workspace Endpoints
# ============================================================================

def _folder_data() -> FolderData:
    return FolderData(
        folder_name=workspace.folder_name,
        children=workspace.tree,
        file_contents=workspace.file_contents,
    )


@app.post("/api/workspace/open_folder", response_model=FolderData)
async def open_folder(request: OpenFolderRequest):
    """
    Open a folder under the workspace root and ingest it.
    A request without a path is a dismissed picker and changes nothing.
    """
    if request.path is None:
        await workspace.open_folder(None)
        return _folder_data()

    try:
        folder_path = config.resolve_path(request.path)
    except ValueError as e:
        raise HTTPException(status_code=403, detail=str(e))

    if not folder_path.exists():
        raise HTTPException(status_code=404, detail=f"Folder not found: {request.path}")
    if not folder_path.is_dir():
        raise HTTPException(status_code=400, detail=f"Path is not a folder: {request.path}")

    try:
        await workspace.open_folder(LocalDirectoryHandle(folder_path))
    except DirectoryReadError as e:
        logger.error(f"Failed to open folder {folder_path}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return _folder_data()


@app.post("/api/workspace/open_file", response_model=FileContentResponse)
async def open_file(request: OpenFileRequest):
    """Open a single file picked in the browser."""
    workspace.open_file(request.name, request.content)
    return FileContentResponse(name=request.name, content=request.content)


@app.get("/api/workspace", response_model=WorkspaceResponse)
async def get_workspace():
    """Explorer tree and active file."""
    return workspace.snapshot()


@app.post("/api/workspace/select", response_model=FileContentResponse)
async def select_file(request: SelectFileRequest):
    """Make a workspace file the active editor file."""
    try:
        content = workspace.select_file(request.name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"File not found: {request.name}")
    return FileContentResponse(name=request.name, content=content)


@app.post("/api/workspace/toggle")
async def toggle_folder(request: ToggleFolderRequest):
    """Expand or collapse a folder in the explorer."""
    try:
        expanded = workspace.toggle_folder(request.id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Folder not found: {request.id}")
    return {"id": request.id, "isOpen": expanded}


# ============================================================================
# Editor Endpoints
# ============================================================================

@app.put("/api/editor/content", response_model=FileContentResponse)
async def update_content(request: UpdateContentRequest):
    """Record an editor change; the assistant re-explains once typing stops."""
    try:
        workspace.update_active_content(request.content)
    except LookupError:
        raise HTTPException(status_code=409, detail="No active file")
    return FileContentResponse(name=workspace.active_file, content=workspace.active_content)


@app.post("/api/editor/selection", response_model=SelectionResponse)
async def update_selection(bounds: SelectionBounds):
    """Derive the selected text from the editor's selection bounds."""
    text = selection_tracker.update(workspace.active_content, bounds)
    return SelectionResponse(text=text)


@app.get("/api/editor/selection", response_model=SelectionResponse)
async def get_selection():
    return SelectionResponse(text=current_selection)


# ============================================================================
# Assistant Endpoints
# ============================================================================

@app.get("/api/assistant", response_model=AssistantStateResponse)
async def assistant_state():
    """Mode, latest explanation and pipeline statuses."""
    return assistant.state()


@app.post("/api/assistant/mode", response_model=AssistantStateResponse)
async def set_assistant_mode(request: ModeRequest):
    """Switch between Code Buddy, Reviewer and Vibe Coder."""
    assistant.set_mode(request.mode)
    return assistant.state()


@app.post("/api/assistant/vibe", response_model=VibeTaskResponse)
async def run_vibe_task(request: VibeTaskRequest):
    """Ask Vibe Coder to edit the active file."""
    try:
        await assistant.run_vibe_task(request.prompt)
    except (WrongMode, AssistantBusy) as e:
        raise HTTPException(status_code=409, detail=str(e))

    return VibeTaskResponse(
        status=assistant.edit.status,
        name=workspace.active_file,
        content=workspace.active_content,
    )


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom handler for HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.detail,
            detail=None,
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Catch-all handler for unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc),
        ).model_dump(),
    )


# ============================================================================
# Terminal WebSocket Endpoint
# ============================================================================

@app.websocket("/ws/terminal")
async def terminal_websocket(websocket: WebSocket):
    """
    WebSocket endpoint for the terminal panel.
    Spawns the user's shell in a PTY and streams I/O both ways.
    """
    await websocket.accept()
    logger.info("Terminal WebSocket connection accepted")

    shell = os.environ.get("SHELL", "/bin/bash")
    process = None

    try:
        process = ptyprocess.PtyProcess.spawn(
            [shell],
            cwd=str(config.get_workspace_root()),
            env=os.environ.copy(),
        )
        logger.info(f"Spawned shell: {shell} (PID: {process.pid})")

        async def read_from_pty():
            while process.isalive():
                try:
                    output = await asyncio.to_thread(process.read, 1024)
                except EOFError:
                    break
                if output:
                    await websocket.send_json({
                        "type": "output",
                        "data": output.decode("utf-8", errors="replace"),
                    })

        async def read_from_websocket():
            try:
                while True:
                    message = await websocket.receive_json()
                    if message.get("type") == "input":
                        process.write(message.get("data", "").encode("utf-8"))
            except WebSocketDisconnect:
                logger.info("Terminal WebSocket disconnected")

        pty_task = asyncio.create_task(read_from_pty())
        ws_task = asyncio.create_task(read_from_websocket())
        done, pending = await asyncio.wait({pty_task, ws_task}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            task.result()

    except WebSocketDisconnect:
        logger.info("Terminal WebSocket disconnected")
    except Exception as e:
        logger.error(f"Terminal WebSocket error: {e}")
        try:
            await websocket.send_json({
                "type": "error",
                "data": f"Terminal error: {e}",
            })
        except (RuntimeError, WebSocketDisconnect):
            logger.debug("Terminal socket already closed; error not delivered")
    finally:
        if process is not None and process.isalive():
            process.terminate(force=True)
            logger.info(f"Terminated shell process (PID: {process.pid})")
        try:
            await websocket.close()
        except RuntimeError:
            logger.debug("Terminal socket already closed")
        logger.info("Terminal WebSocket connection closed")


# ============================================================================
# Development Server
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "vibe_studio.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=True,
        log_level="info",
    )
