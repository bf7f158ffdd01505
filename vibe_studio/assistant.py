"""
AI Assistant Panel

Wires the explain and edit pipelines to the workspace and switches between
Code Buddy (teacher), Reviewer and Vibe Coder modes. Only one of the two
pipelines is live at a time: explanations are off in vibe mode and vibe
tasks are only accepted in vibe mode.
"""

import logging
from typing import Optional

from .ai_client import Provider
from .edit_pipeline import EditPipeline
from .explain_pipeline import ExplainPipeline
from .models import AssistantMode, AssistantStateResponse, EditResult
from .workspace import WorkspaceSession

logger = logging.getLogger(__name__)


class AssistantBusy(RuntimeError):
    """A vibe task is already running."""


class WrongMode(RuntimeError):
    """The requested action is not available in the current mode."""


class AssistantPanel:
    def __init__(
        self,
        provider: Provider,
        workspace: WorkspaceSession,
        debounce_seconds: float = 1.5,
        credential_name: str = "GEMINI_API_KEY",
    ):
        self.workspace = workspace
        self.explanation = ""
        self.explain = ExplainPipeline(
            provider,
            on_explanation_ready=self._set_explanation,
            debounce_seconds=debounce_seconds,
            credential_name=credential_name,
        )
        self.edit = EditPipeline(
            provider,
            on_content_replaced=workspace.replace_file_content,
            credential_name=credential_name,
        )
        workspace.on_active_changed = self.explain.observe

    @property
    def mode(self) -> AssistantMode:
        return self.explain.mode

    def _set_explanation(self, text: str) -> None:
        self.explanation = text

    def set_mode(self, mode: AssistantMode) -> None:
        logger.info(f"Assistant mode: {self.mode.value} -> {mode.value}")
        self.explain.set_mode(mode)

    async def run_vibe_task(self, prompt: str) -> Optional[EditResult]:
        """
        Run one Vibe Coder task on the active file.

        Raises:
            WrongMode: If the panel is not in vibe mode
            AssistantBusy: If a task is already running
        """
        if self.mode != AssistantMode.VIBE:
            raise WrongMode("Switch to Vibe Coder mode to run tasks.")
        if self.edit.is_running:
            raise AssistantBusy("A vibe task is already running.")

        return await self.edit.run_edit_task(
            self.workspace.active_file,
            self.workspace.active_content,
            prompt,
        )

    def state(self) -> AssistantStateResponse:
        return AssistantStateResponse(
            mode=self.mode,
            explanation=self.explanation,
            explain_status=self.explain.status,
            edit_status=self.edit.status,
            busy=self.edit.is_running,
        )

    async def close(self) -> None:
        self.explain.cancel()
        await self.explain.flush()
