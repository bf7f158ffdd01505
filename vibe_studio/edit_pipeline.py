"""
Vibe Coder Edit Pipeline

One agent turn: prompt the provider with the active file and the user's
request, parse the reply into a whole-file replacement and commit it.
"""

import logging
from typing import Callable, Optional

from .ai_client import Provider, ProviderError
from .models import EditResult, PipelineState, PipelineStatus
from .prompts import build_edit_prompt
from .response_parser import EDIT, DecodeFailure, ShapeValidationFailure, parse_response

logger = logging.getLogger(__name__)

NO_ACTIVE_FILE = "No active file content available."
EMPTY_PROMPT = "Enter a task prompt first."
GENERATING = "Generating edits..."
APPLY_FAILED = "Unable to apply edits. Try refining the prompt."
NO_APPLICABLE_EDIT = "Agent returned no applicable edit."


class EditPipeline:
    """
    Runs vibe tasks against the active file.

    The provider is called at most once per run_edit_task() and never retried.
    Callers keep one task in flight at a time (see is_running); the pipeline
    does not queue or cancel.
    """

    def __init__(
        self,
        provider: Provider,
        on_content_replaced: Callable[[str, str], None],
        on_status_changed: Optional[Callable[[PipelineStatus], None]] = None,
        credential_name: str = "GEMINI_API_KEY",
    ):
        self.provider = provider
        self.on_content_replaced = on_content_replaced
        self.on_status_changed = on_status_changed
        self.credential_name = credential_name
        self.status = PipelineStatus.idle()

    @property
    def is_running(self) -> bool:
        return self.status.state == PipelineState.RUNNING

    def _set_status(self, status: PipelineStatus) -> None:
        self.status = status
        if self.on_status_changed:
            self.on_status_changed(status)

    async def run_edit_task(
        self,
        active_file_name: Optional[str],
        active_file_content: Optional[str],
        user_prompt: str,
    ) -> Optional[EditResult]:
        """
        Ask the agent to edit the active file and apply its answer.

        Args:
            active_file_name: Name of the file open in the editor
            active_file_content: Its current contents
            user_prompt: The task to perform

        Returns:
            The committed EditResult, or None if nothing was applied
        """
        if not active_file_name or not active_file_content:
            self._set_status(PipelineStatus.failed(NO_ACTIVE_FILE))
            return None

        if not user_prompt or not user_prompt.strip():
            self._set_status(PipelineStatus.failed(EMPTY_PROMPT))
            return None

        self._set_status(PipelineStatus.running(GENERATING))
        prompt = build_edit_prompt(user_prompt, active_file_name, active_file_content)

        try:
            raw = await self.provider.generate(prompt)
            result = parse_response(raw, EDIT)
        except ProviderError as e:
            if e.is_missing_credential:
                self._set_status(PipelineStatus.failed(f"Set {self.credential_name} to use Vibe Coder."))
            else:
                logger.error(f"Vibe task provider call failed: {e}")
                self._set_status(PipelineStatus.failed(APPLY_FAILED))
            return None
        except ShapeValidationFailure as e:
            logger.warning(f"Vibe task reply had no usable edit: {e}")
            self._set_status(PipelineStatus.failed(NO_APPLICABLE_EDIT))
            return None
        except DecodeFailure as e:
            logger.warning(f"Vibe task reply could not be decoded: {e}")
            self._set_status(PipelineStatus.failed(APPLY_FAILED))
            return None
        except Exception as e:
            logger.error(f"Unexpected error in vibe task: {e}", exc_info=True)
            self._set_status(PipelineStatus.failed(APPLY_FAILED))
            return None

        if not result.updated_content:
            self._set_status(PipelineStatus.failed(NO_APPLICABLE_EDIT))
            return None

        self.on_content_replaced(result.updated_content, active_file_name)

        if result.summary:
            message = f"{result.summary} (updated {active_file_name})"
        else:
            message = f"Applied update to {active_file_name}."
        self._set_status(PipelineStatus.succeeded(message))
        logger.info(f"Vibe task applied to {active_file_name}")
        return result
