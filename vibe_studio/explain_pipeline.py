"""
Code Buddy / Reviewer Explain Pipeline

Explains the functions of the active file once the user stops typing.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Set, Tuple

from .ai_client import Provider, ProviderError
from .models import AssistantMode, ExplanationEntry, PipelineStatus
from .prompts import build_explain_prompt
from .response_parser import EXPLANATIONS, MalformedResponse, parse_response

logger = logging.getLogger(__name__)

ANALYZING = "Analyzing code..."
NO_FUNCTIONS = "No functions found for analysis."
PARSE_FAILED = "Unable to parse AI response. Try editing code or switching mode."


def render_explanations(entries: List[ExplanationEntry]) -> str:
    if not entries:
        return NO_FUNCTIONS
    return "\n".join(f"{entry.function_name}: {entry.explanation}" for entry in entries)


class ExplainPipeline:
    """
    Debounced explanation of the observed code.

    Each observe() cancels the pending timer and starts a new one, so a burst
    of edits yields one analysis using the latest code. Nothing runs in vibe
    mode. A timer that already fired is not cancelled: its provider call
    finishes and the last one to resolve wins the display.
    """

    def __init__(
        self,
        provider: Provider,
        on_explanation_ready: Callable[[str], None],
        on_status_changed: Optional[Callable[[PipelineStatus], None]] = None,
        mode: AssistantMode = AssistantMode.TEACHER,
        debounce_seconds: float = 1.5,
        credential_name: str = "GEMINI_API_KEY",
    ):
        self.provider = provider
        self.on_explanation_ready = on_explanation_ready
        self.on_status_changed = on_status_changed
        self.mode = mode
        self.debounce_seconds = debounce_seconds
        self.credential_name = credential_name
        self.status = PipelineStatus.idle()

        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self._last_observed: Optional[Tuple[str, str]] = None

    def _set_status(self, status: PipelineStatus) -> None:
        self.status = status
        if self.on_status_changed:
            self.on_status_changed(status)

    @property
    def has_pending(self) -> bool:
        return self._timer is not None

    def observe(self, code: str, file_name: str) -> None:
        """Record a code/file change and (re)start the debounce timer."""
        self._last_observed = (code, file_name)
        if self.mode == AssistantMode.VIBE:
            return
        self._schedule(code, file_name)

    def set_mode(self, mode: AssistantMode) -> None:
        """Switch framing; vibe mode stops scheduling, other modes re-analyze."""
        if mode == self.mode:
            return
        self.mode = mode
        self.cancel()
        if mode != AssistantMode.VIBE and self._last_observed is not None:
            self._schedule(*self._last_observed)

    def cancel(self) -> None:
        """Drop the pending timer, if any. In-flight analyses keep running."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self, code: str, file_name: str) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire, code, file_name)

    def _fire(self, code: str, file_name: str) -> None:
        self._timer = None
        task = asyncio.ensure_future(self.analyze(code, file_name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> None:
        """Wait for analyses already started."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def analyze(self, code: str, file_name: str) -> Optional[List[ExplanationEntry]]:
        """
        Run one analysis now and deliver the rendered explanation.

        Returns:
            The parsed entries, or None if the call or parse failed
        """
        mode = self.mode
        self._set_status(PipelineStatus.running(ANALYZING))
        prompt = build_explain_prompt(mode, code, file_name)

        try:
            raw = await self.provider.generate(prompt)
            entries = parse_response(raw, EXPLANATIONS)
        except ProviderError as e:
            if e.is_missing_credential:
                message = f"Set {self.credential_name} to enable AI features."
            else:
                logger.error(f"Explain provider call failed: {e}")
                message = PARSE_FAILED
            self._fail(message)
            return None
        except MalformedResponse as e:
            logger.warning(f"Explain reply for {file_name} was malformed: {e}")
            self._fail(PARSE_FAILED)
            return None
        except Exception as e:
            logger.error(f"Unexpected error explaining {file_name}: {e}", exc_info=True)
            self._fail(PARSE_FAILED)
            return None

        self.on_explanation_ready(render_explanations(entries))
        self._set_status(PipelineStatus.succeeded(f"Explained {len(entries)} function(s) in {file_name}"))
        logger.info(f"{mode.value} analysis of {file_name}: {len(entries)} function(s)")
        return entries

    def _fail(self, message: str) -> None:
        self.on_explanation_ready(message)
        self._set_status(PipelineStatus.failed(message))
