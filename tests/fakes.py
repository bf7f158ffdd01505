import asyncio
from typing import Callable, List, Optional, Union

from vibe_studio.ai_client import ProviderError, ProviderErrorKind


class FakeProvider:
    """Records prompts and answers from a queue or a responder function."""

    def __init__(self, replies: Optional[List[Union[str, Exception]]] = None,
                 respond: Optional[Callable[[str], str]] = None, delay: float = 0.0):
        self.replies = list(replies or [])
        self.respond = respond
        self.delay = delay
        self.prompts: List[str] = []

    def queue(self, *replies):
        self.replies.extend(replies)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.respond is not None:
            return self.respond(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def missing_key():
    return ProviderError(ProviderErrorKind.MISSING_CREDENTIAL, "Missing GEMINI_API_KEY in environment.")


def request_failed():
    return ProviderError(ProviderErrorKind.REQUEST_FAILED, "Failed to reach Gemini: 503")


class FakeFile:
    is_directory = False

    def __init__(self, name: str, content: str = "", error: Optional[Exception] = None):
        self.name = name
        self.content = content
        self.error = error

    async def read_text(self) -> str:
        if self.error:
            raise self.error
        return self.content

    def open_directory(self):
        raise NotADirectoryError(self.name)


class FakeDir:
    """In-memory directory handle; also acts as its own entry."""
    is_directory = True

    def __init__(self, name: str, entries=None, error: Optional[Exception] = None):
        self.name = name
        self.entries = list(entries or [])
        self.error = error

    async def list_entries(self):
        if self.error:
            raise self.error
        return list(self.entries)

    async def read_text(self) -> str:
        raise IsADirectoryError(self.name)

    def open_directory(self):
        return self
