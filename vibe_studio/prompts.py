"""Prompt templates for the assistant panel."""

from .models import AssistantMode


TEACHER_PROMPT = """You are a programming teacher.
Analyze the following code file "{name}" and explain each function in a beginner-friendly way.
Return only JSON as an array of objects with "functionName" and "explanation" fields.
Keep each explanation to 2 concise lines and include what concept the function demonstrates.
If no functions are present, return an empty array.

Code:
{code}

Response format:
[
  {{"functionName": "function_name", "explanation": "clear two-line teaching explanation"}},
  ...
]"""

REVIEWER_PROMPT = """You are a senior code reviewer.
Analyze the following code file "{name}" and review each function.
Return only JSON as an array of objects with "functionName" and "explanation" fields.
Each explanation should be concise and include one practical review point (quality, correctness, readability, or maintainability).
If no functions are present, return an empty array.

Code:
{code}

Response format:
[
  {{"functionName": "function_name", "explanation": "concise review insight"}},
  ...
]"""

VIBE_PROMPT = """You are a coding agent inside an IDE.
Complete the user's request by editing only the active file.
Return only strict JSON with this shape:
{{
  "summary": "short summary",
  "updatedContent": "full updated file content"
}}

User request:
{request}

Active file:
{name}

Current content:
{code}"""


def build_explain_prompt(mode: AssistantMode, code: str, name: str) -> str:
    """Teacher prompt by default; reviewer framing in reviewer mode."""
    template = REVIEWER_PROMPT if mode == AssistantMode.REVIEWER else TEACHER_PROMPT
    return template.format(name=name, code=code)


def build_edit_prompt(request: str, name: str, code: str) -> str:
    return VIBE_PROMPT.format(request=request, name=name, code=code)
