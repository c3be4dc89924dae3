"""Best-effort AI suggestions for a new task's priority, duration, dependencies and tags."""
import json
import logging
import math
import re
from typing import Iterable, Optional

from openai import OpenAI

from taskai.config import OPENAI_API_KEY, OPENAI_MODEL
from taskai.schemas.task import MAX_DURATION, MIN_DURATION, Suggestion, SuggestionRequest

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

PROMPT_TEMPLATE = """
You are an AI assistant that helps with task management. Based on the task details and existing tasks, suggest:
1. A priority level (high, medium, or low)
2. An estimated duration in hours (can be decimal, e.g., 1.5)
3. Potential dependencies (IDs of tasks that should be completed before this one)
4. Relevant tags (3-5 keywords that describe this task)

New task:
Name: {name}
Description: {description}
Deadline: {deadline}

Existing tasks:
{existing}

Respond in JSON format only:
{{
  "priority": "high|medium|low",
  "duration": number,
  "dependencies": ["task_id1", "task_id2"],
  "tags": ["tag1", "tag2", "tag3"]
}}
"""


def _task_context(task) -> dict:
    return {
        "id": task.id,
        "name": task.name,
        "description": task.description,
        "priority": task.priority,
        "deadline": task.deadline.isoformat() if task.deadline else None,
        "duration": task.duration,
        "category": task.category,
        "completed": task.completed,
        "tags": task.tags or [],
    }


def build_prompt(request: SuggestionRequest, existing_tasks: Iterable) -> str:
    existing = json.dumps([_task_context(t) for t in existing_tasks], indent=2)
    return PROMPT_TEMPLATE.format(
        name=request.name,
        description=request.description,
        deadline=request.deadline or "",
        existing=existing,
    )


def parse_suggestion(text: Optional[str]) -> Suggestion:
    """Read the first JSON object out of a model reply.

    Each field falls back to its default on its own, so a reply with a good
    priority but a nonsense duration still keeps the priority.
    """
    default = Suggestion()
    match = _JSON_BLOCK.search(text or "")
    if not match:
        logger.warning("AI suggestion had no JSON object; using defaults")
        return default
    try:
        data = json.loads(match.group(0))
    except ValueError:
        logger.warning("AI suggestion was not valid JSON; using defaults")
        return default
    if not isinstance(data, dict):
        return default

    priority = data.get("priority")
    if priority not in ("high", "medium", "low"):
        priority = default.priority

    duration = data.get("duration")
    if isinstance(duration, bool) or not isinstance(duration, (int, float)) or not math.isfinite(duration):
        duration = default.duration
    elif not MIN_DURATION <= duration <= MAX_DURATION:
        duration = min(max(duration, MIN_DURATION), MAX_DURATION)

    def _strings(value):
        if not isinstance(value, list):
            return []
        return list(dict.fromkeys(str(v).strip() for v in value if str(v).strip()))

    return Suggestion(
        priority=priority,
        duration=duration,
        dependencies=_strings(data.get("dependencies")),
        tags=_strings(data.get("tags")),
    )


class TaskSuggester:
    """Wraps an OpenAI client; ``client=None`` disables the call entirely."""

    def __init__(self, client=None, model: str = OPENAI_MODEL):
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls) -> "TaskSuggester":
        if not OPENAI_API_KEY:
            logger.info("OPENAI_API_KEY not set; AI suggestions will use defaults")
            return cls()
        return cls(OpenAI(api_key=OPENAI_API_KEY))

    def suggest(self, request: SuggestionRequest, existing_tasks: Iterable = ()) -> Suggestion:
        if self.client is None:
            return Suggestion()
        existing_tasks = list(existing_tasks)
        prompt = build_prompt(request, existing_tasks)
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
            text = response.choices[0].message.content
        except Exception:
            # Suggestions never block task creation
            logger.exception("AI suggestion request failed; using defaults")
            return Suggestion()

        suggestion = parse_suggestion(text)
        # Only suggest dependencies the caller can actually see
        known = {t.id for t in existing_tasks}
        suggestion.dependencies = [d for d in suggestion.dependencies if d in known]
        return suggestion
