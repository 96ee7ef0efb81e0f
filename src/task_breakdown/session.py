"""Client-side state for task breakdown: the on/off toggle and the task list.

Neither holds global state. The toggle reads and writes through a
`ToggleStore`, and a session is handed the breakdown function it calls.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Protocol

from task_breakdown.models import ProviderRef, TaskItem

logger = logging.getLogger(__name__)

TOGGLE_KEY = "taskBreakdownEnabled"

BreakdownFn = Callable[..., list[dict]]


class ToggleStore(Protocol):
    """Key-value storage for persisted preferences."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryToggleStore:
    """In-process store; preferences last as long as the object."""

    def __init__(self, values: dict[str, str] | None = None):
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileToggleStore:
    """Store backed by a flat JSON object on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class BreakdownToggle:
    """Whether task breakdown is offered to the user. Off unless stored as "true"."""

    def __init__(self, store: ToggleStore, key: str = TOGGLE_KEY):
        self.store = store
        self.key = key
        self.enabled = store.get(key) == "true"

    def toggle(self) -> bool:
        """Flip the flag, persist it and return the new value."""
        self.enabled = not self.enabled
        self.store.set(self.key, "true" if self.enabled else "false")
        logger.debug("Task breakdown %s", "enabled" if self.enabled else "disabled")
        return self.enabled


class TaskSession:
    """
    The list of subtasks for the prompt currently being worked on.

    Items get ids "task-0", "task-1", ... in breakdown order. Starting a
    task hands back its text (to be sent as the next prompt) and marks it
    completed.
    """

    def __init__(self, breakdown: BreakdownFn):
        self._breakdown = breakdown
        self.tasks: list[TaskItem] = []
        self.busy = False
        """True while a breakdown request is in flight"""

    def break_down(
        self,
        prompt: str,
        model: str,
        provider: str | dict | ProviderRef,
        api_keys: dict[str, str] | None = None,
    ) -> list[TaskItem]:
        """Replace the task list with a fresh breakdown of `prompt`."""
        self.busy = True
        self.tasks = []
        try:
            result = self._breakdown(prompt, model, provider, api_keys)
        finally:
            self.busy = False

        self.tasks = [
            TaskItem(id=f"task-{i}", content=item["task"])
            for i, item in enumerate(result)
        ]
        logger.debug("Broke down prompt into %d tasks", len(self.tasks))
        return list(self.tasks)

    def start_task(self, task_id: str) -> str | None:
        """Mark a task completed and return its text; None for unknown ids."""
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                self.tasks[i] = task.mark_completed()
                logger.debug("Started task: %s", task_id)
                return task.content
        return None

    @property
    def pending(self) -> list[TaskItem]:
        return [t for t in self.tasks if not t.completed]

    def reset(self) -> None:
        self.tasks = []
        logger.debug("Reset all tasks")
