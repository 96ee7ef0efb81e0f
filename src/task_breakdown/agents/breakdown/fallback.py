"""Rule-based prompt breakdown, used when the model-backed path fails.

The breakdown is a cascade of pattern passes over the raw prompt:

1. Structural passes (lines, bullets, numbered items). The first one that
   finds at least two items wins outright.
2. Separator pass (ordinal and connective markers such as "First," or
   "Then"), joined by the keyword-phrase pass and the leftover tail.
3. Sentence split, then fixed-size word chunks, when 2. finds too little.

Whatever survives is trimmed, capitalized and capped at MAX_TASKS.
"""

import logging
import re
from typing import Callable

from task_breakdown.models import TaskDescriptor

logger = logging.getLogger(__name__)

MAX_TASKS = 5

# Minimum lengths (exclusive) for an extracted candidate to count as a task
MIN_LIST_ITEM_LENGTH = 5
MIN_SEGMENT_LENGTH = 10
MIN_SENTENCE_LENGTH = 15
MIN_CHUNK_WORDS = 5

_LINE_BREAKS = re.compile(r"\n+")
_BULLET_ITEM = re.compile(r"\n\s*[-*•+~]\s*(.+)")
_NUMBERED_ITEM = re.compile(r"\n\s*(?:\d+[.)]|Step \d+:?)\s*(.+)", re.IGNORECASE)
_SENTENCE_BREAK = re.compile(r"(?<=\.)\s+")
_WHITESPACE = re.compile(r"\s+")
# Whitespace plus the byte order mark, which str.strip() keeps
_EDGE_SPACE = re.compile(r"\A[\s\ufeff]+|[\s\ufeff]+\Z")

SEPARATOR_MARKERS = (
    "First|1st",
    "Second|2nd",
    "Third|3rd",
    "Fourth|4th",
    "Fifth|5th",
    "Sixth|6th",
    "Seventh|7th",
    "Eighth|8th",
    "Ninth|9th",
    "Tenth|10th",
    "Next",
    "Then",
    "Finally",
    "Additionally",
    "Moreover",
    "Furthermore",
    "Also",
)

# Each marker only counts at the start of a sentence or line
_SEPARATORS = tuple(
    re.compile(rf"(?:\.|\n)\s*(?:{marker})[,:]?\s+", re.IGNORECASE)
    for marker in SEPARATOR_MARKERS
)

_TASK_PHRASE = re.compile(
    r"(?:\.|\n)\s*(?:"
    r"(?:(?:The|A|This|Your)\s+)?(?:task|step|part|phase|stage)\s+(?:is|will be)\s+to\s+"
    r"|You\s+(?:need|should|must|have to)\s+"
    r")",
    re.IGNORECASE,
)


# =============================================================================
# Structural passes
# =============================================================================

def _trim(text: str) -> str:
    return _EDGE_SPACE.sub("", text)


def split_lines(prompt: str) -> list[str]:
    """Non-blank lines of the prompt, trimmed."""
    lines = [_trim(line) for line in _LINE_BREAKS.split(prompt)]
    return [line for line in lines if line]


def _list_items(pattern: re.Pattern, prompt: str) -> list[str]:
    items = [_trim(match.group(1)) for match in pattern.finditer(prompt)]
    return [item for item in items if len(item) > MIN_LIST_ITEM_LENGTH]


def find_bullets(prompt: str) -> list[str]:
    """Items of a bullet list (-, *, •, + or ~) that start on a new line."""
    return _list_items(_BULLET_ITEM, prompt)


def find_numbered_items(prompt: str) -> list[str]:
    """Items of a numbered list ("1.", "2)", "Step 3:") that start on a new line."""
    return _list_items(_NUMBERED_ITEM, prompt)


STRUCTURAL_STRATEGIES: tuple[tuple[str, Callable[[str], list[str]]], ...] = (
    ("lines", split_lines),
    ("bullets", find_bullets),
    ("numbered", find_numbered_items),
)


# =============================================================================
# Separator / keyword passes
# =============================================================================

def split_on_separators(prompt: str) -> tuple[list[str], str]:
    """
    Cut the prompt at ordinal and connective markers.

    Markers are tried once each, in SEPARATOR_MARKERS order, and every
    search starts where the previous match ended. Returns the segments
    found before each marker and the unconsumed tail.
    """
    segments: list[str] = []
    remaining = prompt

    for separator in _SEPARATORS:
        match = separator.search(remaining)
        if not match:
            continue

        # Keep the sentence-ending period with the segment it closes
        before = _trim(remaining[:match.start() + 1])
        if before and before not in segments and len(before) > MIN_SEGMENT_LENGTH:
            segments.append(before)

        remaining = remaining[match.end():]

    return segments, remaining


def find_task_phrases(prompt: str, existing: list[str] | None = None) -> list[str]:
    """
    Clauses introduced by "The task is to", "You need", "You should", etc.

    Each clause runs from the end of the phrase up to and including the
    next period. Clauses already in `existing` are skipped.
    """
    seen = list(existing or [])
    phrases = []

    for match in _TASK_PHRASE.finditer(prompt):
        end = prompt.find(".", match.end())
        phrase = _trim(prompt[match.end():end + 1 if end > -1 else None])
        if len(phrase) > MIN_SEGMENT_LENGTH and phrase not in seen:
            seen.append(phrase)
            phrases.append(phrase)

    return phrases


def split_sentences(prompt: str) -> list[str]:
    """Sentences long enough to stand as tasks on their own."""
    sentences = [_trim(s) for s in _SENTENCE_BREAK.split(prompt)]
    return [s for s in sentences if len(s) > MIN_SENTENCE_LENGTH]


def chunk_words(prompt: str) -> list[str]:
    """Split the prompt into roughly three runs of words (at least 5 words each)."""
    words = _WHITESPACE.split(prompt)
    chunk_size = max(MIN_CHUNK_WORDS, len(words) // 3)

    chunks = []
    for i in range(0, len(words), chunk_size):
        chunk = " ".join(words[i:i + chunk_size])
        if _trim(chunk):
            chunks.append(chunk)
    return chunks


def _cascade(prompt: str) -> list[str]:
    for name, strategy in STRUCTURAL_STRATEGIES:
        found = strategy(prompt)
        if len(found) >= 2:
            logger.debug("Breakdown by %s: %d items", name, len(found))
            return found

    tasks, remaining = split_on_separators(prompt)
    tasks.extend(find_task_phrases(prompt, tasks))

    tail = _trim(remaining)
    if len(tail) > MIN_SEGMENT_LENGTH:
        tasks.append(tail)

    if len(tasks) > 1:
        logger.debug("Breakdown by separators: %d items", len(tasks))
        return tasks

    tasks = split_sentences(prompt)
    if len(tasks) > 1:
        logger.debug("Breakdown by sentences: %d items", len(tasks))
        return tasks

    logger.debug("Breakdown by word chunks")
    return chunk_words(prompt)


# =============================================================================
# Normalization
# =============================================================================

def normalize_task(task: str) -> str:
    """Trim and capitalize the first character."""
    task = _trim(task)
    if not task:
        return task
    return task[0].upper() + task[1:]


def normalize_tasks(tasks: list[str], limit: int = MAX_TASKS) -> list[str]:
    """Normalize every task, drop empty ones and keep at most `limit`."""
    normalized = [normalize_task(t) for t in tasks]
    return [t for t in normalized if t][:limit]


def decompose(prompt: str) -> list[TaskDescriptor]:
    """
    Break a prompt into at most MAX_TASKS subtasks without a model.

    Never raises and never returns an empty list: when nothing survives
    normalization the untouched prompt is returned as the single task.
    """
    tasks = normalize_tasks(_cascade(prompt))

    if not tasks:
        return [TaskDescriptor(task=prompt)]

    return [TaskDescriptor(task=t) for t in tasks]
