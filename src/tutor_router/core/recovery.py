"""
Structured-output recovery for classifier replies.

Models are asked for a bare JSON object but often wrap it in code fences or
prose, or emit several brace groups. Recovery walks a fixed ladder of
strategies, each tried only when the previous one produced nothing parseable:

1. strip code fences
2. first object with at most one level of nested braces
3. first "{" through the last "}" in the text
4. line-by-line reconstruction with a brace counter

Every strategy is a standalone function so it can be exercised on its own.
"""

import json
import re
from typing import Any, Callable

from ..exceptions import RecoveryError
from ..models.enums import Subject
from ..models.schemas import NO_REASON, ClassificationLabel
from ..utils.logging import get_logger

logger = get_logger(__name__)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_BALANCED_OBJECT = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")
LABEL_KEYS = frozenset({"subject", "reason"})


def strip_fences(text: str) -> str:
    """Remove ``` / ```json markers and surrounding whitespace."""
    return _FENCE.sub("", text).strip()


def _load_object(candidate: str | None) -> dict[str, Any] | None:
    if not candidate:
        return None
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def extract_balanced(text: str) -> dict[str, Any] | None:
    """Parse the first object whose values nest at most one brace level deep."""
    match = _BALANCED_OBJECT.search(text)
    return _load_object(match.group(0) if match else None)


def extract_greedy(text: str) -> dict[str, Any] | None:
    """Parse everything from the first "{" to the last "}"."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    return _load_object(text[start:end + 1])


def reconstruct_lines(text: str) -> dict[str, Any] | None:
    """
    Rebuild an object from whole lines.

    Accumulation starts at the first line beginning with "{" and stops once
    the running brace count returns to zero on a line that contains "}".
    """
    collected: list[str] = []
    depth = 0
    started = False

    for line in text.splitlines():
        if not started and line.strip().startswith("{"):
            started = True
        if not started:
            continue

        collected.append(line)
        depth += line.count("{") - line.count("}")
        if depth == 0 and "}" in line:
            break

    return _load_object("\n".join(collected))


STRATEGIES: tuple[tuple[str, Callable[[str], dict[str, Any] | None]], ...] = (
    ("balanced", extract_balanced),
    ("greedy", extract_greedy),
    ("lines", reconstruct_lines),
)


def label_from_data(data: dict[str, Any]) -> ClassificationLabel:
    """Apply defaults: unknown or missing subject -> Unknown, missing reason -> placeholder."""
    reason = data.get("reason")
    if reason is None or reason == "":
        reason = NO_REASON
    elif not isinstance(reason, str):
        reason = str(reason)

    return ClassificationLabel(subject=Subject.parse(data.get("subject")), reason=reason)


def recover(raw_text: str) -> ClassificationLabel:
    """
    Recover a ClassificationLabel from raw classifier output.

    An object carrying "subject" or "reason" wins over one that carries
    neither, so a nested fragment cannot hide the real label.

    Raises:
        RecoveryError: If no strategy yields a JSON object
    """
    cleaned = strip_fences(raw_text)
    unlabelled: dict[str, Any] | None = None

    for name, strategy in STRATEGIES:
        data = strategy(cleaned)
        if data is None:
            continue
        if LABEL_KEYS & data.keys():
            logger.debug("label_recovered", strategy=name)
            return label_from_data(data)
        # A nested fragment without label keys; a later strategy may see the whole object
        if unlabelled is None:
            unlabelled = data

    if unlabelled is not None:
        logger.debug("label_recovered", strategy="unlabelled")
        return label_from_data(unlabelled)

    raise RecoveryError(
        "No JSON object could be recovered from the classifier output",
        raw_text=raw_text,
    )
