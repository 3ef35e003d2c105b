"""
Conversation history windowing.

Only the most recent turns are sent to the classifier. Older turns are
dropped, not summarized; long-term memory belongs to the caller.
"""

from typing import Iterable, Mapping, Sequence, Union

from ..models.enums import Role
from ..models.schemas import Turn

DEFAULT_HISTORY_LIMIT = 10

TurnLike = Union[Turn, Mapping[str, str]]


def coerce_turns(turns: Iterable[TurnLike]) -> list[Turn]:
    """
    Validate caller input into Turn models.

    Raises:
        TypeError: If `turns` is not an iterable of turns (e.g. a bare string)
        pydantic.ValidationError: If an item lacks a valid role or content
    """
    if isinstance(turns, (str, bytes, Mapping)):
        raise TypeError(
            f"turns must be a sequence of turns, got {type(turns).__name__}"
        )
    return [t if isinstance(t, Turn) else Turn.model_validate(t) for t in turns]


def bound_history(turns: Sequence[Turn], limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[Turn]:
    """
    Keep the last `limit` turns in their original order.

    Inputs at or under the limit are returned as-is.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    if len(turns) > limit:
        return turns[-limit:]
    return turns


def latest_user_query(turns: Sequence[Turn]) -> str | None:
    """
    Content of the most recent user turn.

    Returns None when there is no user turn or the most recent one is blank;
    older user turns never stand in for a blank latest one.
    """
    for turn in reversed(turns):
        if turn.role is Role.USER:
            return turn.content if turn.content.strip() else None
    return None
