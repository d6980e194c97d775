"""History windowing and token-budget trimming for LLM calls."""

from collections import deque

from support_chat.conversations.repository import HistoryStore
from support_chat.db.models import SENDER_USER
from support_chat.llm.gateway import Role, Turn
from support_chat.llm.token_counter import Estimator, estimate_tokens

DEFAULT_WINDOW_SIZE = 20

# Kept well below provider input limits
DEFAULT_MAX_TOKENS = 200


async def load_history_window(
    store: HistoryStore,
    conversation_id: str,
    limit: int = DEFAULT_WINDOW_SIZE,
) -> list[Turn]:
    """Return the `limit` most recent messages as turns, oldest first."""
    newest_first = await store.query_messages(conversation_id, limit=limit, order="desc")
    return [
        Turn(role=Role.USER if msg.sender == SENDER_USER else Role.MODEL, text=msg.text)
        for msg in reversed(newest_first)
    ]


def trim_history_for_budget(
    history: list[Turn],
    estimate: Estimator = estimate_tokens,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> list[Turn]:
    """Keep the newest contiguous run of turns whose estimated cost fits the budget.

    Turns are queued oldest to newest; whenever the running total exceeds the
    budget, the oldest queued turn is evicted. Eviction stops once the queue
    holds a single turn, so the newest turn survives even when it alone is
    over budget.
    """
    queue: deque[tuple[Turn, int]] = deque()
    total = 0

    for turn in history:
        tokens = estimate(turn.text)
        queue.append((turn, tokens))
        total += tokens

        while total > max_tokens and len(queue) > 1:
            _, removed = queue.popleft()
            total -= removed

    return [turn for turn, _ in queue]
