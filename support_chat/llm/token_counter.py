"""Token estimators: pure functions of message text."""

import math
from collections.abc import Callable
from functools import lru_cache

import tiktoken

Estimator = Callable[[str], int]


@lru_cache()
def _encoding():
    # cl100k_base is a reasonable approximation for most models
    return tiktoken.get_encoding("cl100k_base")


def estimate_tokens(text: str) -> int:
    """Rough estimate of four characters per token."""
    return math.ceil(len(text) / 4)


def count_tokens(text: str) -> int:
    return len(_encoding().encode(text))


ESTIMATORS: dict[str, Estimator] = {
    "chars": estimate_tokens,
    "tiktoken": count_tokens,
}


def get_estimator(name: str) -> Estimator:
    try:
        return ESTIMATORS[name]
    except KeyError:
        raise ValueError(f"Unknown token estimator: {name}") from None
