"""Ordered candidate fallback ("ladder") used for model selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from site_assistant.core.metrics import FALLBACKS

logger = logging.getLogger(__name__)

C = TypeVar("C")
R = TypeVar("R")


class LadderExhausted(Exception):
    """Every candidate failed. ``attempts`` holds (candidate, error) pairs."""

    def __init__(self, kind: str, attempts: list[tuple[str, str]] | None = None) -> None:
        self.kind = kind
        self.attempts = list(attempts or [])
        tried = ", ".join(name for name, _ in self.attempts) or "no candidates"
        super().__init__(f"All {kind} candidates failed ({tried})")


@dataclass(slots=True)
class LadderResult(Generic[R]):
    value: R
    candidate: str
    position: int


def ladder(
    kind: str,
    candidates: Sequence[C],
    call: Callable[[C], R],
    accept: Callable[[R], bool] | None = None,
    name: Callable[[C], str] = str,
) -> LadderResult[R]:
    """Try ``call`` on each candidate in order until one succeeds.

    A candidate fails when ``call`` raises or when ``accept`` rejects its
    result (for example an empty embedding). Raises ``LadderExhausted`` with
    the per-candidate errors when the list runs out.
    """
    attempts: list[tuple[str, str]] = []
    for position, candidate in enumerate(candidates):
        label = name(candidate)
        try:
            value = call(candidate)
        except Exception as exc:
            logger.warning("%s candidate '%s' failed: %s", kind, label, exc)
            attempts.append((label, str(exc) or type(exc).__name__))
            continue
        if accept is not None and not accept(value):
            logger.warning("%s candidate '%s' returned an unusable result", kind, label)
            attempts.append((label, "empty result"))
            continue
        if position > 0:
            FALLBACKS.labels(kind=kind).inc()
        return LadderResult(value=value, candidate=label, position=position)
    raise LadderExhausted(kind=kind, attempts=attempts)


__all__ = ["ladder", "LadderExhausted", "LadderResult"]
