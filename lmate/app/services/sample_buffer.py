from __future__ import annotations

from typing import Sequence, TypeVar

from lmate.app.schemas.metrics import Sample


DEFAULT_MAX_SAMPLES = 30

T = TypeVar("T")


def push_sample(series: Sequence[T], sample: T, max_length: int = DEFAULT_MAX_SAMPLES) -> list[T]:
    """Return a new series with ``sample`` appended and at most one oldest entry evicted.

    The input is never modified. Capacity is enforced per call, so the series stays
    within ``max_length`` as long as callers push one sample at a time.
    """
    next_series = [*series, sample]
    if len(next_series) > max_length:
        next_series = next_series[1:]
    return next_series


def latest_value(series: Sequence[Sample], default: float = 0) -> float:
    if not series:
        return default
    return series[-1].v
