"""Split external keys into bounded provider queries."""
from __future__ import annotations

import math
from typing import Iterator, Protocol, Sequence

from .models import BatchQuery


class QueryDialect(Protocol):
    order_by: str

    def build_filter(self, keys: Sequence[str]) -> str:
        ...


def batch_count(total: int, batch_size: int) -> int:
    return math.ceil(total / batch_size) if total > 0 else 0


def plan_batches(
    keys: Sequence[str],
    dialect: QueryDialect,
    *,
    batch_size: int = 10,
    result_cap: int = 500,
) -> Iterator[BatchQuery]:
    """Yield one query per ``batch_size`` keys, lazily and in key order."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    if result_cap < 1:
        raise ValueError("result_cap must be at least 1")

    for index, start in enumerate(range(0, len(keys), batch_size), start=1):
        batch = tuple(keys[start : start + batch_size])
        yield BatchQuery(
            index=index,
            keys=batch,
            filter=dialect.build_filter(batch),
            order_by=dialect.order_by,
            top=result_cap,
        )


def odata_literal(value: str) -> str:
    """Quote a string for an OData filter, doubling embedded single quotes."""
    return "'" + value.replace("'", "''") + "'"
