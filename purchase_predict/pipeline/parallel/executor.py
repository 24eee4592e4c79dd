# purchase_predict/pipeline/parallel/executor.py
from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Callable, Any, TypeVar

from purchase_predict import logs
from purchase_predict.pipeline.parallel.types import ParallelKind

T = TypeVar("T")


class ParallelExecutor:
    """
    ParallelExecutor（FINAL）

    Semantics:
    - results are returned in INPUT order, never completion order
    - one worker → plain sequential loop (the reference behavior)
    - thread pool; handlers share read-only arrays with the caller
    """

    @staticmethod
    def run(
            *,
            kind: ParallelKind,
            items: Iterable[T],
            handler: Callable[[T], Any],
            max_workers: int | None = None,
    ) -> list[Any]:
        items = list(items)
        if not items:
            return []

        workers = ParallelExecutor._resolve_workers(items, max_workers)

        if workers == 1:
            return ParallelExecutor._run_sequential(items, handler)

        logs.debug(
            f"[ParallelExecutor] kind={kind.value} total={len(items)} workers={workers}"
        )
        return ParallelExecutor._run_parallel(items, handler, workers)

    # ---------------- internal ----------------

    @staticmethod
    def _resolve_workers(items: list, max_workers: int | None) -> int:
        cpu = os.cpu_count() or 1
        if max_workers is None:
            return min(cpu, len(items))
        return max(1, min(max_workers, len(items)))

    @staticmethod
    def _run_sequential(
            items: list,
            handler: Callable[[Any], Any],
    ) -> list[Any]:
        return [handler(item) for item in items]

    @staticmethod
    def _run_parallel(
            items: list,
            handler: Callable[[Any], Any],
            workers: int,
    ) -> list[Any]:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # pool.map keeps input order; the first handler error is re-raised here
            return list(pool.map(handler, items))
