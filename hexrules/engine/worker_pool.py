"""Parallel worker pool for candidate condition evaluation."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from hexrules.config import GenerationConfig
    from hexrules.core.conditions import Condition
    from hexrules.core.hex import Hex
    from hexrules.core.snapshot import Snapshot
    from hexrules.systems.evaluator import ConditionEvaluator

logger = logging.getLogger(__name__)


class CandidateWorkerPool:
    """Manages a ThreadPoolExecutor that evaluates rule conditions in parallel.

    Workers only read an immutable Snapshot. Matches are returned in
    ascending coordinate order whatever the worker count.
    """

    __slots__ = ("_config", "_evaluator", "_executor")

    def __init__(self, config: GenerationConfig, evaluator: ConditionEvaluator) -> None:
        self._config = config
        self._evaluator = evaluator
        self._executor: ThreadPoolExecutor | None = None
        if config.num_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=config.num_workers,
                thread_name_prefix="rule-worker",
            )

    def matching(
        self,
        conditions: Sequence[Condition],
        snapshot: Snapshot,
        candidates: Sequence[Hex],
    ) -> list[Hex]:
        """Return the candidates whose conditions all hold, sorted.

        Uses inline evaluation when num_workers <= 1 or the batch fits in one chunk.
        """
        if not candidates:
            return []

        chunk = max(self._config.worker_chunk_size, 1)
        # Fast path: single-worker mode or a single chunk, run inline
        if self._executor is None or len(candidates) <= chunk:
            return sorted(self._scan(conditions, snapshot, candidates))

        futures: list[Future[list[Hex]]] = [
            self._executor.submit(self._scan, conditions, snapshot, candidates[i:i + chunk])
            for i in range(0, len(candidates), chunk)
        ]
        matches: list[Hex] = []
        for future in futures:
            matches.extend(future.result())
        return sorted(matches)

    def _scan(self, conditions: Sequence[Condition], snapshot: Snapshot, batch: Sequence[Hex]) -> list[Hex]:
        """Evaluate one chunk (executed in a worker thread)."""
        evaluate = self._evaluator.evaluate_all
        return [pos for pos in batch if evaluate(conditions, snapshot, pos)]

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
