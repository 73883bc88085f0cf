"""Batch run tracking.

``BatchRunLogger`` wraps the global ``CurationLogger`` and tracks a single
batch evaluation:

1. Instantiate with a ``run_id``; every entry of the batch carries it.
2. Call ``record()`` for each decision as it is produced.
3. Call ``finish()`` when the batch is done -- logs and returns a summary dict.
4. Call ``get_summary_text()`` for a human-readable summary.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional

from curation.logging.audit_logger import get_logger
from curation.logging.component_logger import ComponentLogger
from curation.logging.models import LogComponent


class BatchRunLogger:
    """Track a batch run with per-decision outcomes and timing.

    Parameters:
        run_id: Unique identifier for this batch.
        profile: Router profile used for the batch.
    """

    def __init__(self, run_id: str, profile: Optional[str] = None) -> None:
        self.run_id = run_id
        self.profile = profile
        self.logger = get_logger()
        self.batch_log = ComponentLogger(LogComponent.BATCH)
        self.effects_log = ComponentLogger(LogComponent.EFFECTS)

        self.start_time = datetime.now()
        self.outcomes: Counter = Counter()
        self.paths: Counter = Counter()
        self.degraded: List[str] = []
        self.effects_applied = 0
        self.effect_failures: List[str] = []

    async def start(self, candidate_count: int) -> None:
        await self.batch_log.info(
            f"Batch started: {candidate_count} candidates",
            data={"profile": self.profile, "candidates": candidate_count},
            run_id=self.run_id,
        )

    async def record(
        self, decision: Any, effects_applied: int = 0, effect_error: Optional[Exception] = None
    ) -> None:
        """Count a decision and write its audit entry."""
        self.outcomes[decision.outcome.value] += 1
        self.paths[decision.path] += 1
        if decision.degraded:
            self.degraded.append(decision.video_id)
        self.effects_applied += effects_applied
        await self.logger.log_decision(decision, run_id=self.run_id)
        if effect_error is not None:
            self.effect_failures.append(decision.video_id)
            await self.effects_log.error(
                f"Effect application failed: {effect_error}",
                error=effect_error,
                video_id=decision.video_id,
                run_id=self.run_id,
            )

    async def finish(self, status: str = "success") -> Dict[str, Any]:
        """Finish the batch and return a summary dict."""
        end_time = datetime.now()
        total_duration_ms = int((end_time - self.start_time).total_seconds() * 1000)

        summary: Dict[str, Any] = {
            "run_id": self.run_id,
            "status": status,
            "profile": self.profile,
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "total_duration_ms": total_duration_ms,
            "total": sum(self.outcomes.values()),
            "outcomes": dict(self.outcomes),
            "paths": dict(self.paths),
            "degraded": list(self.degraded),
            "effects_applied": self.effects_applied,
            "effect_failures": list(self.effect_failures),
        }

        await self.batch_log.info(
            f"Batch completed: {status}",
            data=summary,
            duration_ms=total_duration_ms,
            run_id=self.run_id,
        )

        return summary

    def get_summary_text(self) -> str:
        lines: List[str] = [f"Curation Run: {self.run_id}", ""]
        for outcome in ("ACCEPT", "MANUAL_REVIEW", "REJECT"):
            lines.append(f"{outcome}: {self.outcomes.get(outcome, 0)}")
        if self.paths:
            lines.append("")
            for path, count in self.paths.most_common():
                lines.append(f"  {path}: {count}")
        if self.degraded:
            lines.append(f"\nDegraded: {len(self.degraded)} ({', '.join(self.degraded)})")
        lines.append(f"Effects applied: {self.effects_applied}")
        if self.effect_failures:
            lines.append(f"Effect failures: {', '.join(self.effect_failures)}")
        return "\n".join(lines)
