"""
Entry point: evaluate curation candidates from a JSON file.

Usage::

    python run.py candidates.json
    python run.py candidates.json --profile three_path --apply-effects
    python run.py candidates.json --seed config/registry_seed.yaml --now 2025-01-01T00:00:00Z

The input is either a list of candidate objects or ``{"candidates": [...]}``.
Decisions are printed to stdout as JSON, followed by a summary.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger("run")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Evaluate video curation candidates.")
    parser.add_argument("candidates", type=Path, help="JSON file with candidate videos")
    parser.add_argument("--profile", choices=["full", "three_path"], help="Router profile")
    parser.add_argument(
        "--elite-failure",
        choices=["REJECT", "MANUAL_REVIEW"],
        help="Outcome for elite instructors with non-instructional content",
    )
    parser.add_argument("--seed", type=Path, help="YAML seed for the in-memory registry")
    parser.add_argument(
        "--backend", choices=["memory", "supabase"], help="Registry backend (default from settings)"
    )
    parser.add_argument(
        "--apply-effects",
        action="store_true",
        help="Write coverage/emerging effects of accepted candidates back to the registry",
    )
    parser.add_argument("--now", help="Reference time (ISO 8601) for age-based signals")
    parser.add_argument("--settings", type=Path, help="Path to settings.yaml")
    parser.add_argument("--audit", action="store_true", help="Write the structured audit log")
    return parser.parse_args(argv)


def echo_audit_errors(entry: Any) -> None:
    """Audit log handler: mirror ERROR and CRITICAL entries to stderr."""
    if entry.level.value >= logging.ERROR:
        logger.error("[AUDIT] %s", entry.to_readable())


def load_candidates(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("candidates", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of candidates")
    return data


async def main(argv: Optional[List[str]] = None) -> int:
    from curation.config import PROJECT_ROOT, RouterConfig, Settings
    from curation.database import InMemoryRegistry, get_registry
    from curation.evaluator import CurationEvaluator, summarize_decisions
    from curation.logging import get_logger, init_logger
    from curation.models import VideoCandidate
    from curation.utils import parse_datetime

    args = parse_args(argv)
    settings = Settings.from_yaml(args.settings) if args.settings else Settings.from_yaml()
    logging.getLogger().setLevel(settings.log_level.upper())

    router = settings.router
    if args.profile or args.elite_failure:
        router = RouterConfig(
            profile=args.profile or router.profile,
            elite_failure_outcome=args.elite_failure
            or (router.elite_failure_outcome if not args.profile else None),
            degraded_policy=router.degraded_policy,
            thresholds=router.thresholds,
        )

    backend = args.backend or settings.registry_backend
    if args.seed:
        store = InMemoryRegistry.from_seed(args.seed)
    else:
        seed_path = settings.seed_path
        # Relative seed paths in settings.yaml are relative to the project root
        if seed_path and not Path(seed_path).is_absolute():
            seed_path = str(PROJECT_ROOT / seed_path)
        store = await get_registry(backend, seed_path)

    if args.audit:
        audit = init_logger(log_dir=settings.log_dir, store=store)
        audit.add_handler(echo_audit_errors)

    candidates = [VideoCandidate.from_dict(row) for row in load_candidates(args.candidates)]
    now = parse_datetime(args.now) if args.now else None

    evaluator = CurationEvaluator(store, router, max_concurrency=settings.max_concurrency)
    decisions = await evaluator.evaluate_batch(candidates, now=now, apply=args.apply_effects)

    output = {
        "profile": router.profile,
        "decisions": [d.to_dict() for d in decisions],
        "summary": summarize_decisions(decisions),
    }
    print(json.dumps(output, indent=2, ensure_ascii=False))

    if args.audit:
        await get_logger().flush()

    logger.info(
        "Evaluated %d candidates: %s", len(decisions), output["summary"]["outcomes"]
    )
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(0)
