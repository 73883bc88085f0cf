"""
Post-decision effects.

Evaluation never mutates the registries.  The router attaches pending
effects to an ACCEPT decision and the caller applies them here, so a
rejected or reviewed candidate leaves coverage and emerging-technique
counters untouched.

Both store operations are single-statement merges, so concurrent
application of effects for the same technique is lossless.
"""

import logging
from typing import List

from curation.database import RegistryStore
from curation.exceptions import EffectApplicationError
from curation.models import CoverageIncrement, Decision, Effect, EmergingUpsert

logger = logging.getLogger("Effects")


async def apply_effect(effect: Effect, store: RegistryStore) -> None:
    """Apply a single effect.

    Raises:
        EffectApplicationError: If the store write fails.
    """
    try:
        if isinstance(effect, CoverageIncrement):
            await store.increment_coverage(effect.technique_name, effect.skill_level)
        elif isinstance(effect, EmergingUpsert):
            await store.upsert_emerging_technique(effect.technique_name, effect.instructor_name)
        else:
            raise TypeError(f"Unknown effect type {type(effect).__name__}")
    except Exception as exc:
        raise EffectApplicationError(effect, exc) from exc


async def apply_effects(decision: Decision, store: RegistryStore) -> List[Effect]:
    """
    Apply the decision's pending effects in order.

    Non-accepted decisions are a no-op.  Application stops at the first
    failing effect.

    Returns:
        The effects that were applied.

    Raises:
        EffectApplicationError: If any effect fails.
    """
    if not decision.accepted:
        return []

    applied: List[Effect] = []
    for effect in decision.effects:
        await apply_effect(effect, store)
        applied.append(effect)

    if applied:
        logger.info(
            "[EFFECTS] %s: applied %d effect(s): %s",
            decision.video_id,
            len(applied),
            ", ".join(type(e).__name__ for e in applied),
        )
    return applied
