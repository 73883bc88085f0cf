"""
Taxonomy Mapper.

Normalizes the technique name and validates it against the technique
taxonomy.  An uncatalogued technique is not a rejection: it may be a
legitimately new technique.
"""

import logging
from typing import List, Optional

from curation.database import RegistryStore, validate_not_empty, validate_positive
from curation.models import (
    Dimension,
    DimensionOutcome,
    GiApplicability,
    TaxonomyEntry,
    TaxonomyMapping,
    VideoCandidate,
)
from curation.utils import normalize_technique_name
from curation.dimensions.base import guarded

CATALOGUED_SCORE = 85
NOT_CATALOGUED_SCORE = 40
FAULT_SCORE = 30
GI_MISMATCH_PENALTY = 20
CATEGORY_MISMATCH_PENALTY = 10


def default_taxonomy_mapping() -> TaxonomyMapping:
    return TaxonomyMapping(
        score=FAULT_SCORE,
        technique_found=False,
        priority=1,
        target_count=30,
        reasons_bad=["Error processing taxonomy mapping"],
    )


def _gi_mismatch(applicability: Optional[str], gi_or_nogi: Optional[str]) -> Optional[str]:
    if not applicability or not gi_or_nogi:
        return None
    uniform = gi_or_nogi.strip().lower().replace("-", "")
    if applicability == GiApplicability.GI_ONLY.value and uniform == "nogi":
        return "Video shows no-gi version of gi-only technique"
    if applicability == GiApplicability.NOGI_ONLY.value and uniform == "gi":
        return "Video shows gi version of no-gi-only technique"
    return None


class TaxonomyMapper:
    def __init__(self, store: RegistryStore) -> None:
        self.store = store
        self.logger = logging.getLogger("TaxonomyMapper")

    async def evaluate(self, candidate: VideoCandidate) -> DimensionOutcome:
        return await guarded(
            Dimension.TAXONOMY,
            self._evaluate(candidate),
            default_taxonomy_mapping,
            self.logger,
        )

    async def _evaluate(self, candidate: VideoCandidate) -> TaxonomyMapping:
        key = normalize_technique_name(candidate.technique_name)
        entry = await self.store.get_taxonomy_entry(key)

        if entry is None:
            return TaxonomyMapping(
                score=NOT_CATALOGUED_SCORE,
                technique_found=False,
                technique_name=key,
                category=candidate.category,
                priority=3,
                target_count=30,
                tags=["not_catalogued"],
                reasons_bad=[
                    "Technique not in official taxonomy - may be emerging or misidentified"
                ],
            )

        score = CATALOGUED_SCORE
        reasons_bad: List[str] = []

        gi_reason = _gi_mismatch(entry.gi_applicability, candidate.gi_or_nogi)
        if gi_reason:
            score -= GI_MISMATCH_PENALTY
            reasons_bad.append(gi_reason)

        if candidate.category and entry.category and candidate.category != entry.category:
            score -= CATEGORY_MISMATCH_PENALTY
            reasons_bad.append(
                f"Category mismatch: detected as {candidate.category}, "
                f"taxonomy says {entry.category}"
            )

        return TaxonomyMapping(
            score=float(score),
            technique_found=True,
            technique_name=entry.technique_name,
            category=entry.category,
            priority=entry.priority,
            target_count=entry.target_video_count,
            difficulty_level=entry.difficulty_level,
            gi_applicability=entry.gi_applicability,
            tags=["catalogued"],
            reasons_bad=reasons_bad,
        )


async def add_technique(
    store: RegistryStore,
    technique_name: str,
    category: str,
    priority: int = 5,
    target_video_count: int = 50,
    difficulty_level: Optional[str] = None,
    gi_applicability: Optional[str] = None,
) -> TaxonomyEntry:
    """Add a technique to the taxonomy, e.g. a validated emerging technique."""
    validate_not_empty(technique_name, "technique_name")
    validate_not_empty(category, "category")
    validate_positive(target_video_count, "target_video_count")
    if gi_applicability is not None:
        # Raises ValueError on an unknown applicability
        GiApplicability(gi_applicability)

    entry = TaxonomyEntry(
        technique_name=normalize_technique_name(technique_name),
        category=category,
        priority=priority,
        target_video_count=target_video_count,
        difficulty_level=difficulty_level,
        gi_applicability=gi_applicability,
    )
    saved = await store.save_taxonomy_entry(entry)
    logging.getLogger("TaxonomyMapper").info(
        "[TAXONOMY] Added '%s' (category=%s, target=%d)",
        saved.technique_name, saved.category, saved.target_video_count,
    )
    return saved
