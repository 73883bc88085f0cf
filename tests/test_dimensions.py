"""
Tests for the nine scoring dimensions.

Each class covers one evaluator: its documented branches, its degraded
fallback when the registry fails, and (for the registry-backed ones) the
fact that evaluation never writes.
"""

import logging
from datetime import timedelta

import pytest

from curation.dimensions import (
    BeltLevelAnalyzer,
    ContentQualityAnalyzer,
    CoverageAnalyzer,
    EmergingTechniqueDetector,
    InstructorEvaluator,
    TaxonomyMapper,
    UniquenessAssessor,
    UserFeedbackAnalyzer,
    YouTubeMetricsAnalyzer,
    add_technique,
    analyze_belt_level,
    analyze_youtube_metrics,
    register_instructor,
)
from curation.dimensions.base import guarded, guarded_sync
from curation.dimensions.coverage import gap_boost, least_represented_level
from curation.dimensions.user_feedback import score_performance
from curation.exceptions import ValidationError
from curation.models import (
    ConfidenceTier,
    ContentType,
    CoverageRecord,
    Degraded,
    Dimension,
    EmergingStatus,
    EmergingTechniqueRecord,
    InstructorEvaluation,
    InstructorTier,
    Ok,
    PerformanceRecord,
)

test_logger = logging.getLogger("test")


# ===========================================================================
# Guarded evaluation
# ===========================================================================


class TestGuarded:
    @pytest.mark.asyncio
    async def test_ok(self):
        async def evaluation():
            return InstructorEvaluation(score=77.0)

        outcome = await guarded(Dimension.INSTRUCTOR, evaluation(), InstructorEvaluation, test_logger)
        assert isinstance(outcome, Ok)
        assert outcome.result.score == 77.0

    @pytest.mark.asyncio
    async def test_fault_returns_degraded_default(self):
        async def evaluation():
            raise ConnectionError("boom")

        outcome = await guarded(
            Dimension.INSTRUCTOR, evaluation(), lambda: InstructorEvaluation(score=40.0), test_logger
        )
        assert isinstance(outcome, Degraded)
        assert outcome.result.score == 40.0
        assert outcome.fault.error_type == "ConnectionError"
        assert outcome.fault.message == "boom"

    def test_sync_fault(self):
        def evaluation():
            raise KeyError("missing")

        outcome = guarded_sync(Dimension.BELT_LEVEL, evaluation, InstructorEvaluation, test_logger)
        assert outcome.degraded is True
        assert outcome.fault.dimension is Dimension.BELT_LEVEL


# ===========================================================================
# Instructor
# ===========================================================================


class TestInstructorEvaluator:
    @pytest.mark.asyncio
    async def test_registered_elite_by_name(self, registry, make_candidate):
        outcome = await InstructorEvaluator(registry).evaluate(
            make_candidate(instructor_name="John Danaher")
        )
        result = outcome.result
        assert isinstance(outcome, Ok)
        assert result.tier is InstructorTier.ELITE
        assert result.score == 95
        assert result.auto_accept is True
        assert "Specialist in: leg locks" in result.reasons_good

    @pytest.mark.asyncio
    async def test_lookup_by_channel(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(
            make_candidate(channel_id="UC_scully")
        )).result
        assert result.tier is InstructorTier.HIGH_QUALITY
        assert result.score == 80
        assert result.matched_name == "Jason Scully"

    @pytest.mark.asyncio
    async def test_name_extracted_from_title(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(
            make_candidate(title="John Danaher armbar details")
        )).result
        assert result.tier is InstructorTier.ELITE

    @pytest.mark.asyncio
    async def test_extracted_but_unregistered_name(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(
            make_candidate(title="Gordon Ryan back takes")
        )).result
        assert result.tier is InstructorTier.UNKNOWN
        assert result.score == 40
        assert result.matched_name == "Gordon Ryan"

    @pytest.mark.asyncio
    async def test_gym_keyword_bonus(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(
            make_candidate(instructor_name="Gracie Barra Coach")
        )).result
        assert result.score == 50
        assert "Associated with reputable gym" in result.reasons_good

    @pytest.mark.asyncio
    async def test_regional_name_bonus(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(
            make_candidate(instructor_name="Joao da Silva")
        )).result
        assert result.score == 45

    @pytest.mark.asyncio
    async def test_no_name_no_channel(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(
            make_candidate(channel_id=None)
        )).result
        assert result.score == 40
        assert result.tier is InstructorTier.UNKNOWN

    @pytest.mark.asyncio
    async def test_unknown_channel_without_name(self, registry, make_candidate):
        result = (await InstructorEvaluator(registry).evaluate(make_candidate())).result
        assert result.score == 30

    @pytest.mark.asyncio
    async def test_registry_fault_degrades(self, failing_store, make_candidate):
        outcome = await InstructorEvaluator(failing_store).evaluate(
            make_candidate(instructor_name="John Danaher")
        )
        assert isinstance(outcome, Degraded)
        assert outcome.result.score == 40
        assert outcome.result.tier is InstructorTier.UNKNOWN

    @pytest.mark.asyncio
    async def test_custom_title_classifier(self, registry, make_candidate):
        class AlwaysScully:
            def classify(self, text):
                return "Jason Scully"

        evaluator = InstructorEvaluator(registry, title_classifier=AlwaysScully())
        result = (await evaluator.evaluate(make_candidate(channel_id=None))).result
        assert result.tier is InstructorTier.HIGH_QUALITY


class TestRegisterInstructor:
    @pytest.mark.asyncio
    async def test_registers(self, empty_registry):
        saved = await register_instructor(
            empty_registry, "  Craig Jones ", "UC_cj", InstructorTier.ELITE, 93, auto_accept=True
        )
        assert saved.name == "Craig Jones"
        assert (await empty_registry.get_instructor_by_name("craig jones")).auto_accept is True

    @pytest.mark.asyncio
    async def test_unknown_tier_rejected(self, empty_registry):
        with pytest.raises(ValidationError, match="unknown"):
            await register_instructor(empty_registry, "X", None, InstructorTier.UNKNOWN, 50)

    @pytest.mark.asyncio
    async def test_score_out_of_range(self, empty_registry):
        with pytest.raises(ValidationError, match="credibility_score"):
            await register_instructor(empty_registry, "X", None, InstructorTier.ELITE, 120)


# ===========================================================================
# Taxonomy
# ===========================================================================


class TestTaxonomyMapper:
    @pytest.mark.asyncio
    async def test_catalogued(self, registry, make_candidate):
        result = (await TaxonomyMapper(registry).evaluate(make_candidate())).result
        assert result.technique_found is True
        assert result.score == 85
        assert result.priority == 8
        assert result.technique_name == "triangle_choke"

    @pytest.mark.asyncio
    async def test_not_catalogued_is_not_rejection(self, registry, make_candidate):
        result = (await TaxonomyMapper(registry).evaluate(
            make_candidate(technique_name="Imanari Roll")
        )).result
        assert result.technique_found is False
        assert result.score == 40
        assert "not_catalogued" in result.tags
        assert result.target_count == 30

    @pytest.mark.asyncio
    async def test_gi_mismatch(self, registry, make_candidate):
        result = (await TaxonomyMapper(registry).evaluate(
            make_candidate(technique_name="Collar Sleeve Guard", gi_or_nogi="No-Gi")
        )).result
        assert result.score == 65
        assert "no-gi version of gi-only" in result.reasons_bad[0]

    @pytest.mark.asyncio
    async def test_category_mismatch(self, registry, make_candidate):
        result = (await TaxonomyMapper(registry).evaluate(
            make_candidate(category="guard")
        )).result
        assert result.score == 75

    @pytest.mark.asyncio
    async def test_fault_default(self, failing_store, make_candidate):
        outcome = await TaxonomyMapper(failing_store).evaluate(make_candidate())
        assert outcome.degraded
        assert outcome.result.score == 30
        assert outcome.result.priority == 1

    @pytest.mark.asyncio
    async def test_add_technique_normalizes(self, empty_registry):
        entry = await add_technique(empty_registry, "Crab Ride", "back", target_video_count=20)
        assert entry.technique_name == "crab_ride"
        assert (await empty_registry.get_taxonomy_entry("crab_ride")).target_video_count == 20

    @pytest.mark.asyncio
    async def test_add_technique_bad_applicability(self, empty_registry):
        with pytest.raises(ValueError):
            await add_technique(empty_registry, "Crab Ride", "back", gi_applicability="sometimes")


# ===========================================================================
# Coverage
# ===========================================================================


class TestCoverageHelpers:
    @pytest.mark.parametrize(
        "ratio, count, expected",
        [
            (0.1, 2, 25), (0.1, 12, 10),
            (0.4, 2, 15), (0.4, 12, 8),
            (0.6, 2, 5), (0.6, 12, 3),
            (0.9, 2, 0), (0.9, 40, 0),
        ],
    )
    def test_gap_boost_bands(self, ratio, count, expected):
        assert gap_boost(ratio, count) == expected

    def test_least_represented_tie_goes_to_latest_level(self):
        assert least_represented_level({"beginner": 0, "intermediate": 0, "advanced": 0}) == "advanced"
        assert least_represented_level({"beginner": 3, "intermediate": 1, "advanced": 1}) == "advanced"
        assert least_represented_level({"beginner": 1, "intermediate": 1, "advanced": 3}) == "intermediate"
        assert least_represented_level({"beginner": 0, "intermediate": 2, "advanced": 3}) == "beginner"


class TestCoverageAnalyzer:
    @pytest.mark.asyncio
    async def test_common_technique_boost_is_capped(self, registry, make_candidate):
        result = (await CoverageAnalyzer(registry).evaluate(make_candidate())).result
        assert result.current_count == 12
        assert result.coverage_ratio == pytest.approx(0.24)
        assert result.gap_boost == 10
        assert result.score == 24
        assert result.needs_more is True
        assert "common" in result.tags

    @pytest.mark.asyncio
    async def test_least_represented_skill_bonus(self, registry, make_candidate):
        result = (await CoverageAnalyzer(registry).evaluate(
            make_candidate(difficulty_score=8)
        )).result
        assert result.gap_boost == 15
        assert result.skill_level_needed == "advanced"

    @pytest.mark.asyncio
    async def test_unknown_difficulty_counts_as_intermediate(self, empty_registry, make_candidate):
        empty_registry.coverage["armbar"] = CoverageRecord(
            technique_name="armbar", current_count=10, target_count=50,
            beginner_count=5, intermediate_count=0, advanced_count=5,
        )
        analyzer = CoverageAnalyzer(empty_registry)
        unknown = (await analyzer.evaluate(
            make_candidate(technique_name="Armbar", difficulty_score=None)
        )).result
        known = (await analyzer.evaluate(
            make_candidate(technique_name="Armbar", difficulty_score=5)
        )).result
        assert unknown.gap_boost == 15
        assert unknown.skill_level_needed == "intermediate"
        assert known.gap_boost == 15

    @pytest.mark.asyncio
    async def test_missing_record_counts_library(self, registry, make_candidate):
        registry.add_library_video("lib_x", "Imanari Roll")
        result = (await CoverageAnalyzer(registry).evaluate(
            make_candidate(technique_name="Imanari Roll")
        )).result
        assert result.current_count == 1
        assert result.target_count == 50
        assert result.gap_boost == 25

    @pytest.mark.asyncio
    async def test_well_covered(self, empty_registry, make_candidate):
        empty_registry.coverage["armbar"] = CoverageRecord(
            technique_name="armbar", current_count=45, target_count=50,
            beginner_count=15, intermediate_count=15, advanced_count=15,
        )
        result = (await CoverageAnalyzer(empty_registry).evaluate(
            make_candidate(technique_name="Armbar")
        )).result
        assert result.gap_boost == 0
        assert result.needs_more is False
        assert result.score == 90

    @pytest.mark.asyncio
    async def test_score_capped_at_100(self, empty_registry, make_candidate):
        empty_registry.coverage["armbar"] = CoverageRecord(
            technique_name="armbar", current_count=80, target_count=50,
            beginner_count=30, intermediate_count=30, advanced_count=20,
        )
        result = (await CoverageAnalyzer(empty_registry).evaluate(
            make_candidate(technique_name="Armbar")
        )).result
        assert result.score == 100

    @pytest.mark.asyncio
    async def test_fault_default(self, failing_store, make_candidate):
        outcome = await CoverageAnalyzer(failing_store).evaluate(make_candidate())
        assert outcome.degraded
        assert outcome.result.gap_boost == 10
        assert outcome.result.needs_more is True


# ===========================================================================
# Uniqueness
# ===========================================================================


class TestUniquenessAssessor:
    @pytest.mark.asyncio
    async def test_exact_duplicate_blocks(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(video_id="lib_tri_01")
        )).result
        assert result.score == 0
        assert result.should_add is False
        assert result.exact_duplicate is True
        assert result.blocking is True

    @pytest.mark.asyncio
    async def test_new_instructor_adds_variety(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(make_candidate())).result
        assert result.score == 80
        assert result.should_add is True
        assert "Adds instructor variety to library" in result.reasons_good

    @pytest.mark.asyncio
    async def test_redundant_without_novelty_fails_gate(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(instructor_name="John Danaher", title="Triangle choke finish")
        )).result
        assert result.score == 55
        assert result.should_add is False
        assert result.reasons_bad[0] == "Insufficient unique value (55/60)"

    @pytest.mark.asyncio
    async def test_novel_problem_rescues(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(
                instructor_name="John Danaher",
                title="Triangle choke finish",
                key_details={"problems_solved": ["opponent with long legs"]},
            )
        )).result
        assert result.score == 75
        assert result.should_add is True
        assert result.unique_value_reason == "Addresses unique problem: opponent with long legs"

    @pytest.mark.asyncio
    async def test_known_problem_and_variation_are_not_novel(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(
                instructor_name="John Danaher",
                title="Triangle choke finish",
                key_details={"problems_solved": ["Posture Breaking"], "variation": "classic"},
            )
        )).result
        assert result.score == 55

    @pytest.mark.asyncio
    async def test_unique_variation(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(
                instructor_name="John Danaher",
                title="Triangle choke finish",
                key_details={"variation": "inverted"},
            )
        )).result
        assert result.unique_value_reason == "Shows unique variation: inverted"

    @pytest.mark.asyncio
    async def test_unique_angle_bonus(self, registry, make_candidate):
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(title="Common mistakes in the triangle choke")
        )).result
        assert result.score == 90
        assert "angle:mistakes" in result.tags
        assert result.unique_value_reason == "Common mistakes breakdown"

    @pytest.mark.asyncio
    async def test_duplicate_risk(self, registry, make_candidate):
        for i in range(2):
            registry.add_library_video(f"lib_extra_{i}", "Triangle Choke", "John Danaher")
        result = (await UniquenessAssessor(registry).evaluate(
            make_candidate(instructor_name="John Danaher")
        )).result
        assert result.similar_count == 3
        assert result.duplicate_risk is True

    @pytest.mark.asyncio
    async def test_fault_default(self, failing_store, make_candidate):
        outcome = await UniquenessAssessor(failing_store).evaluate(make_candidate())
        assert outcome.degraded
        assert outcome.result.should_add is True
        assert outcome.result.score == 70


# ===========================================================================
# User feedback
# ===========================================================================


class TestUserFeedbackAnalyzer:
    @pytest.mark.asyncio
    async def test_new_candidate_is_neutral_without_store_call(self, failing_store, make_candidate):
        outcome = await UserFeedbackAnalyzer(failing_store).evaluate(make_candidate())
        assert isinstance(outcome, Ok)
        assert outcome.result.score == 50
        assert outcome.result.has_performance_data is False
        failing_store.get_performance.assert_not_called()

    @pytest.mark.asyncio
    async def test_strong_history(self, registry, make_candidate):
        result = (await UserFeedbackAnalyzer(registry).evaluate(
            make_candidate(existing_video_id=101)
        )).result
        assert result.has_performance_data is True
        assert result.score == 100
        assert result.performance_boost == 28

    @pytest.mark.asyncio
    async def test_missing_history_is_neutral(self, registry, make_candidate):
        result = (await UserFeedbackAnalyzer(registry).evaluate(
            make_candidate(existing_video_id=999)
        )).result
        assert result.score == 50

    def test_positive_ratio(self):
        result = score_performance(PerformanceRecord(video_id=1, helpful_count=7, unhelpful_count=3))
        assert result.score == 65
        assert result.boost == 7

    def test_too_few_votes(self):
        result = score_performance(PerformanceRecord(video_id=1, helpful_count=4))
        assert result.score == 50
        assert result.boost == 0

    def test_recommendations_need_volume(self):
        result = score_performance(
            PerformanceRecord(video_id=1, recommendation_success_rate=0.9, recommended_count=9)
        )
        assert result.boost == 0


# ===========================================================================
# Belt level
# ===========================================================================


class TestBeltLevel:
    def test_beginner_fundamentals(self):
        result = analyze_belt_level(2, None, {"summary": "basic fundamentals"})
        assert result.target_levels == ["white", "blue"]
        assert result.score == 85
        assert result.balance_boost == 12

    def test_advanced_details(self):
        result = analyze_belt_level(8, None, {"notes": "timing of the counter"})
        assert result.target_levels == ["purple", "brown", "black"]
        assert result.score == 80
        assert result.balance_boost == 8

    def test_intermediate_plain(self):
        result = analyze_belt_level(5, None, {})
        assert result.target_levels == ["blue", "purple"]
        assert result.score == 70
        assert result.balance_boost == 2

    def test_fundamentals_without_white_target(self):
        result = analyze_belt_level(5, None, {"summary": "basic"})
        assert result.score == 70

    def test_explicit_tags_win(self):
        result = analyze_belt_level(9, ["White"], {"summary": "basic"})
        assert result.target_levels == ["white"]
        assert result.score == 85
        assert result.balance_boost == 5

    def test_unknown_difficulty(self):
        result = analyze_belt_level(None, None, {})
        assert result.target_levels == []
        assert result.score == 70
        assert result.balance_boost == 0

    def test_progression_bonus(self):
        result = analyze_belt_level(5, None, {"prerequisites": ["closed guard"]})
        assert result.score == 75

    def test_analyzer_wraps_candidate(self, make_candidate):
        outcome = BeltLevelAnalyzer().evaluate(make_candidate(difficulty_score=2))
        assert isinstance(outcome, Ok)
        assert outcome.result.target_levels == ["white", "blue"]


# ===========================================================================
# Emerging
# ===========================================================================


class TestEmergingTechniqueDetector:
    @pytest.mark.asyncio
    async def test_validated_registry_entry(self, registry, make_candidate, sample_utc_now):
        result = (await EmergingTechniqueDetector(registry).evaluate(
            make_candidate(technique_name="Crab Ride"), sample_utc_now
        )).result
        assert result.is_emerging is True
        assert result.status is EmergingStatus.VALIDATED
        assert result.boost == 25
        assert result.confidence_score == 80
        assert result.newly_detected is False

    @pytest.mark.asyncio
    async def test_monitoring_registry_entry(self, empty_registry, make_candidate, sample_utc_now):
        empty_registry.emerging["berimbolo"] = EmergingTechniqueRecord(
            technique_name="berimbolo", status=EmergingStatus.MONITORING, confidence_score=60
        )
        result = (await EmergingTechniqueDetector(empty_registry).evaluate(
            make_candidate(technique_name="Berimbolo"), sample_utc_now
        )).result
        assert result.boost == 15

    @pytest.mark.asyncio
    async def test_new_technique_all_signals(self, empty_registry, make_candidate, sample_utc_now):
        result = (await EmergingTechniqueDetector(empty_registry).evaluate(
            make_candidate(
                technique_name="Modern Back Take",
                instructor_name="Gordon Ryan",
                published_at=sample_utc_now - timedelta(days=30),
            ),
            sample_utc_now,
        )).result
        assert result.confidence_score == 100
        assert result.boost == 15
        assert result.newly_detected is True
        assert result.status is EmergingStatus.MONITORING

    @pytest.mark.asyncio
    async def test_recent_upload_alone_reaches_threshold(
        self, empty_registry, make_candidate, sample_utc_now
    ):
        result = (await EmergingTechniqueDetector(empty_registry).evaluate(
            make_candidate(published_at=sample_utc_now - timedelta(days=10)), sample_utc_now
        )).result
        assert result.confidence_score == 60
        assert result.is_emerging is True
        assert result.boost == 0

    @pytest.mark.asyncio
    async def test_old_plain_technique(self, empty_registry, make_candidate, sample_utc_now):
        result = (await EmergingTechniqueDetector(empty_registry).evaluate(
            make_candidate(), sample_utc_now
        )).result
        assert result.confidence_score == 40
        assert result.is_emerging is False
        assert result.newly_detected is False

    @pytest.mark.asyncio
    async def test_evaluation_is_read_only(self, empty_registry, make_candidate, sample_utc_now):
        await EmergingTechniqueDetector(empty_registry).evaluate(
            make_candidate(instructor_name="Gordon Ryan", published_at=sample_utc_now),
            sample_utc_now,
        )
        assert empty_registry.emerging == {}

    @pytest.mark.asyncio
    async def test_fault_default(self, failing_store, make_candidate, sample_utc_now):
        outcome = await EmergingTechniqueDetector(failing_store).evaluate(
            make_candidate(), sample_utc_now
        )
        assert outcome.degraded
        assert outcome.result.is_emerging is False
        assert outcome.result.boost == 0


# ===========================================================================
# YouTube metrics
# ===========================================================================


class TestYouTubeMetrics:
    def test_low_confidence_dampening(self, sample_utc_now):
        result = analyze_youtube_metrics(500, 30, 3, None, 100000, sample_utc_now)
        assert result.like_score == 80
        assert result.comment_score == 80
        assert result.engagement_score == 80
        assert result.confidence is ConfidenceTier.LOW
        assert result.score == 24.0

    def test_high_confidence(self, sample_utc_now):
        result = analyze_youtube_metrics(20000, 1200, 120, None, 100000, sample_utc_now)
        assert result.confidence is ConfidenceTier.HIGH
        assert result.score == 80.0

    def test_medium_confidence(self, sample_utc_now):
        result = analyze_youtube_metrics(2000, 120, 12, None, 100000, sample_utc_now)
        assert result.confidence is ConfidenceTier.MEDIUM
        assert result.score == 56.0

    def test_monotonic_in_like_rate(self, sample_utc_now):
        scores = [
            analyze_youtube_metrics(10000, likes, 50, None, 100000, sample_utc_now).score
            for likes in range(0, 1200, 50)
        ]
        assert scores == sorted(scores)

    def test_zero_views(self, sample_utc_now):
        result = analyze_youtube_metrics(0, 0, 0, None, 0, sample_utc_now)
        assert result.like_rate == 0
        assert result.score == 7.2

    def test_hidden_gem_and_viral(self, sample_utc_now):
        result = analyze_youtube_metrics(5000, 100, 5, None, 1000, sample_utc_now)
        assert result.signals.hidden_gem is True
        assert result.signals.viral is True

    def test_trending(self, sample_utc_now):
        result = analyze_youtube_metrics(
            10000, 100, 5, sample_utc_now - timedelta(days=2), 1_000_000, sample_utc_now
        )
        assert result.signals.trending is True
        assert result.signals.evergreen is False

    def test_evergreen(self, sample_utc_now):
        result = analyze_youtube_metrics(
            100000, 100, 5, sample_utc_now - timedelta(days=400), 1_000_000, sample_utc_now
        )
        assert result.signals.evergreen is True
        assert result.signals.special is True

    def test_zero_subscribers_treated_as_one(self, sample_utc_now):
        result = analyze_youtube_metrics(10, 0, 0, None, 0, sample_utc_now)
        assert result.view_to_sub_ratio == 10

    def test_analyzer_uses_candidate(self, make_candidate, sample_utc_now):
        outcome = YouTubeMetricsAnalyzer().evaluate(make_candidate(), sample_utc_now)
        assert outcome.result.views == 2000
        assert outcome.result.days_since_publish == pytest.approx(365)


# ===========================================================================
# Content quality
# ===========================================================================

INSTRUCTIONAL_TITLE = "How to finish the triangle choke from closed guard"
INSTRUCTIONAL_DESCRIPTION = "Step by step breakdown of the setup and common mistakes"


class TestContentQuality:
    def test_instructional_non_elite(self):
        result = ContentQualityAnalyzer().analyze(INSTRUCTIONAL_TITLE, INSTRUCTIONAL_DESCRIPTION)
        assert result.content_type is ContentType.INSTRUCTIONAL
        assert result.is_instructional is True
        assert result.positive_flag_count == 4
        assert result.score == 90

    def test_instructional_elite(self):
        result = ContentQualityAnalyzer().analyze(
            INSTRUCTIONAL_TITLE, INSTRUCTIONAL_DESCRIPTION, InstructorTier.ELITE
        )
        assert result.score == 95

    def test_elite_vlog(self):
        result = ContentQualityAnalyzer().analyze(
            "Gordon Ryan Vlog: Day in the Life", "", InstructorTier.ELITE
        )
        assert result.content_type is ContentType.VLOG
        assert result.is_instructional is False
        assert result.score == 25

    def test_non_elite_vlog(self):
        result = ContentQualityAnalyzer().analyze("Gordon Ryan Vlog: Day in the Life", "")
        assert result.score == 20
        assert "Appears to be vlog/personal content" in result.reasons_bad

    def test_ambiguous_text_trusts_elite_only(self):
        analyzer = ContentQualityAnalyzer()
        elite = analyzer.analyze("Sunday open mat thoughts", "", InstructorTier.ELITE)
        other = analyzer.analyze("Sunday open mat thoughts", "", InstructorTier.HIGH_QUALITY)
        assert elite.content_type is ContentType.OTHER
        assert elite.is_instructional is True
        assert elite.score == 75
        assert other.is_instructional is False
        assert other.score == 20

    def test_clickbait_penalty(self):
        result = ContentQualityAnalyzer().analyze("Insane armbar setup you won't believe", "")
        assert result.has_clickbait is True
        assert result.score == 45

    def test_short_title_penalty(self):
        result = ContentQualityAnalyzer().analyze("Armbar", "")
        assert result.too_short_title is True
        assert result.score == 40

    def test_generic_title_penalty(self):
        result = ContentQualityAnalyzer().analyze("BJJ technique", "")
        assert result.too_generic is True
        assert result.score == 25

    def test_elite_short_title_not_penalized(self):
        result = ContentQualityAnalyzer().analyze("Armbar", "", InstructorTier.ELITE)
        assert result.score == 75

    def test_depth(self):
        result = ContentQualityAnalyzer().analyze("Advanced guard passing details", "")
        assert result.technique_depth == "advanced"

    def test_injected_classifier(self, make_candidate):
        class AlwaysVlog:
            def classify(self, text):
                return "vlog"

        outcome = ContentQualityAnalyzer(type_classifier=AlwaysVlog()).evaluate(
            make_candidate(), InstructorTier.UNKNOWN
        )
        assert outcome.result.content_type is ContentType.VLOG
        assert outcome.result.is_instructional is False

    def test_classifier_fault_degrades(self, make_candidate):
        class Broken:
            def classify(self, text):
                raise RuntimeError("model offline")

        outcome = ContentQualityAnalyzer(type_classifier=Broken()).evaluate(
            make_candidate(), InstructorTier.UNKNOWN
        )
        assert isinstance(outcome, Degraded)
        assert outcome.result.score == 50
