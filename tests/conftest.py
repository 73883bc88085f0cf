"""Shared fixtures for the curation engine test suite."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from curation.config import reset_settings
from curation.database import InMemoryRegistry, reset_registry
from curation.logging import reset_logger
from curation.models import (
    Decision,
    DecisionMetadata,
    Degraded,
    Dimension,
    DimensionSnapshot,
    Fault,
    Ok,
    Outcome,
    UniquenessAnalysis,
    VideoCandidate,
)


# ---------------------------------------------------------------------------
# Ensure we don't hit real services or pick up local overrides
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _block_env_keys(monkeypatch):
    """Clear credentials and router overrides so tests are hermetic."""
    keys = [
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "CURATION_ROUTER_PROFILE",
        "CURATION_ELITE_FAILURE_OUTCOME",
        "CURATION_DEGRADED_POLICY",
        "CURATION_MAX_CONCURRENCY",
    ]
    for key in keys:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_singletons():
    reset_settings()
    reset_registry()
    reset_logger()
    yield
    reset_settings()
    reset_registry()
    reset_logger()


# ---------------------------------------------------------------------------
# Common datetime fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def sample_utc_now():
    """A fixed UTC datetime for deterministic tests."""
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------
@pytest.fixture
def make_candidate(sample_utc_now):
    """Factory for candidates; keyword arguments override the defaults.

    The defaults describe an instructional video from an unregistered
    instructor, published a year before ``sample_utc_now``, with too few
    views for the metrics path.
    """

    def _make(**overrides):
        data = dict(
            video_id="vid_001",
            title="How to finish the triangle choke from closed guard",
            technique_name="Triangle Choke",
            description="Step by step breakdown of the setup and common mistakes",
            channel_id="UC_unknown",
            channel_name="Some Grappling Channel",
            channel_subscribers=50000,
            instructor_name=None,
            difficulty_score=5.0,
            view_count=2000,
            like_count=100,
            comment_count=10,
            published_at=sample_utc_now - timedelta(days=365),
        )
        data.update(overrides)
        return VideoCandidate(**data)

    return _make


@pytest.fixture
def make_decision():
    """Factory for bare decisions, for code that only consumes them."""

    def _make(video_id="vid_001", outcome=Outcome.ACCEPT, path="Elite Instructor",
              score=90.0, effects=None, degraded=False):
        uniqueness = UniquenessAnalysis(score=80.0)
        if degraded:
            fault = Fault(Dimension.UNIQUENESS, "ConnectionError", "down")
            outcomes = {Dimension.UNIQUENESS: Degraded(uniqueness, fault)}
        else:
            outcomes = {Dimension.UNIQUENESS: Ok(uniqueness)}
        return Decision(
            video_id=video_id,
            outcome=outcome,
            final_score=score,
            path=path,
            reason="test decision",
            dimensions=DimensionSnapshot(outcomes),
            metadata=DecisionMetadata(
                primary_technique="Triangle Choke",
                skill_level="intermediate",
                instructor_name="John Danaher",
                instructor_tier="elite",
            ),
            effects=list(effects or []),
        )

    return _make


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
SEED = {
    "instructors": [
        {
            "name": "John Danaher",
            "channel_id": "UC_danaher",
            "tier": "elite",
            "credibility_score": 95,
            "auto_accept": True,
            "boost_multiplier": 1.5,
            "specialties": ["leg locks"],
        },
        {
            "name": "Jason Scully",
            "channel_id": "UC_scully",
            "tier": "high_quality",
            "credibility_score": 80,
            "boost_multiplier": 1.2,
        },
        {
            "name": "Local Coach",
            "channel_id": "UC_local",
            "tier": "emerging",
            "credibility_score": 30,
        },
    ],
    "taxonomy": [
        {
            "technique_name": "Triangle Choke",
            "category": "submissions",
            "priority": 8,
            "target_video_count": 50,
            "gi_applicability": "both",
        },
        {
            "technique_name": "Collar Sleeve Guard",
            "category": "guard",
            "gi_applicability": "gi_only",
        },
    ],
    "coverage": [
        {
            "technique_name": "Triangle Choke",
            "current_count": 12,
            "target_count": 50,
            "beginner_count": 6,
            "intermediate_count": 4,
            "advanced_count": 2,
        },
    ],
    "emerging": [
        {
            "technique_name": "Crab Ride",
            "status": "validated",
            "confidence_score": 80,
            "video_count": 14,
        },
    ],
    "performance": [
        {
            "video_id": 101,
            "helpful_count": 45,
            "unhelpful_count": 5,
            "watch_completion_rate": 0.85,
            "recommendation_success_rate": 0.6,
            "recommended_count": 20,
            "saved_count": 12,
        },
    ],
    "library": [
        {
            "video_id": "lib_tri_01",
            "technique_name": "Triangle Choke",
            "instructor_name": "John Danaher",
            "problems_solved": ["posture breaking"],
            "key_details": {"variation": "classic"},
        },
    ],
}


@pytest.fixture
def seed_data():
    return SEED


@pytest.fixture
def registry():
    """A freshly seeded in-memory registry."""
    return InMemoryRegistry.from_dict(SEED)


@pytest.fixture
def empty_registry():
    return InMemoryRegistry()


@pytest.fixture
def failing_store():
    """A store whose every call raises, to exercise degraded outcomes."""
    store = MagicMock()
    for name in (
        "get_instructor_by_name",
        "get_instructor_by_channel",
        "get_taxonomy_entry",
        "get_coverage",
        "count_active_videos",
        "video_exists",
        "find_similar_videos",
        "get_emerging_technique",
        "get_performance",
        "increment_coverage",
        "upsert_emerging_technique",
    ):
        setattr(store, name, AsyncMock(side_effect=ConnectionError("registry unavailable")))
    return store


# ---------------------------------------------------------------------------
# Mock Supabase client
# ---------------------------------------------------------------------------
@pytest.fixture
def mock_supabase_client():
    """A mock Supabase async client whose queries return empty results."""
    client = MagicMock()
    table_mock = MagicMock()
    for method in ("select", "insert", "upsert", "eq", "ilike", "limit", "order"):
        getattr(table_mock, method).return_value = table_mock

    table_mock.execute = AsyncMock(return_value=MagicMock(data=[], count=0))
    client.table.return_value = table_mock

    rpc_mock = MagicMock()
    rpc_mock.execute = AsyncMock(return_value=MagicMock(data=None))
    client.rpc.return_value = rpc_mock
    return client
