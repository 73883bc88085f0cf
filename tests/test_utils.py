"""Tests for curation.utils."""

from datetime import datetime, timedelta, timezone

import pytest

from curation.utils import (
    clamp,
    difficulty_to_skill_level,
    ensure_utc,
    generate_id,
    normalize_technique_name,
    parse_datetime,
    utc_now,
)


class TestTimeHelpers:
    def test_utc_now_is_aware(self):
        now = utc_now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_ensure_utc_treats_naive_as_utc(self):
        naive = datetime(2025, 1, 1, 12, 0, 0)
        result = ensure_utc(naive)
        assert result.tzinfo == timezone.utc
        assert result.hour == 12

    def test_ensure_utc_converts_other_zones(self):
        plus_two = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2025, 1, 1, 12, 0, 0, tzinfo=plus_two))
        assert result.hour == 10

    def test_parse_iso_with_z_suffix(self):
        result = parse_datetime("2024-03-01T10:00:00Z")
        assert result == datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)

    def test_parse_epoch_seconds(self):
        assert parse_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, ""])
    def test_parse_empty_returns_none(self, value):
        assert parse_datetime(value) is None

    def test_parse_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_datetime("not a date")


class TestNormalizeTechniqueName:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Triangle Choke", "triangle_choke"),
            ("  Knee-Cut  Pass ", "kneecut_pass"),
            ("De La Riva (DLR) Guard", "de_la_riva_dlr_guard"),
            ("heel_hook", "heel_hook"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_technique_name(raw) == expected

    def test_idempotent(self):
        once = normalize_technique_name("Rear Naked Choke")
        assert normalize_technique_name(once) == once


class TestDifficultyToSkillLevel:
    @pytest.mark.parametrize(
        "score, level",
        [
            (None, "intermediate"),
            (1, "beginner"),
            (3, "beginner"),
            (3.5, "intermediate"),
            (6, "intermediate"),
            (7, "advanced"),
            (10, "advanced"),
        ],
    )
    def test_buckets(self, score, level):
        assert difficulty_to_skill_level(score) == level


class TestMisc:
    def test_generate_id_unique(self):
        assert generate_id() != generate_id()

    def test_clamp(self):
        assert clamp(120) == 100
        assert clamp(-5) == 0
        assert clamp(42.5) == 42.5
