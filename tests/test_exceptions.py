"""Tests for the curation exception hierarchy."""

import pytest

from curation.exceptions import (
    ConfigurationError,
    CurationBaseError,
    EffectApplicationError,
    EvaluationError,
    RegistryError,
    ValidationError,
)
from curation.models import CoverageIncrement


class TestHierarchy:
    """Exceptions are grouped so callers can catch whole families."""

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_configuration_error_is_plain_exception(self):
        assert issubclass(ConfigurationError, Exception)
        assert not issubclass(ConfigurationError, CurationBaseError)

    @pytest.mark.parametrize("cls", [RegistryError, EvaluationError, EffectApplicationError])
    def test_curation_errors_share_base(self, cls):
        assert issubclass(cls, CurationBaseError)


class TestRegistryError:
    def test_message_and_operation(self):
        err = RegistryError("get_coverage", "timeout")
        assert err.operation == "get_coverage"
        assert str(err) == "Registry operation 'get_coverage' failed: timeout"


class TestEvaluationError:
    def test_prefixes_video_id(self):
        err = EvaluationError("missing dimensions", video_id="abc")
        assert err.video_id == "abc"
        assert str(err) == "[abc] missing dimensions"

    def test_without_video_id(self):
        err = EvaluationError("bad")
        assert err.video_id is None
        assert str(err) == "bad"


class TestEffectApplicationError:
    def test_keeps_effect_and_cause(self):
        effect = CoverageIncrement("triangle_choke", "beginner")
        cause = ConnectionError("down")
        err = EffectApplicationError(effect, cause)
        assert err.effect is effect
        assert err.cause is cause
        assert "down" in str(err)
