"""Tests for addonmgr error classes.

Tests cover:
- Error hierarchy and retry classification
- Every lifecycle error surfaces the Failed phase
- ArtifactParseError carries the offending document
"""

import pytest

from addonmgr.errors import (
    AddonManagerError,
    ArtifactParseError,
    MissingSpecError,
    ParameterInjectionError,
    PermanentError,
    SubmissionError,
    TemplateParseError,
    TransientError,
)
from addonmgr.schemas import LifecyclePhase


class TestHierarchy:
    """Tests for the retry classification of lifecycle errors."""

    @pytest.mark.parametrize("error_cls", [
        TemplateParseError,
        MissingSpecError,
        ParameterInjectionError,
        ArtifactParseError,
    ])
    def test_input_errors_are_permanent(self, error_cls):
        """Malformed-input errors do not go away by re-driving."""
        assert issubclass(error_cls, PermanentError)
        assert not issubclass(error_cls, TransientError)

    def test_submission_error_is_transient(self):
        """Backing store failures may succeed when re-driven."""
        assert issubclass(SubmissionError, TransientError)

    def test_can_be_caught_as_base(self):
        """All lifecycle errors can be caught as AddonManagerError."""
        with pytest.raises(AddonManagerError):
            raise SubmissionError("store down")

    def test_has_message(self):
        """Errors keep their message."""
        assert str(MissingSpecError("invalid workflow, missing spec")) == "invalid workflow, missing spec"


class TestPhase:
    """Tests for the phase surfaced by errors."""

    @pytest.mark.parametrize("error_cls", [
        AddonManagerError,
        TemplateParseError,
        MissingSpecError,
        ParameterInjectionError,
        SubmissionError,
    ])
    def test_phase_is_failed(self, error_cls):
        """Every error reports the Failed lifecycle phase."""
        assert error_cls("boom").phase is LifecyclePhase.FAILED

    def test_artifact_parse_error_carries_document(self):
        """ArtifactParseError keeps the offending document for diagnosis."""
        error = ArtifactParseError("unable to unmarshall artifact", document="kind: [")
        assert error.document == "kind: ["
        assert error.phase is LifecyclePhase.FAILED
