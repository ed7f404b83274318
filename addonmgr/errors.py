"""
Error classes for addon lifecycle execution.

These error types enable retry classification at the reconcile boundary:
- TransientError: Safe to re-drive (backing store unavailable, timeouts)
- PermanentError: Re-driving the same input will fail again (malformed templates)

Every lifecycle error carries ``phase``, which is always ``Failed``. The
reconciliation driver catches AddonManagerError, records ``exc.phase`` on the
addon and decides when to call install() again.

Error handling contract:
- install() returns a LifecyclePhase on success
- Errors are exceptions, not values
- Nothing here is retried internally
"""

from addonmgr.schemas.lifecycle import LifecyclePhase


class AddonManagerError(Exception):
    """Base exception for addonmgr."""

    phase = LifecyclePhase.FAILED


class TransientError(AddonManagerError):
    """
    Transient error - the reconciliation driver may re-drive.

    Examples:
    - Backing store lookup failed with a server error
    - Request timed out or was cancelled
    - Connection reset
    """
    pass


class PermanentError(AddonManagerError):
    """
    Permanent error - re-driving with the same addon spec fails again.

    Examples:
    - Template is not valid YAML
    - Template has no spec
    - Embedded manifest is malformed
    """
    pass


class TemplateParseError(PermanentError):
    """The workflow template body is not well-formed YAML."""
    pass


class MissingSpecError(PermanentError):
    """The workflow template has no top-level ``spec``."""
    pass


class ParameterInjectionError(PermanentError):
    """``spec.arguments.parameters`` could not be written back."""
    pass


class ArtifactParseError(PermanentError):
    """
    An embedded artifact manifest could not be processed.

    Attributes:
        document: The offending manifest document text, for diagnosis
    """

    def __init__(self, message: str, document: str = ""):
        super().__init__(message)
        self.document = document


class SubmissionError(TransientError):
    """Backing store lookup, create, list or fetch failed (other than not-found)."""
    pass
