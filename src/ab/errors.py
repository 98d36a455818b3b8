"""Exceptions raised while resolving an experiment for a page view.

None of these reach the page render: the page-level entry points catch
ExperimentationError, log it, and fall back to "not running" or to serving
the control content.
"""

from typing import Any


class ExperimentationError(Exception):
    """Base exception for experiment resolution failures.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        context: Additional context about the failure
    """

    def __init__(
        self, message: str, error_code: str, context: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class ResourceUnavailable(ExperimentationError):
    """Raised by fetchers when a path cannot be retrieved."""

    def __init__(
        self,
        path: str,
        status: int | None = None,
        reason: str | None = None,
        error_code: str = "resource_unavailable",
    ) -> None:
        detail = f"status {status}" if status is not None else (reason or "request failed")
        super().__init__(
            message=f"Could not load '{path}': {detail}",
            error_code=error_code,
            context={"path": path, "status": status},
        )
        self.path = path
        self.status = status
        self.reason = reason


class ManifestUnavailable(ResourceUnavailable):
    """The experiment manifest could not be fetched."""

    def __init__(self, path: str, status: int | None = None, reason: str | None = None) -> None:
        super().__init__(path, status, reason, error_code="manifest_unavailable")


class ContentUnavailable(ResourceUnavailable):
    """Replacement content for a variant or campaign could not be fetched."""

    def __init__(self, path: str, status: int | None = None, reason: str | None = None) -> None:
        super().__init__(path, status, reason, error_code="content_unavailable")


class ManifestMalformed(ExperimentationError):
    """The manifest document lacks the expected sheets, rows or columns."""

    def __init__(self, reason: str, manifest: str | None = None) -> None:
        where = f" ({manifest})" if manifest else ""
        super().__init__(
            message=f"Malformed experiment manifest{where}: {reason}",
            error_code="manifest_malformed",
            context={"manifest": manifest, "reason": reason},
        )
        self.reason = reason


class ConfigInvalid(ExperimentationError):
    """A parsed configuration failed validation."""

    def __init__(self, experiment_id: str | None, reason: str) -> None:
        super().__init__(
            message=f"Invalid configuration for experiment '{experiment_id}': {reason}",
            error_code="config_invalid",
            context={"experiment_id": experiment_id, "reason": reason},
        )
        self.experiment_id = experiment_id


class DecisionUnavailable(ExperimentationError):
    """The decision evaluator failed or returned no treatment."""

    def __init__(self, experiment_id: str | None, reason: str) -> None:
        super().__init__(
            message=f"No decision for experiment '{experiment_id}': {reason}",
            error_code="decision_unavailable",
            context={"experiment_id": experiment_id, "reason": reason},
        )
        self.experiment_id = experiment_id
