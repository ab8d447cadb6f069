"""Error taxonomy for the deployment engine.

Every error carries a stable ``code`` so outer layers can map it without
string matching. Validation and precondition errors are always raised before
any state change; generation failures never leave the narrative layer.
"""

from __future__ import annotations


class MissionError(Exception):
    code = "mission_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MissionError):
    code = "validation_error"


class InvalidApproach(ValidationError):
    code = "invalid_approach"


class NotFoundError(MissionError):
    code = "not_found"


class MissionNotFound(NotFoundError):
    code = "mission_not_found"


class OperativeNotFound(NotFoundError):
    code = "operative_not_found"


class DeploymentNotFound(NotFoundError):
    code = "deployment_not_found"


class PreconditionError(MissionError):
    code = "precondition_failed"


class ResourceBusy(PreconditionError):
    code = "resource_busy"


class AlreadyInProgress(PreconditionError):
    code = "already_in_progress"


class PrerequisiteNotMet(PreconditionError):
    code = "prerequisite_not_met"


class MissionAlreadyCompleted(PreconditionError):
    code = "mission_already_completed"


class PersistenceFailure(MissionError):
    code = "persistence_failure"


class GenerationFailure(MissionError):
    """Narrative content could not be produced or failed validation."""

    code = "generation_failure"
