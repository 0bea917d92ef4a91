"""
StackRx Engine Errors

Every fatal condition in the prescription pipeline is an EngineError.
Stages raise; the orchestrator catches once and converts the error into
the GenerationResult contract (prescription=None, errors=[...]).
"""

from typing import List, Optional


class EngineError(Exception):
    """Base class for fatal pipeline errors."""

    code = "EngineError"

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_error_string(self) -> str:
        return self.message


class RequestValidationError(EngineError):
    """Malformed request (age out of range, missing demographics, unknown tier)."""

    code = "ValidationError"

    def to_error_string(self) -> str:
        if self.details:
            return f"{self.message}: {'; '.join(self.details)}"
        return self.message


class InvalidGoalError(EngineError):
    """Goal token is not part of the supported goal enumeration."""

    code = "InvalidGoal"

    def __init__(self, goal: str):
        super().__init__(f"Goal selection failed: Invalid goal: {goal}")
        self.goal = goal


class HardStopClinicalError(EngineError):
    """Absolute contraindication detected before supplement selection."""

    code = "HardStopClinical"

    def __init__(self, reason: str, rule_id: Optional[str] = None):
        super().__init__(f"HARD STOP: {reason}")
        self.reason = reason
        self.rule_id = rule_id


class SafetyHardBlockError(EngineError):
    """Assembled stack contains at least one CRITICAL hard block."""

    code = "SafetyHardBlock"

    def __init__(self, issues: List[str]):
        super().__init__(f"Safety violations: {'; '.join(issues)}", details=issues)
        self.issues = list(issues)
