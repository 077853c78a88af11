"""Error types shared by the scene and floor-plan layers."""

from dataclasses import dataclass, asdict
from typing import List


@dataclass(frozen=True)
class ValidationIssue:
    """A single violated constraint, addressed by a dotted/indexed field path."""
    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class SchemaValidationError(ValueError):
    """Raised when untrusted JSON does not match the scene or floor-plan schema.

    Carries every violation found, not just the first one.
    """

    def __init__(self, issues: List[ValidationIssue], what: str = "data"):
        self.issues = list(issues)
        summary = "; ".join(f"{i.field or '<root>'}: {i.message}" for i in self.issues[:5])
        if len(self.issues) > 5:
            summary += f"; ... ({len(self.issues) - 5} more)"
        super().__init__(f"Invalid {what}: {summary}")

    def to_dict(self) -> dict:
        return {"valid": False, "issues": [i.to_dict() for i in self.issues]}


class ConversionError(ValueError):
    """Raised when the format converter does not recognise the input shape."""


class FloorPlanAnalysisError(RuntimeError):
    """Raised when the hosted vision model fails to produce a usable analysis."""
