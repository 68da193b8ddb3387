"""Validation report models."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class Severity(str, Enum):
    """How serious a content issue is."""
    error = "error"
    warning = "warning"


class ValidationIssue(BaseModel):
    """A single problem found in the collection."""

    severity: Severity
    code: str = Field(..., description="Stable identifier, e.g. missing-title")
    filename: str = Field(..., description="Post filename the issue belongs to")
    message: str = Field(..., description="Human readable explanation")

    def __str__(self) -> str:
        return f"{self.severity.value}: {self.filename}: {self.message} [{self.code}]"


class ValidationReport(BaseModel):
    """Result of validating a post collection."""

    checked: int = Field(default=0, description="Number of files checked")
    issues: list[ValidationIssue] = Field(default_factory=list)

    @computed_field
    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.error]

    @computed_field
    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.warning]

    @computed_field
    @property
    def is_valid(self) -> bool:
        """True when no errors were found; warnings are allowed."""
        return not self.errors

    def add(self, severity: Severity, code: str, filename: str, message: str) -> None:
        self.issues.append(
            ValidationIssue(severity=severity, code=code, filename=filename, message=message)
        )

    def for_file(self, filename: str) -> list[ValidationIssue]:
        """Issues reported for one file."""
        return [i for i in self.issues if i.filename == filename]

    def codes(self) -> set[str]:
        return {i.code for i in self.issues}
