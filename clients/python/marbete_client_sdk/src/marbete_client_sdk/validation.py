from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    row_index: int | None
    field: str
    reason: str


class ClientValidationError(ValueError):
    """Local validation failure; nothing reached the network."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if not self.issues:
            return "Validation failed"
        issue = self.issues[0]
        location = f"row {issue.row_index}" if issue.row_index is not None else "payload"
        return f"{location} {issue.field}: {issue.reason}"


class LocationRequiredError(ClientValidationError):
    def __init__(self) -> None:
        super().__init__([ValidationIssue(None, "location", "location is required for dynamic-location sessions")])


class BatchLimitReachedError(ClientValidationError):
    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__([ValidationIssue(None, "product_code", f"batch limit reached ({limit} entries)")])


class PendingEntriesError(ClientValidationError):
    def __init__(self, pending: int) -> None:
        self.pending = pending
        super().__init__([ValidationIssue(None, "entries", f"{pending} entries have not been synced")])


def require_text(value, field: str, row_index: int | None = None) -> str:
    text = "" if value is None else str(value).strip()
    if not text:
        raise ClientValidationError([ValidationIssue(row_index, field, f"{field} is required")])
    return text


def coerce_quantity(value) -> int:
    """Integer coercion for typed quantities; blank or unparsable input is 0."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            return 0
