"""Custom exception hierarchy for the trading journal."""


class JournalError(Exception):
    """Base exception for all journal errors."""


# --- Configuration ---
class ConfigError(JournalError):
    """Invalid or missing configuration."""


# --- Ledger ---
class TradeValidationError(JournalError):
    """Trade input rejected before any ledger mutation.

    ``field_errors`` maps each offending input field to a message.
    """

    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = dict(field_errors)
        details = "; ".join(f"{k}: {v}" for k, v in self.field_errors.items())
        super().__init__(f"Invalid trade input ({details})")


class TradeNotFoundError(JournalError):
    """No trade with the requested id exists in the ledger."""

    def __init__(self, trade_id: int):
        self.trade_id = trade_id
        super().__init__(f"Trade {trade_id} not found")


class CsvImportError(JournalError):
    """CSV file is empty or has no header line."""


# --- Remote mirror ---
class SheetsApiError(JournalError):
    """Raised by a tabular collaborator when a remote call fails.

    ``status`` is the HTTP status code when one is available.
    """

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class MirrorError(JournalError):
    """A mirror operation failed.  ``operation`` names the failed step."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class SpreadsheetNotFoundError(MirrorError):
    """The spreadsheet itself does not exist (as opposed to a missing tab)."""


class MirrorTransientError(MirrorError):
    """Network or API failure; safe to retry."""


# --- Insight ---
class InsightError(JournalError):
    """Insight generation failed."""
