"""
Error taxonomy for the Sheet Ledger API.

Every error raised on the request path derives from SheetLedgerError and
carries the HTTP status the Flask layer should answer with.
"""


class SheetLedgerError(Exception):
    """Base class for all application errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SheetLedgerError):
    """The request body is missing a required field or is malformed."""

    status_code = 400


class UnknownColumn(ValidationError):
    """The requested field does not exist in the table header."""

    def __init__(self, column: str, sheet_name: str):
        super().__init__(f"Coluna desconhecida '{column}' na aba '{sheet_name}'.")
        self.column = column
        self.sheet_name = sheet_name


class InvalidRowNumber(ValidationError):
    """Row numbers below 2 would address the header row (or nothing)."""

    def __init__(self, row_number):
        super().__init__(
            f"ROW_NUMBER inválido: {row_number!r}. Deve ser um inteiro maior ou igual a 2."
        )
        self.row_number = row_number


class UnknownTable(SheetLedgerError):
    status_code = 404

    def __init__(self, table_key: str):
        super().__init__(f"Tabela desconhecida: '{table_key}'.")
        self.table_key = table_key


class RemoteOperationError(SheetLedgerError):
    """
    The Google Sheets backend rejected or failed a call.

    The original cause text is kept in ``cause`` so it can be surfaced to the
    caller as the ``error`` field of the response.
    """

    status_code = 500

    def __init__(self, message: str, cause: str = ""):
        super().__init__(message)
        self.cause = cause


class FormattingError(SheetLedgerError):
    """A best-effort cell formatting write failed. Never reaches the HTTP layer."""


class AuthenticationError(SheetLedgerError):
    """Credentials are missing or invalid, or the spreadsheet is unreachable."""
