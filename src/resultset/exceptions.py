"""
Result set exception classes.
"""


class ResultSetError(Exception):
    """Base class for all result set errors.

    Carries the optional query id of the statement that produced the rows
    so a failure can be traced back to the server-side query.
    """

    def __init__(self, message: str = '', query_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.query_id = query_id

    def __str__(self) -> str:
        if self.query_id:
            return f'{self.message} (query id: {self.query_id})'
        return self.message


class InvalidCursorState(ResultSetError):
    """Column access outside an active row, or use of a closed cursor.
    """


class IndexOutOfRange(ResultSetError, IndexError):
    """Column ordinal outside the 1-based column range.
    """

    def __init__(self, ordinal: int, column_count: int,
                 query_id: str | None = None) -> None:
        super().__init__(f'Invalid column index: {ordinal} '
                         f'(valid range is 1..{column_count})', query_id)
        self.ordinal = ordinal
        self.column_count = column_count


class UnknownColumn(ResultSetError):
    """Column name not present in the result schema.
    """

    def __init__(self, label: str | None, known: list[str],
                 query_id: str | None = None) -> None:
        if label is None:
            message = 'Column label is null'
        else:
            message = (f'Invalid column label: {label}. '
                       f'Valid column labels are: {known}')
        super().__init__(message, query_id)
        self.label = label
        self.known = known


class TypeMismatch(ResultSetError):
    """Value present but not convertible to the requested type.
    """

    def __init__(self, ordinal: int, raw_text: str, target: str,
                 query_id: str | None = None) -> None:
        super().__init__(f'Value at column {ordinal} is not a valid {target}: '
                         f'{raw_text!r}', query_id)
        self.ordinal = ordinal
        self.raw_text = raw_text
        self.target = target


class MalformedTemporalLiteral(ResultSetError, ValueError):
    """Date, time or timestamp text that does not match the grammar or has
    a field out of range.
    """

    def __init__(self, kind: str, text: str, reason: str | None = None) -> None:
        message = f'Invalid {kind}: {text!r}'
        if reason:
            message = f'{message} ({reason})'
        super().__init__(message)
        self.kind = kind
        self.text = text
        self.ordinal = None

    def at_column(self, ordinal: int) -> 'MalformedTemporalLiteral':
        """Name the column the literal was read from."""
        if self.ordinal is None and ordinal:
            self.ordinal = ordinal
            self.message = f'{self.message} at column {ordinal}'
        return self


class UpstreamFailure(ResultSetError):
    """Error reported by the row-producing sequence.
    """


class SchemaError(ResultSetError):
    """Malformed schema description handed to a cursor.
    """


DecodeError = (
    TypeMismatch,
    MalformedTemporalLiteral,
    )

CursorStateError = (
    InvalidCursorState,
    IndexOutOfRange,
    UnknownColumn,
    )
