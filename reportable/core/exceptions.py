# reportable/core/exceptions.py
"""Exception hierarchy for filters, query compilation and exports."""


class ReportableError(Exception):
    """Base class for every error raised by this package."""


class DecodeError(ReportableError, ValueError):
    """A serialized filter could not be decoded (bad token or operand shape)."""


class InvalidFilterError(ReportableError, ValueError):
    """A filter was constructed with an operand that does not fit its comparator."""


class CompileError(ReportableError):
    """A filter could not be translated against a query source."""


class ExecutionError(ReportableError):
    """Row iteration or writing the export artifact failed."""


class StorageError(ExecutionError):
    """The export artifact could not be stored."""


class InvalidTransitionError(ReportableError):
    """An export was asked to move to a status it cannot reach."""


class ExportNotRetryableError(InvalidTransitionError):
    """Only failed exports can be retried."""


class UnknownReportTypeError(ReportableError, LookupError):
    """A report descriptor names a type that is not registered."""
