# payroll_etl/common/exceptions.py
"""
Custom exceptions for the payroll ETL pipeline.
Provides specific error types for each pipeline step.
"""

from typing import Optional, Dict, Any


class ETLError(Exception):
    """Base exception for all ETL errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class SourceUnavailableError(ETLError):
    """Raised when an ingestion source cannot be read."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if source:
            details["source"] = source
        super().__init__(message, details=details, **kwargs)
        self.source = source


class MalformedRecordError(ETLError):
    """Raised when a source row violates the expected field count or types."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if file_path:
            details["file_path"] = file_path
        if line_number is not None:
            details["line_number"] = line_number
        super().__init__(message, details=details, **kwargs)
        self.file_path = file_path
        self.line_number = line_number


class ParameterError(ETLError):
    """Raised when a pipeline parameter is missing or invalid."""

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Any = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if parameter:
            details["parameter"] = parameter
            details["value"] = repr(value)
        super().__init__(message, details=details, **kwargs)
        self.parameter = parameter
        self.value = value


class TableLoadError(ETLError):
    """Raised when writing source records to a staging table fails."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if table_name:
            details["table_name"] = table_name
        super().__init__(message, details=details, **kwargs)
        self.table_name = table_name


class DestinationWriteError(ETLError):
    """Raised when writing the summary to a sink destination fails."""

    def __init__(
        self,
        message: str,
        destination: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if destination:
            details["destination"] = destination
        super().__init__(message, details=details, **kwargs)
        self.destination = destination


class PipelineHaltError(ETLError):
    """Raised when a pipeline step fails and downstream steps are halted."""

    def __init__(
        self,
        message: str,
        step: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if step:
            details["step"] = step
        super().__init__(message, details=details, **kwargs)
        self.step = step
