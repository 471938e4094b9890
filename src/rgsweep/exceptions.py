#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the rgsweep library.

This module defines the exception classes raised while spawning search
processes, parsing their output and mutating files during a replace. None of
these errors is fatal to the host application: callers turn them into
warnings, exit codes, or per-file failure counts.

Exception Hierarchy
-------------------
- RgsweepError (base exception)

  - ValidationError (empty query/replacement, nothing to replace)

  - ProcessError (external process supervision)
    - SpawnError (executable missing or not launchable)
    - StreamError (I/O failure on a stdout/stderr pipe)

  - ParseSkip (a single malformed output line)

  - ReplaceError (file mutation)
    - BackupFailure (backup copy could not be written)
    - SubstitutionFailure (substitution command failed for one file)

  - ConfigError (invalid configuration files)

"""

from typing import Any


class RgsweepError(Exception):
    """Base exception class for all rgsweep-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(RgsweepError):
    """Exception raised for invalid input parameters or options.

    Raised when an operation is requested with inputs that make it
    meaningless, such as an empty search query, an empty replacement text
    or an empty set of match locations.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class ProcessError(RgsweepError):
    """Base exception for failures while supervising an external process."""


class SpawnError(ProcessError):
    """Exception raised when an executable cannot be launched.

    Parameters
    ----------
    command : str
        The executable that failed to start
    message : str, optional
        Custom error message. If not provided, a default message is built
    original_error : Exception, optional
        The OS error reported by the spawn attempt

    """

    def __init__(self, command: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the spawn error."""
        if message is None:
            message = f"Could not start '{command}'"
            if original_error is not None:
                message += f": {original_error}"
        super().__init__(message, original_error=original_error)
        self.command = command


class StreamError(ProcessError):
    """Exception raised when reading from a process pipe fails.

    Data that was delivered before the failure is kept by the caller.

    Parameters
    ----------
    stream : str
        Name of the pipe ("stdout" or "stderr")
    message : str, optional
        Custom error message
    original_error : Exception, optional
        The underlying I/O error

    """

    def __init__(self, stream: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the stream error."""
        if message is None:
            message = f"Error reading {stream}"
            if original_error is not None:
                message += f": {original_error}"
        super().__init__(message, original_error=original_error)
        self.stream = stream


class ParseSkip(RgsweepError):
    """Signal that one output line could not be parsed and was dropped.

    Parameters
    ----------
    line : str
        The offending line
    reason : str
        Why the line was rejected

    """

    def __init__(self, line: str, reason: str):
        """Initialize the skip signal."""
        super().__init__(f"Skipped line ({reason}): {line!r}")
        self.line = line
        self.reason = reason


class ReplaceError(RgsweepError):
    """Base exception for per-file replace failures.

    Parameters
    ----------
    message : str
        Description of the failure
    file_path : str, optional
        The file being processed
    original_error : Exception, optional
        The underlying exception

    """

    def __init__(self, message: str, file_path: str | None = None, original_error: Exception | None = None):
        """Initialize the replace error."""
        super().__init__(message, original_error=original_error)
        self.file_path = file_path


class BackupFailure(ReplaceError):
    """Exception raised when a backup copy of a file cannot be written."""

    def __init__(self, file_path: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the backup failure."""
        if message is None:
            message = f"Failed to backup file {file_path}"
            if original_error is not None:
                message += f": {original_error}"
        super().__init__(message, file_path=file_path, original_error=original_error)


class SubstitutionFailure(ReplaceError):
    """Exception raised when the substitution command fails for a file.

    Parameters
    ----------
    file_path : str
        The file that could not be rewritten
    exit_code : int, optional
        Exit status of the substitution command, None if it never ran
    output : str, optional
        Captured output of the command
    original_error : Exception, optional
        The underlying exception

    """

    def __init__(
        self,
        file_path: str,
        exit_code: int | None = None,
        output: str = "",
        original_error: Exception | None = None,
    ):
        """Initialize the substitution failure."""
        message = f"Error replacing in file {file_path}"
        if output:
            message += f": {output.strip()}"
        elif original_error is not None:
            message += f": {original_error}"
        elif exit_code is not None:
            message += f": exit code {exit_code}"
        super().__init__(message, file_path=file_path, original_error=original_error)
        self.exit_code = exit_code
        self.output = output


class ConfigError(RgsweepError):
    """Exception raised when a configuration file cannot be used.

    Parameters
    ----------
    message : str
        Description of the problem
    config_path : str, optional
        Path of the offending configuration file
    original_error : Exception, optional
        The underlying parse or I/O error

    """

    def __init__(self, message: str, config_path: str | None = None, original_error: Exception | None = None):
        """Initialize the configuration error."""
        super().__init__(message, original_error=original_error)
        self.config_path = config_path
