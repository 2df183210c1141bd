"""Standardized error handling utilities for the Pulumi LSP client."""

from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Union

from aiologger import Logger


NO_SERVER_FOUND_MESSAGE = (
    "Could not find a bundled Pulumi LSP Server. "
    "Please set pulumi-lsp.server.path to a pulumi-lsp executable."
)


class ErrorSeverity:
    """Error severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class PulumiLSPError(Exception):
    """Base exception class for Pulumi LSP client errors."""

    def __init__(self, message: str, severity: str = ErrorSeverity.ERROR,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.context = context or {}


class ResolutionError(PulumiLSPError):
    """No usable server executable could be found."""
    pass


class ExplicitPathNotFound(ResolutionError):
    """The configured server.path does not exist."""

    def __init__(self, path: Union[str, Path]):
        super().__init__(f"{path} does not exist.", context={"path": str(path)})
        self.path = str(path)


class NoServerFound(ResolutionError):
    """Neither an explicit path nor a bundled server is available."""

    def __init__(self, expected_path: Union[str, Path]):
        super().__init__(NO_SERVER_FOUND_MESSAGE, context={"expected": str(expected_path)})
        self.expected_path = str(expected_path)


class SupervisorStateError(PulumiLSPError):
    """A lifecycle operation was requested in a state that forbids it."""
    pass


class ConflictRemediationError(PulumiLSPError):
    """Uninstalling a conflicting extension or reloading the host failed."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, severity=ErrorSeverity.WARNING, context=context)


class ErrorHandler:
    """Centralized error handling for the Pulumi LSP client."""

    def __init__(self, logger: Logger, output_sink=None):
        self.logger = logger
        self.output_sink = output_sink

    async def handle_error(self, error: Exception, context: Optional[Dict[str, Any]] = None,
                           user_message: Optional[str] = None) -> None:
        """Handle an error with appropriate logging and user notification."""

        if isinstance(error, PulumiLSPError):
            lsp_error = error
        else:
            lsp_error = PulumiLSPError(
                str(error),
                severity=ErrorSeverity.ERROR,
                context=context or {}
            )

        await self._log_error(lsp_error)

        if self.output_sink and user_message:
            self.output_sink.append(user_message)

    async def _log_error(self, error: PulumiLSPError) -> None:
        """Log an error with appropriate severity."""
        log_message = f"{error.message}"
        if error.context:
            log_message += f" Context: {error.context}"

        if error.severity == ErrorSeverity.DEBUG:
            await self.logger.debug(log_message)
        elif error.severity == ErrorSeverity.INFO:
            await self.logger.info(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            await self.logger.warning(log_message)
        elif error.severity == ErrorSeverity.ERROR:
            await self.logger.error(log_message)
        elif error.severity == ErrorSeverity.CRITICAL:
            await self.logger.critical(log_message)

    def with_error_handling(self, user_message: Optional[str] = None):
        """Decorator for coroutine functions: failures are handled and yield None."""
        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    await self.handle_error(e, user_message=user_message)
                    return None
            return wrapper
        return decorator


def create_error_handler(logger: Logger, output_sink=None) -> ErrorHandler:
    """Factory function to create an error handler."""
    return ErrorHandler(logger, output_sink)
