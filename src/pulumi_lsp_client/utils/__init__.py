"""Utility modules for the Pulumi LSP client."""

from .config import (
    ClientDefaults,
    ConfigStore,
    get_config,
    set_config,
)

from .error_handler import (
    ConflictRemediationError,
    ErrorHandler,
    ErrorSeverity,
    ExplicitPathNotFound,
    NoServerFound,
    PulumiLSPError,
    ResolutionError,
    SupervisorStateError,
    create_error_handler,
)

from .extension_registry import DirectoryExtensionRegistry
from .settings_manager import SettingsStore

__all__ = [
    # Configuration
    "ClientDefaults",
    "ConfigStore",
    "get_config",
    "set_config",
    "SettingsStore",

    # Errors
    "ConflictRemediationError",
    "ErrorHandler",
    "ErrorSeverity",
    "ExplicitPathNotFound",
    "NoServerFound",
    "PulumiLSPError",
    "ResolutionError",
    "SupervisorStateError",
    "create_error_handler",

    # Extensions
    "DirectoryExtensionRegistry",
]
