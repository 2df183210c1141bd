"""
Pulumi LSP Client - editor integration for the Pulumi YAML language server

Resolves the pulumi-lsp executable, supervises a single protocol client bound
to it, and watches for extensions that conflict with it.
"""

__version__ = "0.1.0"
__author__ = "Pulumi"

from .main import main

__all__ = ["main"]
