"""Textual views for the Pulumi LSP client."""
