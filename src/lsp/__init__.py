"""
Language Server Protocol (LSP) implementation.

Provides client and server components for language navigation features
like hover information and document synchronization.
"""

from src.lsp.client import LanguageServer, LSPClient, LSPError, create_lsp_client
from src.lsp.server import LSPServer, create_lsp_server

__all__ = [
    'LanguageServer',
    'LSPClient',
    'LSPError',
    'LSPServer',
    'create_lsp_client',
    'create_lsp_server',
]
