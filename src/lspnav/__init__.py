"""
lspnav: semantic navigation and refactoring on top of language servers.

Hover lookups go through a running language server; file moves go through an
in-process project model that rewrites every import of the moved file.
"""
