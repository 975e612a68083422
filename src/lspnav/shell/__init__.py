from src.lspnav.shell.shell import Shell

__all__ = ["Shell"]
