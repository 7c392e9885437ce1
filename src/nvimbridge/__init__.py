"""nvim-bridge: drive a running Neovim session from MCP clients."""

__version__ = "0.1.0"

__all__ = ["__version__"]
