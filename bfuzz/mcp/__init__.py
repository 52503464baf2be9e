"""MCP surface for the port fuzzer."""
from .server import FuzzMCPServer
from .auth import AuthManager
from .config import MCPConfig

__all__ = ["FuzzMCPServer", "AuthManager", "MCPConfig"]
