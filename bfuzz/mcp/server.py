"""MCP server exposing the port fuzzer as tools."""
import json
import logging
from pathlib import Path
from typing import List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from ..fuzzer import CollectingReporter, FuzzerException, StaticWordlist, fuzz
from ..utils import build_config
from .auth import AuthManager
from .config import MCPConfig


class FuzzMCPServer:
    """MCP Server for TCP payload fuzzing."""

    def __init__(self, config: Optional[MCPConfig] = None):
        self.config = config or MCPConfig.from_env()
        self.server = Server("bfuzz")
        self.auth = AuthManager(self.config.auth_config_path)
        self.logger = logging.getLogger(__name__)
        self._register_tools()

    def _register_tools(self):
        """Register all MCP tools."""

        @self.server.list_tools()
        async def list_tools():
            return [
                Tool(
                    name="fuzz_port",
                    description="Send every wordlist entry to a TCP service and report responses that are not ignored",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "target": {"type": "string", "description": "Target IP or hostname"},
                            "port": {"type": "integer", "description": "Target TCP port"},
                            "wordlist": {"type": "string", "description": "Wordlist file name, relative to the server's wordlist directory"},
                            "payloads": {"type": "array", "items": {"type": "string"}, "description": "Inline payloads (used when no wordlist path is given)"},
                            "batch_size": {"type": "integer", "description": "Concurrent probes"},
                            "timeout_ms": {"type": "integer", "description": "Response timeout per read in milliseconds"},
                            "newline": {"type": "boolean", "default": True, "description": "Terminate each payload with a newline"},
                            "ignore": {"type": "array", "items": {"type": "string"}, "description": "Responses to ignore (escapes like \\n allowed)"},
                            "ignore_regex": {"type": "array", "items": {"type": "string"}, "description": "Regular expressions of responses to ignore"}
                        },
                        "required": ["target", "port"]
                    }
                ),
                Tool(
                    name="add_target",
                    description="Add target to whitelist for fuzzing",
                    inputSchema={
                        "type": "object",
                        "properties": {
                            "target": {"type": "string", "description": "Host pattern or CIDR range to whitelist"}
                        },
                        "required": ["target"]
                    }
                )
            ]

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict):
            return [TextContent(type="text", text=json.dumps(
                await self.handle_call(name, arguments), indent=2, ensure_ascii=False
            ))]

    async def handle_call(self, name: str, arguments: dict) -> dict:
        """Authorize and route one tool call."""
        target = arguments.get("target", "")
        try:
            # Authorization check (except for add_target)
            if name != "add_target" and not self.auth.is_authorized(target):
                return {
                    "success": False,
                    "error": f"Target '{target}' not authorized. Use add_target to whitelist it first."
                }

            if name == "fuzz_port":
                result = await self._fuzz_port(**arguments)
            elif name == "add_target":
                result = self._add_target(**arguments)
            else:
                result = {"success": False, "error": f"Unknown tool: {name}"}

        except FuzzerException as e:
            self.logger.warning(f"Tool {name} rejected: {e}")
            result = {"success": False, "error": str(e)}
        except Exception as e:
            self.logger.error(f"Tool error: {e}", exc_info=True)
            result = {"success": False, "error": str(e)}

        self.auth.log_audit(name, target, "success" if result.get("success", True) else "failed")
        return result

    async def _fuzz_port(
        self,
        target: str,
        port: int,
        wordlist: Optional[str] = None,
        payloads: Optional[List[str]] = None,
        batch_size: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        newline: bool = True,
        ignore: Optional[List[str]] = None,
        ignore_regex: Optional[List[str]] = None,
    ) -> dict:
        source = None
        if wordlist:
            wordlist = self._wordlist_path(wordlist)
            if wordlist is None:
                return {"success": False, "error": f"Wordlists must live under {self.config.wordlist_dir}"}
        else:
            if not payloads:
                return {"success": False, "error": "Either wordlist or payloads is required"}
            if len(payloads) > self.config.max_payloads:
                return {"success": False, "error": f"At most {self.config.max_payloads} inline payloads allowed"}
            source = StaticWordlist(payloads)

        config = build_config({
            "host": target,
            "port": port,
            "wordlist": wordlist,
            "batch_size": batch_size,
            "timeout_ms": timeout_ms,
            "newline": newline,
            "ignore": ignore,
            "ignore_regex": ignore_regex,
        })
        if config.batch_size > self.config.max_batch_size:
            self.logger.info(f"Capping batch size {config.batch_size} to {self.config.max_batch_size}")
            config = config.model_copy(update={"batch_size": self.config.max_batch_size})

        summary = await fuzz(config, CollectingReporter(), source)
        return {"success": True, **summary.to_dict()}

    def _wordlist_path(self, name: str) -> Optional[str]:
        """Resolve a wordlist name inside the configured wordlist directory."""
        root = Path(self.config.wordlist_dir).resolve()
        path = (root / name).resolve()
        if not path.is_relative_to(root):
            self.logger.warning(f"Rejected wordlist outside {root}: {name}")
            return None
        return str(path)

    def _add_target(self, target: str) -> dict:
        """Add target to whitelist."""
        self.auth.add_whitelist(target)
        return {"success": True, "message": f"Added '{target}' to whitelist"}

    async def run(self):
        """Run the MCP server."""
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
