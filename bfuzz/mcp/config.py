"""MCP server configuration management."""
import os
from dataclasses import dataclass


@dataclass
class MCPConfig:
    """MCP server configuration."""
    auth_config_path: str = "mcp_auth_config.yaml"
    log_file: str = "logs/mcp_server.log"
    wordlist_dir: str = "wordlists"
    max_batch_size: int = 500
    max_payloads: int = 100000

    @classmethod
    def from_env(cls) -> "MCPConfig":
        """Load configuration from environment variables."""
        return cls(
            auth_config_path=os.getenv("BFUZZ_MCP_AUTH_CONFIG", "mcp_auth_config.yaml"),
            log_file=os.getenv("BFUZZ_MCP_LOG_FILE", "logs/mcp_server.log"),
            wordlist_dir=os.getenv("BFUZZ_MCP_WORDLIST_DIR", "wordlists"),
            max_batch_size=int(os.getenv("BFUZZ_MCP_MAX_BATCH_SIZE", "500")),
            max_payloads=int(os.getenv("BFUZZ_MCP_MAX_PAYLOADS", "100000")),
        )
