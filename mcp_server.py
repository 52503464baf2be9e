#!/usr/bin/env python
"""MCP server startup script for the bfuzz port fuzzer."""
import asyncio
import logging
import sys

from bfuzz.mcp import FuzzMCPServer, MCPConfig
from bfuzz.utils import setup_logging


async def main():
    """Main entry point."""
    config = MCPConfig.from_env()
    setup_logging("INFO", config.log_file)
    logger = logging.getLogger(__name__)

    try:
        logger.info("Starting bfuzz MCP Server...")
        server = FuzzMCPServer(config)
        await server.run()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
