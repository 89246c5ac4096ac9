"""
MemoryRelay MCP server package.

Logging is configured explicitly by the entry point (see utils.logging_config.setup_logging).
"""

__version__ = '0.1.0'
