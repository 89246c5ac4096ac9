"""
Allow ``python -m memoryrelay_mcp``.
"""

from .mcp_interface import main

main()
