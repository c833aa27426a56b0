"""Signal Rank MCP Server.

Score AI agents on GitHub vitality, machine readiness, protocol support and
AI visibility, then generate JSON-LD, SVG badges and interface prompts.
"""

__version__ = "0.1.0"
