"""Core business logic: scoring, generators, scanners and data models.

This module is framework-agnostic. It has no dependency on MCP, FastMCP,
or any storage layer, so the generators can be called from any server.
"""
