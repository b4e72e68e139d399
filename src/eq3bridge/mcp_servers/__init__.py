"""MCP servers exposing the thermostat as tools."""
