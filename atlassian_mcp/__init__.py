"""
Atlassian MCP Integration

MCP server exposing Jira Software agile and Confluence operations.
"""

__version__ = "1.0.0"
