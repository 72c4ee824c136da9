"""SonarQube MCP server.

Exposes SonarQube metrics, issues, quality gates and projects to MCP
clients over line-delimited JSON-RPC on stdio.
"""

__version__ = "0.1.0"

SERVER_NAME = "sonarqube-mcp-server"
