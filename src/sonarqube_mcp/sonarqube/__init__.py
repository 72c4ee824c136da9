"""SonarQube REST client and the MCP tools built on it."""
