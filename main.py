#!/usr/bin/env python3
"""SonarQube MCP server - development entry point.

Equivalent to the installed ``sonarqube-mcp`` console script:

    python main.py --sonarqube-url https://sonarcloud.io --sonarqube-token ...

Configuration can also come from SONARQUBE_URL, SONARQUBE_TOKEN and
SONARQUBE_ORGANIZATION, or from a sonarqube-mcp.yaml file (see
sonarqube_mcp.config). Listing flags (--tools, --prompts, --resources,
--mcp) print the catalog and exit without entering protocol mode.
"""

from __future__ import annotations

import sys

from sonarqube_mcp.main import main

if __name__ == "__main__":
    sys.exit(main())
