#!/usr/bin/env python3
"""
diagram-events MCP Server

Provides MCP tools for AI agents to turn diagram text into graph events.
Every tool forwards to the diagram-events backend over HTTP.
"""

import httpx
from mcp.server.fastmcp import FastMCP
from typing import Optional
import json

from diagram_events.config import API_BASE

# Create MCP server
mcp = FastMCP("diagram-events")


# --- HTTP Client Helper ---

def api_request(method: str, endpoint: str, **kwargs) -> dict:
    """Make a request to the diagram-events backend."""
    url = f"{API_BASE}{endpoint}"
    with httpx.Client(timeout=30.0) as client:
        if method == "GET":
            response = client.get(url, params=kwargs.get("params"))
        elif method == "POST":
            response = client.post(url, json=kwargs.get("json"))
        else:
            raise ValueError(f"Unknown method: {method}")

        if response.status_code >= 400:
            error = response.json().get("detail", "Unknown error")
            if isinstance(error, dict):
                error = f"{error.get('code')}: {error.get('error')}"
            raise Exception(f"API error: {error}")

        return response.json()


# ============================================================================
# DIAGRAM TOOLS
# ============================================================================

@mcp.tool()
def diagram_formats() -> str:
    """
    List the supported diagram formats and batch modes.
    """
    result = api_request("GET", "/formats")
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_parse(text: str, format: Optional[str] = None, batch_mode: Optional[str] = None) -> str:
    """
    Convert diagram text into an ordered list of graph events.

    Args:
        text: DOT graph or PlantUML-style sequence diagram source
        format: "dot" or "sequence" (detected from the text if omitted)
        batch_mode: "diagram" for one batch around everything, "block" for
            one batch per top-level sequence block

    Returns the event list (set_layout, batch_start, add_node, update_node,
    add_edge, batch_end).
    """
    payload = {"text": text, "format": format, "batch_mode": batch_mode}
    result = api_request("POST", "/parse", json=payload)
    return json.dumps(result, indent=2)


@mcp.tool()
def diagram_build(text: str, format: Optional[str] = None, name: Optional[str] = None) -> str:
    """
    Build a diagram (nodes and edges) from diagram text.

    Args:
        text: DOT graph or PlantUML-style sequence diagram source
        format: "dot" or "sequence" (detected from the text if omitted)
        name: Name for the built diagram

    Returns the diagram plus a validation report of its event stream.
    """
    payload = {"text": text, "format": format, "name": name}
    result = api_request("POST", "/diagram", json=payload)
    return json.dumps(result, indent=2)


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    mcp.run()
