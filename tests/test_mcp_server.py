import importlib.util
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.main import app

SERVER_PATH = Path(__file__).parent.parent / "mcp-server" / "server.py"


@pytest.fixture
def server(monkeypatch):
    spec = importlib.util.spec_from_file_location("diagram_events_mcp_server", SERVER_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    # Route the tools' HTTP calls into the app in-process
    monkeypatch.setattr(module.httpx, "Client", lambda **kwargs: TestClient(app))
    return module


def test_formats_tool(server):
    result = json.loads(server.diagram_formats())
    assert "sequence" in result["formats"]


def test_parse_tool(server):
    result = json.loads(server.diagram_parse("A -> B : hi\n"))
    assert result["format"] == "sequence"
    assert result["events"][0]["type"] == "batch_start"


def test_build_tool(server):
    result = json.loads(server.diagram_build("digraph { A -> B }", name="Tiny"))
    assert result["diagram"]["name"] == "Tiny"
    assert len(result["diagram"]["edges"]) == 1


def test_api_errors_are_raised(server):
    with pytest.raises(Exception, match="E_SYNTAX"):
        server.diagram_parse("digraph { A -> }")
