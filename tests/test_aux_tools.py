# tests/test_aux_tools.py
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from localcoder.aux_tools import AuxiliaryToolResult, McpToolClient, content_to_text, decode_arguments
from localcoder.data_models import McpServerConfig
from localcoder.exceptions import AuxiliaryToolError


def _servers():
    return [
        McpServerConfig(name="fs", command="npx", args=["-y", "server-fs"]),
        McpServerConfig(name="git", command="uvx", args=["mcp-server-git"]),
        McpServerConfig(name="off", command="x", enabled=False),
    ]


def test_decode_arguments():
    decoded = decode_arguments({"path": "src", "depth": "2", "flags": '["a", "b"]', "opts": '{"x": 1}', "raw": "not json"})
    assert decoded == {"path": "src", "depth": 2, "flags": ["a", "b"], "opts": {"x": 1}, "raw": "not json"}


def test_content_to_text():
    content = [
        SimpleNamespace(type="text", text="hello"),
        SimpleNamespace(type="image", mimeType="image/png"),
        SimpleNamespace(type="resource", resource=SimpleNamespace(uri="file:///a.txt")),
        SimpleNamespace(type="audio"),
    ]
    assert content_to_text(content) == "hello\n[Image: image/png]\n[Resource: file:///a.txt]\n[Unknown content type: audio]"


def test_disabled_servers_are_ignored():
    assert McpToolClient(_servers()).server_names == ["fs", "git"]


def test_call_tool_routes_to_server():
    client = McpToolClient(_servers())
    with patch.object(client, "_call", new=AsyncMock(return_value=AuxiliaryToolResult(True, "ok"))) as mock_call:
        result = client.call_tool("git__log", {"max_count": 3})
    assert result == AuxiliaryToolResult(True, "ok")
    server, tool, arguments = mock_call.call_args.args
    assert server.name == "git"
    assert tool == "log"
    assert arguments == {"max_count": 3}


def test_call_tool_unknown_server():
    result = McpToolClient(_servers()).call_tool("jira__search", {})
    assert not result.success
    assert result.error == "Unknown MCP server: jira"


def test_call_tool_disabled_server_is_unknown():
    assert not McpToolClient(_servers()).call_tool("off__x", {}).success


def test_call_tool_transport_failure_becomes_result():
    client = McpToolClient(_servers())
    with patch.object(client, "_call", new=AsyncMock(side_effect=OSError("npx: not found"))):
        result = client.call_tool("fs__read_file", {"path": "a"})
    assert not result.success
    assert "npx: not found" in result.error


def test_call_tool_timeout():
    client = McpToolClient(_servers(), timeout=5)
    with patch.object(client, "_call", new=AsyncMock(side_effect=asyncio.TimeoutError())):
        result = client.call_tool("fs__read_file", {})
    assert result.error == "MCP tool 'fs__read_file' timed out after 5s"


def test_list_tools_is_cached_and_skips_broken_servers():
    client = McpToolClient(_servers())

    async def fake_list(server):
        if server.name == "git":
            raise AuxiliaryToolError("no listing")
        return [("fs__read_file", "Read a file")]

    with patch.object(client, "_list", side_effect=fake_list) as mock_list:
        assert client.list_tools() == [("fs__read_file", "Read a file")]
        assert client.list_tools() == [("fs__read_file", "Read a file")]
    assert mock_list.call_count == 2
