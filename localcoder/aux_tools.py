# localcoder/aux_tools.py
"""Auxiliary tools served by external MCP servers over stdio.

Tools are addressed as ``server__tool`` (or ``server.tool``). Each call starts
the server process, opens a session, runs the tool and shuts it down again,
so no background event loop outlives a request.
"""
import asyncio
import json
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Protocol, Sequence, Tuple, cast

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client
from mcp.types import EmbeddedResource, ImageContent, TextContent

from localcoder.data_models import McpServerConfig
from localcoder.exceptions import AuxiliaryToolError
from localcoder.logger import get_logger
from localcoder.tool_defs import split_auxiliary_name

logger = get_logger(__name__)

QUALIFIED_SEPARATOR = "__"


class AuxiliaryToolResult(NamedTuple):
    success: bool
    content: str
    error: Optional[str] = None


class AuxiliaryToolClient(Protocol):
    def call_tool(self, qualified_name: str, arguments: Dict[str, Any]) -> AuxiliaryToolResult:
        ...

    def list_tools(self) -> List[Tuple[str, str]]:
        ...


def decode_arguments(parameters: Mapping[str, str]) -> Dict[str, Any]:
    """Values that parse as JSON are sent decoded; anything else stays a string."""
    decoded: Dict[str, Any] = {}
    for key, value in parameters.items():
        try:
            decoded[key] = json.loads(value)
        except (json.JSONDecodeError, TypeError, ValueError):
            decoded[key] = value
    return decoded


def content_to_text(content: Sequence[Any]) -> str:
    output = []
    for c in content:
        if c.type == "text":
            output.append(cast(TextContent, c).text)
        elif c.type == "image":
            output.append(f"[Image: {cast(ImageContent, c).mimeType}]")
        elif c.type == "resource":
            output.append(f"[Resource: {cast(EmbeddedResource, c).resource.uri}]")
        else:
            output.append(f"[Unknown content type: {c.type}]")
    return "\n".join(output)


class McpToolClient:
    """AuxiliaryToolClient backed by MCP servers configured under ``[mcp_servers.NAME]``."""

    def __init__(self, servers: Sequence[McpServerConfig], timeout: float = 60.0):
        self._servers: Dict[str, McpServerConfig] = {s.name: s for s in servers if s.enabled}
        self._timeout = timeout
        self._tool_cache: Optional[List[Tuple[str, str]]] = None

    @property
    def server_names(self) -> List[str]:
        return sorted(self._servers)

    def call_tool(self, qualified_name: str, arguments: Dict[str, Any]) -> AuxiliaryToolResult:
        try:
            server_name, tool_name = split_auxiliary_name(qualified_name)
        except ValueError as e:
            return AuxiliaryToolResult(False, "", str(e))

        server = self._servers.get(server_name)
        if server is None:
            return AuxiliaryToolResult(False, "", f"Unknown MCP server: {server_name}")

        logger.info("Delegating tool '%s' to MCP server '%s'", tool_name, server_name)
        logger.debug("Tool arguments: %s", arguments)
        try:
            return asyncio.run(self._call(server, tool_name, arguments))
        except AuxiliaryToolError as e:
            return AuxiliaryToolResult(False, "", str(e))
        except asyncio.TimeoutError:
            return AuxiliaryToolResult(False, "", f"MCP tool '{qualified_name}' timed out after {self._timeout:.0f}s")
        except Exception as e:  # transport failures surface from several layers of the mcp client
            logger.debug("MCP call failed", exc_info=True)
            return AuxiliaryToolResult(False, "", f"MCP server '{server_name}' failed: {e}")

    def list_tools(self) -> List[Tuple[str, str]]:
        """All tools of all enabled servers as (qualified name, description), cached after the first call."""
        if self._tool_cache is not None:
            return self._tool_cache
        tools: List[Tuple[str, str]] = []
        for name in self.server_names:
            try:
                tools.extend(asyncio.run(self._list(self._servers[name])))
            except Exception as e:  # one broken server must not hide the others
                logger.warning("Could not list tools of MCP server '%s': %s", name, e)
        self._tool_cache = tools
        return tools

    async def _call(self, server: McpServerConfig, tool_name: str, arguments: Dict[str, Any]) -> AuxiliaryToolResult:
        params = StdioServerParameters(command=server.command, args=list(server.args), env=server.env)
        async with stdio_client(params) as (read, write):
            async with ClientSession(read, write) as session:
                await asyncio.wait_for(session.initialize(), self._timeout)
                result = await asyncio.wait_for(session.call_tool(tool_name, arguments=arguments), self._timeout)

        text = content_to_text(result.content or [])
        if result.isError:
            return AuxiliaryToolResult(False, text, text or f"MCP tool '{tool_name}' reported an error")
        return AuxiliaryToolResult(True, text or "Success", None)

    async def _list(self, server: McpServerConfig) -> List[Tuple[str, str]]:
        params = StdioServerParameters(command=server.command, args=list(server.args), env=server.env)
        async with stdio_client(params) as (read, write):
            async with ClientSession(read, write) as session:
                await asyncio.wait_for(session.initialize(), self._timeout)
                listing = await asyncio.wait_for(session.list_tools(), self._timeout)
        if listing is None:
            raise AuxiliaryToolError(f"MCP server '{server.name}' returned no tool listing")
        return [
            (f"{server.name}{QUALIFIED_SEPARATOR}{tool.name}", tool.description or f"Tool {tool.name} provided by MCP server.")
            for tool in listing.tools
        ]
