# localcoder/app_state.py
from typing import Any, Dict, List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.styles import Style as PromptStyle
from rich.console import Console

from localcoder.agents import AGENTS, DEFAULT_AGENT, AgentProfile
from localcoder.aux_tools import McpToolClient
from localcoder.config_utils import AgentSettings, build_agent_settings
from localcoder.data_models import ConversationState, Role, Turn
from localcoder.prompts import build_system_prompt


class AppState:
    def __init__(self, console: Optional[Console] = None, prompt_session: Optional[PromptSession] = None):
        self.console = console or Console()
        self.prompt_session = prompt_session or PromptSession(
            style=PromptStyle.from_dict({
                'prompt': '#0066ff bold',
                'completion-menu.completion': 'bg:#1e3a8a fg:#ffffff',
                'completion-menu.completion.current': 'bg:#3b82f6 fg:#ffffff bold',
            })
        )
        # User, assistant and tool-result turns, with the system prompt as the first turn.
        self.conversation = ConversationState()
        self.DEBUG_LLM_INTERACTIONS: bool = False
        self.RUNTIME_OVERRIDES: Dict[str, Any] = {}
        self.aux_client: Optional[McpToolClient] = None
        self.aux_tools: List[Tuple[str, str]] = []
        self.agent: AgentProfile = AGENTS[DEFAULT_AGENT]
        self.system_prompt = ""

    def settings(self) -> AgentSettings:
        """Current settings; re-resolved each request so /set and agent switches take effect immediately.

        The agent's temperature applies unless temperature was set for this session (/set or -t).
        """
        settings = build_agent_settings(self.RUNTIME_OVERRIDES, self.console)
        update: Dict[str, Any] = {}
        if self.agent.allowed_tools is not None:
            update["allowed_tools"] = sorted(self.agent.allowed_tools)
        if self.agent.temperature is not None and "temperature" not in self.RUNTIME_OVERRIDES:
            update["temperature"] = self.agent.temperature
        return settings.model_copy(update=update) if update else settings

    def set_system_prompt(self, prompt: Optional[str] = None) -> None:
        self.system_prompt = prompt if prompt is not None else build_system_prompt(self.aux_tools, agent=self.agent)
        others = [t for t in self.conversation.turns if t.role != Role.SYSTEM]
        self.conversation.turns = [Turn(role=Role.SYSTEM, content=self.system_prompt)] + others

    def switch_agent(self, agent: AgentProfile) -> None:
        """Make ``agent`` active; the conversation is kept and its system prompt replaced."""
        self.agent = agent
        self.set_system_prompt()
