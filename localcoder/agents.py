# localcoder/agents.py
"""Agent profiles: a role prompt, a tool subset and a temperature for one kind of work.

The active profile narrows what the model is told about and what the
dispatcher will run. ``general`` is the unrestricted default.
"""
from textwrap import dedent
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AGENT = "general"


class AgentProfile(BaseModel):
    name: str
    icon: str = ""
    description: str
    guidance: str = ""
    # None means every tool, auxiliary ones included
    allowed_tools: Optional[FrozenSet[str]] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    shortcuts: List[str] = Field(default_factory=list)
    model_config = ConfigDict(frozen=True)

    @property
    def display_name(self) -> str:
        return f"{self.icon} {self.name}".strip()

    def can_use(self, tool_name: str) -> bool:
        return self.allowed_tools is None or tool_name in self.allowed_tools


EXPLORER_GUIDANCE = dedent("""\
   ## Role: explorer
   You help the user understand this codebase WITHOUT changing anything.
   Start with Glob to find relevant files, narrow down with Grep, then Read the
   promising ones. Summarize structure and findings clearly.
   You CANNOT modify files or run commands. Only explore and report.
""")

CODER_GUIDANCE = dedent("""\
   ## Role: coder
   You write and modify code precisely. Read existing code before changing it,
   make minimal edits and follow the style already in the file.
   You cannot run commands; suggest the command to run instead.
""")

RUNNER_GUIDANCE = dedent("""\
   ## Role: runner
   You run commands, tests and builds, then report the results clearly.
   Give every Bash call a short description. Be careful with destructive commands,
   and when a command fails, read the relevant file and suggest a fix.
""")

PLANNER_GUIDANCE = dedent("""\
   ## Role: planner
   You analyze the task and produce a plan WITHOUT executing anything. Use the
   read-only tools for research, then answer in this shape:

   ## Plan: <task title>
   ### Analysis
   What you found.
   ### Steps
   1. A concrete step naming the files to change.
   ### Suggested agents
   explorer for more research, coder for code changes, runner for tests.

   Do NOT make any changes. Only research and plan.
""")

AGENTS: Dict[str, AgentProfile] = {
    "general": AgentProfile(
        name="general", icon="🤖", description="Full assistant with all tools",
        shortcuts=["/general"],
    ),
    "explorer": AgentProfile(
        name="explorer", icon="🔍", description="Explore and understand code (read-only)",
        guidance=EXPLORER_GUIDANCE, allowed_tools=frozenset({"Read", "Glob", "Grep"}), temperature=0.3,
        shortcuts=["/explore"],
    ),
    "coder": AgentProfile(
        name="coder", icon="💻", description="Write and modify code",
        guidance=CODER_GUIDANCE, allowed_tools=frozenset({"Read", "Write", "Edit", "Glob"}), temperature=0.2,
        shortcuts=["/code"],
    ),
    "runner": AgentProfile(
        name="runner", icon="▶️", description="Execute commands and run tests",
        guidance=RUNNER_GUIDANCE, allowed_tools=frozenset({"Bash", "Read"}), temperature=0.1,
        shortcuts=["/run"],
    ),
    "planner": AgentProfile(
        name="planner", icon="📋", description="Plan tasks without executing",
        guidance=PLANNER_GUIDANCE, allowed_tools=frozenset({"Read", "Glob", "Grep"}), temperature=0.4,
        shortcuts=["/plan"],
    ),
}


def get_agent(name: str) -> Optional[AgentProfile]:
    """Look up a profile by name or by its shortcut command, case-insensitively."""
    key = name.strip().lower()
    if key in AGENTS:
        return AGENTS[key]
    for profile in AGENTS.values():
        if key in profile.shortcuts:
            return profile
    return None
