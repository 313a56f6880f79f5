# localcoder/prompts.py
import os
from textwrap import dedent
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from rich.markdown import Markdown as RichMarkdown

from localcoder.tool_defs import BUILTIN_TOOLS

if TYPE_CHECKING:
    from localcoder.agents import AgentProfile

TOOL_FORMAT_INSTRUCTIONS = dedent("""\
   ## How to call tools

   To use tools, write one block like this anywhere in your reply. You may put several
   invocations in the same block; they run in order, one after the other.

   <function_calls>
   <invoke name="Read">
   <parameter name="file_path">src/main.py</parameter>
   </invoke>
   <invoke name="Bash">
   <parameter name="command">git status</parameter>
   </invoke>
   </function_calls>

   After the block, STOP and wait: the results come back in the next message.
   Parameter values are taken literally, so do not escape or quote file content.
   When you need no more tools, answer in plain text without any tool block.
""")

system_PROMPT_TEMPLATE = dedent("""\
   You are Local Coder, a careful software engineering assistant running on the user's machine.
   You help with reading, writing and debugging code in the current project by using tools.

   Current working directory: {cwd}
   {agent_section}
   ## Available tools

   {tool_list}
   {aux_section}
   {format_instructions}
   ## Guidelines
   - Use tools only when they are needed; for greetings or general questions, just answer.
   - Read a file before you edit it. Edit replaces EVERY occurrence of old_string.
   - Prefer Glob and Grep over shell commands for finding files and text.
   - Shell commands may be refused by safe mode or by the user. If a tool fails or is
     cancelled, explain what happened and ask how to proceed instead of retrying blindly.
   - Keep explanations short. Format replies in markdown.
   - **NEVER lie or make things up.**
""")


def format_builtin_tools(agent: Optional['AgentProfile'] = None) -> str:
    lines = []
    for name, spec in BUILTIN_TOOLS.items():
        if agent is not None and not agent.can_use(name):
            continue
        params = ", ".join(spec["required"] + [f"{p} (optional)" for p in spec["optional"]])
        lines.append(f"- **{name}**({params}): {spec['description']}")
    return "\n".join(lines)


def format_auxiliary_tools(aux_tools: Optional[Iterable[Tuple[str, str]]]) -> str:
    aux_tools = list(aux_tools or [])
    if not aux_tools:
        return ""
    lines = ["", "## Auxiliary tools", "Arguments are passed as parameters; JSON values are decoded.", ""]
    for qualified_name, description in aux_tools:
        lines.append(f"- **{qualified_name}**: {description}")
    return "\n".join(lines) + "\n"


def build_system_prompt(
    aux_tools: Optional[Iterable[Tuple[str, str]]] = None,
    cwd: Optional[str] = None,
    agent: Optional['AgentProfile'] = None,
) -> str:
    if agent is not None:
        aux_tools = [(name, desc) for name, desc in (aux_tools or []) if agent.can_use(name)]
    return system_PROMPT_TEMPLATE.format(
        cwd=cwd or os.getcwd(),
        agent_section=f"\n{agent.guidance}" if agent is not None and agent.guidance else "",
        tool_list=format_builtin_tools(agent),
        aux_section=format_auxiliary_tools(aux_tools),
        format_instructions=TOOL_FORMAT_INSTRUCTIONS,
    )


HELP_TEXT = dedent("""\
   # Local Coder

   Type a request in plain language. The assistant reads, searches and edits files and
   runs shell commands through tools, asking before anything that changes your system.

   ## Commands

   | Command | Description |
   |---|---|
   | `/help` | Show this help |
   | `/set <param> <value>` | Change a setting for this session (`/set` alone lists them) |
   | `/safe on\\|off` | Toggle safe mode (shell allowlist) |
   | `/auto on\\|off` | Toggle auto-approve of confirmations |
   | `/allow <cmd>` | Add a program to the safe-mode allowlist |
   | `/tools` | List built-in and auxiliary tools |
   | `/models` | List models served by the local Ollama server |
   | `/context` | Show the conversation so far |
   | `/clear` | Forget the conversation (system prompt is kept) |
   | `/debug on\\|off` | Show model requests and reasoning |
   | `/agent [name]` | Show or switch the agent profile |
   | `/explore`, `/code`, `/run`, `/plan`, `/general` | Switch straight to that agent |
   | `/shell <cmd>` or `/! <cmd>` | Run a shell command yourself |
   | `exit`, `quit` | Leave |

   ## Safety

   - **Safe mode** (default on): shell commands run only if every program in the command
     line is on the allowlist. Anything else is refused and the model is told why.
   - **Confirmation**: shell commands, overwrites, edits and auxiliary tools ask
     `[Y/n]` unless auto-approve is on. Ctrl-C at the prompt aborts the request.
   - **Edit** always writes `<file>.bak` before changing a file.
""")
