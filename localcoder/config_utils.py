# localcoder/config_utils.py
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from localcoder.data_models import McpServerConfig
from localcoder.exceptions import ConfigError
from localcoder.logger import get_logger
from localcoder.tool_defs import merge_parameter_aliases

logger = get_logger(__name__)

DEFAULT_ALLOWED_COMMANDS = [
    "ls", "cat", "head", "tail", "grep", "find", "git", "docker", "kubectl",
    "systemctl", "journalctl", "pwd", "whoami", "date", "echo", "which",
    "ps", "df", "du", "wc", "sort", "uniq", "tree",
]

# --- Ultimate Fallback Defaults ---
# Used when config.toml, the environment and runtime overrides are all silent.
ULTIMATE_DEFAULTS: Dict[str, Any] = {
    "model": "ollama_chat/qwen2.5-coder:7b",
    "api_base": "http://localhost:11434",
    "temperature": 0.7,
    "max_tokens": 8192,
    "safe_mode": True,
    "auto_approve": False,
    "allowed_commands": DEFAULT_ALLOWED_COMMANDS,
    "max_tool_iterations": 10,
    "command_timeout": 120,
    "max_command_timeout": 600,
    "max_output_chars": 30000,
    "max_search_results": 100,
    "max_history_messages": 40,
}

MAX_FILE_SIZE_BYTES = 5_000_000  # 5MB

CONFIG_ENV_VAR = "LOCAL_CODER_CONFIG"
USER_CONFIG_PATH = Path("~/.config/local-coder/config.toml")

# This dictionary holds configuration flattened out of config.toml
_CONFIG_FROM_TOML: Dict[str, Any] = {}
_ALIASES_FROM_TOML: Dict[str, List[str]] = {}
_MCP_SERVERS_FROM_TOML: Dict[str, Dict[str, Any]] = {}

_TOML_SECTIONS = {
    "model": ["model", "api_base", "temperature", "max_tokens"],
    "safety": ["safe_mode", "auto_approve", "allowed_commands"],
    "agent": ["max_tool_iterations", "command_timeout", "max_command_timeout", "max_output_chars", "max_search_results", "max_history_messages"],
}

_INT_PARAMS = {"max_tokens", "max_tool_iterations", "command_timeout", "max_command_timeout", "max_output_chars", "max_search_results", "max_history_messages"}
_BOOL_PARAMS = {"safe_mode", "auto_approve"}
_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}

SUPPORTED_SET_PARAMS = {
    "model": {
        "env_var": "LITELLM_MODEL",
        "description": "The language model, in LiteLLM form (e.g. 'ollama_chat/qwen2.5-coder:7b')."
    },
    "api_base": {
        "env_var": "LITELLM_API_BASE",
        "description": "Base URL of the local model server (default: the Ollama port on localhost)."
    },
    "temperature": {
        "env_var": "LITELLM_TEMPERATURE",
        "description": "Sampling temperature (0.0 to 2.0, lower is more deterministic)."
    },
    "max_tokens": {
        "env_var": "LITELLM_MAX_TOKENS",
        "description": "Maximum number of tokens for each model response."
    },
    "safe_mode": {
        "env_var": "LOCAL_CODER_SAFE_MODE",
        "allowed_values": ["on", "off", "true", "false"],
        "description": "Only run shell commands whose programs are in the allowlist."
    },
    "auto_approve": {
        "env_var": "LOCAL_CODER_AUTO_APPROVE",
        "allowed_values": ["on", "off", "true", "false"],
        "description": "Skip confirmation prompts for shell, write, edit and auxiliary tools."
    },
    "allowed_commands": {
        "env_var": "LOCAL_CODER_ALLOWED_COMMANDS",
        "description": "Comma-separated programs that safe mode lets through."
    },
    "max_tool_iterations": {
        "env_var": "LOCAL_CODER_MAX_TOOL_ITERATIONS",
        "description": "Tool rounds allowed per user message before the loop gives up."
    },
    "command_timeout": {
        "env_var": "LOCAL_CODER_COMMAND_TIMEOUT",
        "description": "Default shell command timeout in seconds."
    },
    "max_command_timeout": {
        "env_var": "LOCAL_CODER_MAX_COMMAND_TIMEOUT",
        "description": "Upper bound in seconds on a timeout requested by the model."
    },
    "max_output_chars": {
        "env_var": "LOCAL_CODER_MAX_OUTPUT_CHARS",
        "description": "Tool output is truncated beyond this many characters."
    },
    "max_search_results": {
        "env_var": "LOCAL_CODER_MAX_SEARCH_RESULTS",
        "description": "Cap on Glob and Grep results."
    },
    "max_history_messages": {
        "env_var": "LOCAL_CODER_MAX_HISTORY_MESSAGES",
        "description": "Non-system messages kept in the conversation sent to the model."
    },
}


class AgentSettings(BaseModel):
    """Resolved settings handed to the agent core. Immutable for the duration of a request."""
    model: str = ULTIMATE_DEFAULTS["model"]
    api_base: Optional[str] = ULTIMATE_DEFAULTS["api_base"]
    temperature: float = Field(default=ULTIMATE_DEFAULTS["temperature"], ge=0.0, le=2.0)
    max_tokens: int = Field(default=ULTIMATE_DEFAULTS["max_tokens"], gt=0)
    safe_mode: bool = True
    auto_approve: bool = False
    allowed_commands: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_COMMANDS))
    max_tool_iterations: int = Field(default=ULTIMATE_DEFAULTS["max_tool_iterations"], ge=1)
    command_timeout: int = Field(default=ULTIMATE_DEFAULTS["command_timeout"], gt=0)
    max_command_timeout: int = Field(default=ULTIMATE_DEFAULTS["max_command_timeout"], gt=0)
    max_output_chars: int = Field(default=ULTIMATE_DEFAULTS["max_output_chars"], gt=0)
    max_search_results: int = Field(default=ULTIMATE_DEFAULTS["max_search_results"], gt=0)
    max_history_messages: int = Field(default=ULTIMATE_DEFAULTS["max_history_messages"], gt=0)
    parameter_aliases: Dict[str, List[str]] = Field(default_factory=lambda: merge_parameter_aliases(None))
    mcp_servers: List[McpServerConfig] = Field(default_factory=list)
    # Set by the active agent profile; None lets every tool through
    allowed_tools: Optional[List[str]] = None
    model_config = ConfigDict(extra='ignore', frozen=True)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"'{value}' is not a boolean (use on/off).")


def _to_command_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [c.strip() for c in value.split(",") if c.strip()]
    return [str(c).strip() for c in value if str(c).strip()]


def convert_param_value(param_name: str, value: Any) -> Any:
    """Convert a raw (string) setting to its typed form. Raises ValueError on bad input."""
    if param_name in _INT_PARAMS:
        converted = int(value)
        if converted <= 0:
            raise ValueError(f"{param_name} must be a positive integer.")
        return converted
    if param_name == "temperature":
        converted = float(value)
        if not (0.0 <= converted <= 2.0):
            raise ValueError("Temperature must be between 0.0 and 2.0.")
        return converted
    if param_name in _BOOL_PARAMS:
        return _to_bool(value)
    if param_name == "allowed_commands":
        return _to_command_list(value)
    return value


def update_runtime_override(param_name: str, value: Any, runtime_overrides: Dict[str, Any], console_obj=None) -> bool:
    """
    Updates a runtime override for a given parameter.
    Validates against SUPPORTED_SET_PARAMS; errors are printed, never raised.
    """
    param_name_lower = param_name.lower()
    if param_name_lower not in SUPPORTED_SET_PARAMS:
        if console_obj:
            console_obj.print(f"[red]Error: Unknown parameter '{param_name}'. Cannot set override.[/red]")
        return False

    allowed_values = SUPPORTED_SET_PARAMS[param_name_lower].get("allowed_values")
    if allowed_values and str(value).lower() not in allowed_values:
        if console_obj:
            console_obj.print(f"[red]Error: Invalid value '{value}' for {param_name_lower}. Allowed values: {', '.join(allowed_values)}[/red]")
        return False

    try:
        converted = convert_param_value(param_name_lower, value)
    except (TypeError, ValueError) as e:
        if console_obj:
            console_obj.print(f"[red]Error: Invalid value '{value}' for {param_name_lower}. {e}[/red]")
        return False

    runtime_overrides[param_name_lower] = converted
    if console_obj:
        console_obj.print(f"[green]✓ Runtime override set: {param_name_lower} = {converted}[/green]")
    return True


def remove_runtime_override(param_name: str, runtime_overrides: Dict[str, Any], console_obj=None):
    """Removes a runtime override."""
    if param_name.lower() in runtime_overrides:
        del runtime_overrides[param_name.lower()]
        if console_obj: console_obj.print(f"[yellow]✓ Runtime override removed for: {param_name.lower()}[/yellow]")
    elif console_obj: console_obj.print(f"[dim]No runtime override found for '{param_name.lower()}' to remove.[/dim]")


def find_config_file() -> Optional[Path]:
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    local_path = Path("config.toml")
    if local_path.exists():
        return local_path
    user_path = USER_CONFIG_PATH.expanduser()
    if user_path.exists():
        return user_path
    return None


def load_configuration(console_obj=None):
    """
    Loads .env into environment variables and config.toml into the module-level tables.
    A missing file is fine; a malformed one prints a warning and falls back to defaults.
    """
    load_dotenv()
    _CONFIG_FROM_TOML.clear()
    _ALIASES_FROM_TOML.clear()
    _MCP_SERVERS_FROM_TOML.clear()

    toml_config_path = find_config_file()
    if toml_config_path is None:
        logger.debug("No config.toml found, using defaults")
        return
    if not toml_config_path.exists():
        if console_obj:
            console_obj.print(f"[yellow]Warning: Config file '{toml_config_path}' does not exist. Using internal defaults.[/yellow]")
        return

    try:
        loaded_toml = toml.load(toml_config_path)
    except (toml.TomlDecodeError, OSError) as e:
        if console_obj:
            console_obj.print(f"[yellow]Warning: Could not load or parse {toml_config_path}: {e}. Using internal defaults.[/yellow]")
        return

    # Flatten [model], [safety] and [agent] into SUPPORTED_SET_PARAMS keys
    for section, keys in _TOML_SECTIONS.items():
        table = loaded_toml.get(section)
        if not isinstance(table, dict):
            continue
        for key in keys:
            if key in table:
                _CONFIG_FROM_TOML[key] = table[key]

    aliases = loaded_toml.get("aliases")
    if isinstance(aliases, dict):
        for logical, spellings in aliases.items():
            _ALIASES_FROM_TOML[logical] = [spellings] if isinstance(spellings, str) else list(spellings)

    servers = loaded_toml.get("mcp_servers")
    if isinstance(servers, dict):
        for name, server_cfg in servers.items():
            if isinstance(server_cfg, dict):
                _MCP_SERVERS_FROM_TOML[name] = server_cfg

    logger.debug("Loaded configuration from %s", toml_config_path)


def get_config_value(param_name: str, runtime_overrides: Dict[str, Any], console_obj=None) -> Any:
    """
    Retrieves a configuration value based on precedence:
    1. Runtime overrides
    2. Environment variables
    3. Values from config.toml (_CONFIG_FROM_TOML)
    4. Ultimate hardcoded defaults (ULTIMATE_DEFAULTS)
    """
    if param_name not in SUPPORTED_SET_PARAMS:
        if console_obj:
            console_obj.print(f"[yellow]Warning: Attempted to get unknown config param '{param_name}'. Using default.[/yellow]")
        return ULTIMATE_DEFAULTS.get(param_name)

    fallback = _CONFIG_FROM_TOML.get(param_name, ULTIMATE_DEFAULTS.get(param_name))

    runtime_val = runtime_overrides.get(param_name)
    if runtime_val is not None:
        return runtime_val

    env_var_name = SUPPORTED_SET_PARAMS[param_name].get("env_var")
    env_val = os.getenv(env_var_name) if env_var_name else None
    if env_val is not None and env_val != "":
        try:
            return convert_param_value(param_name, env_val)
        except (TypeError, ValueError):
            if console_obj:
                console_obj.print(f"[yellow]Warning: Ignoring invalid {env_var_name}='{env_val}'.[/yellow]")

    return fallback


def get_mcp_servers() -> List[McpServerConfig]:
    servers = []
    for name, cfg in _MCP_SERVERS_FROM_TOML.items():
        if not cfg.get("command"):
            logger.warning("MCP server '%s' has no command, skipping", name)
            continue
        servers.append(McpServerConfig(**{**cfg, "name": name}))
    return servers


def build_agent_settings(runtime_overrides: Dict[str, Any], console_obj=None) -> AgentSettings:
    """Resolve every setting into one immutable AgentSettings. Raises ConfigError on invalid values."""
    values = {name: get_config_value(name, runtime_overrides, console_obj) for name in SUPPORTED_SET_PARAMS}
    try:
        for name in ("temperature", "safe_mode", "auto_approve", "allowed_commands", *_INT_PARAMS):
            values[name] = convert_param_value(name, values[name])
        return AgentSettings(
            **values,
            parameter_aliases=merge_parameter_aliases(_ALIASES_FROM_TOML),
            mcp_servers=get_mcp_servers(),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
