# tests/test_config_utils.py
from unittest.mock import MagicMock, patch

import pytest
import toml
from pydantic import ValidationError

from localcoder import config_utils
from localcoder.exceptions import ConfigError


@pytest.fixture
def mock_console():
    """Fixture for a mock Rich console object."""
    return MagicMock()


@pytest.fixture(autouse=True)
def reset_config_globals_and_env(monkeypatch, tmp_path):
    """Reset the config tables and relevant env vars before each test."""
    config_utils._CONFIG_FROM_TOML.clear()
    config_utils._ALIASES_FROM_TOML.clear()
    config_utils._MCP_SERVERS_FROM_TOML.clear()
    for p_config in config_utils.SUPPORTED_SET_PARAMS.values():
        monkeypatch.delenv(p_config["env_var"], raising=False)
    monkeypatch.delenv(config_utils.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(config_utils, "USER_CONFIG_PATH", tmp_path / "no-user-config.toml")
    monkeypatch.chdir(tmp_path)
    yield
    config_utils._CONFIG_FROM_TOML.clear()
    config_utils._ALIASES_FROM_TOML.clear()
    config_utils._MCP_SERVERS_FROM_TOML.clear()


@pytest.fixture
def temp_config_file(tmp_path):
    """Creates a config.toml in the working directory and returns its path."""
    config_content = {
        "model": {"model": "ollama_chat/toml-model", "api_base": "http://toml.host:11434", "temperature": 0.3},
        "safety": {"safe_mode": False, "allowed_commands": ["ls", "make"]},
        "agent": {"max_tool_iterations": 4, "command_timeout": 30},
        "aliases": {"file_path": ["target", "file_path"], "command": "shell_cmd"},
        "mcp_servers": {
            "fs": {"command": "npx", "args": ["-y", "server-fs"], "enabled": True},
            "broken": {"args": ["x"]},
        },
    }
    config_file = tmp_path / "config.toml"
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(config_content, f)
    return config_file


class TestLoadConfiguration:

    @patch('localcoder.config_utils.load_dotenv')
    def test_load_configuration_success(self, mock_load_dotenv, temp_config_file, mock_console):
        config_utils.load_configuration(mock_console)

        mock_load_dotenv.assert_called_once()
        assert config_utils._CONFIG_FROM_TOML["model"] == "ollama_chat/toml-model"
        assert config_utils._CONFIG_FROM_TOML["safe_mode"] is False
        assert config_utils._CONFIG_FROM_TOML["max_tool_iterations"] == 4
        assert config_utils._ALIASES_FROM_TOML == {"file_path": ["target", "file_path"], "command": ["shell_cmd"]}
        assert set(config_utils._MCP_SERVERS_FROM_TOML) == {"fs", "broken"}
        mock_console.print.assert_not_called()

    @patch('localcoder.config_utils.load_dotenv')
    def test_load_configuration_file_not_found(self, mock_load_dotenv, mock_console):
        config_utils.load_configuration(mock_console)
        assert config_utils._CONFIG_FROM_TOML == {}
        mock_console.print.assert_not_called()

    @patch('localcoder.config_utils.load_dotenv')
    def test_load_configuration_malformed_toml(self, mock_load_dotenv, tmp_path, mock_console):
        (tmp_path / "config.toml").write_text("this is [not valid toml")
        config_utils.load_configuration(mock_console)
        assert config_utils._CONFIG_FROM_TOML == {}
        assert "Could not load or parse" in mock_console.print.call_args.args[0]

    @patch('localcoder.config_utils.load_dotenv')
    def test_env_var_points_to_missing_file(self, mock_load_dotenv, tmp_path, mock_console, monkeypatch):
        monkeypatch.setenv(config_utils.CONFIG_ENV_VAR, str(tmp_path / "elsewhere.toml"))
        config_utils.load_configuration(mock_console)
        assert "does not exist" in mock_console.print.call_args.args[0]

    @patch('localcoder.config_utils.load_dotenv')
    def test_reload_clears_previous_values(self, mock_load_dotenv, temp_config_file, mock_console):
        config_utils.load_configuration(mock_console)
        temp_config_file.unlink()
        config_utils.load_configuration(mock_console)
        assert config_utils._CONFIG_FROM_TOML == {}
        assert config_utils._MCP_SERVERS_FROM_TOML == {}


class TestFindConfigFile:

    def test_env_var_wins(self, tmp_path, temp_config_file, monkeypatch):
        other = tmp_path / "other.toml"
        monkeypatch.setenv(config_utils.CONFIG_ENV_VAR, str(other))
        assert config_utils.find_config_file() == other

    def test_local_file(self, temp_config_file):
        assert config_utils.find_config_file().name == "config.toml"

    def test_user_file(self, tmp_path, monkeypatch):
        user_file = tmp_path / "user.toml"
        user_file.write_text("")
        monkeypatch.setattr(config_utils, "USER_CONFIG_PATH", user_file)
        assert config_utils.find_config_file() == user_file

    def test_none(self):
        assert config_utils.find_config_file() is None


class TestGetConfigValue:

    def test_default(self):
        assert config_utils.get_config_value("model", {}) == config_utils.ULTIMATE_DEFAULTS["model"]

    @patch('localcoder.config_utils.load_dotenv')
    def test_toml_over_default(self, mock_load_dotenv, temp_config_file):
        config_utils.load_configuration()
        assert config_utils.get_config_value("temperature", {}) == 0.3

    @patch('localcoder.config_utils.load_dotenv')
    def test_env_over_toml(self, mock_load_dotenv, temp_config_file, monkeypatch):
        config_utils.load_configuration()
        monkeypatch.setenv("LITELLM_TEMPERATURE", "1.1")
        monkeypatch.setenv("LOCAL_CODER_SAFE_MODE", "on")
        assert config_utils.get_config_value("temperature", {}) == 1.1
        assert config_utils.get_config_value("safe_mode", {}) is True

    def test_runtime_over_env(self, monkeypatch):
        monkeypatch.setenv("LITELLM_MODEL", "env-model")
        assert config_utils.get_config_value("model", {"model": "runtime-model"}) == "runtime-model"

    def test_invalid_env_value_warns_and_falls_back(self, monkeypatch, mock_console):
        monkeypatch.setenv("LOCAL_CODER_MAX_TOOL_ITERATIONS", "many")
        assert config_utils.get_config_value("max_tool_iterations", {}, mock_console) == 10
        assert "Ignoring invalid" in mock_console.print.call_args.args[0]

    def test_empty_env_value_is_ignored(self, monkeypatch):
        monkeypatch.setenv("LITELLM_MODEL", "")
        assert config_utils.get_config_value("model", {}) == config_utils.ULTIMATE_DEFAULTS["model"]

    def test_allowed_commands_from_env(self, monkeypatch):
        monkeypatch.setenv("LOCAL_CODER_ALLOWED_COMMANDS", "ls, git ,make")
        assert config_utils.get_config_value("allowed_commands", {}) == ["ls", "git", "make"]

    def test_unknown_param(self, mock_console):
        assert config_utils.get_config_value("colour", {}, mock_console) is None
        mock_console.print.assert_called_once()


class TestRuntimeOverrides:

    def test_update_valid(self, mock_console):
        overrides = {}
        assert config_utils.update_runtime_override("Max_Tool_Iterations", "5", overrides, mock_console)
        assert overrides == {"max_tool_iterations": 5}

    @pytest.mark.parametrize("param, value", [
        ("temperature", "3.5"),
        ("temperature", "hot"),
        ("max_tokens", "0"),
        ("safe_mode", "maybe"),
        ("nonexistent", "1"),
    ])
    def test_update_invalid(self, param, value, mock_console):
        overrides = {}
        assert not config_utils.update_runtime_override(param, value, overrides, mock_console)
        assert overrides == {}
        assert "Error" in mock_console.print.call_args.args[0]

    def test_update_bool(self):
        overrides = {}
        config_utils.update_runtime_override("auto_approve", "ON", overrides)
        assert overrides["auto_approve"] is True

    def test_remove(self, mock_console):
        overrides = {"model": "x"}
        config_utils.remove_runtime_override("MODEL", overrides, mock_console)
        assert overrides == {}
        config_utils.remove_runtime_override("model", overrides, mock_console)
        assert "No runtime override" in mock_console.print.call_args.args[0]


class TestBuildAgentSettings:

    def test_defaults(self):
        settings = config_utils.build_agent_settings({})
        assert settings.safe_mode is True
        assert settings.auto_approve is False
        assert settings.max_tool_iterations == 10
        assert settings.allowed_commands == config_utils.DEFAULT_ALLOWED_COMMANDS
        assert settings.parameter_aliases["file_path"][0] == "file_path"
        assert settings.mcp_servers == []

    @patch('localcoder.config_utils.load_dotenv')
    def test_from_toml(self, mock_load_dotenv, temp_config_file):
        config_utils.load_configuration()
        settings = config_utils.build_agent_settings({})
        assert settings.model == "ollama_chat/toml-model"
        assert settings.safe_mode is False
        assert settings.allowed_commands == ["ls", "make"]
        assert settings.command_timeout == 30
        assert settings.parameter_aliases["file_path"] == ["target", "file_path"]
        assert settings.parameter_aliases["content"] == ["content", "text", "data", "body"]
        assert [s.name for s in settings.mcp_servers] == ["fs"]
        assert settings.mcp_servers[0].args == ["-y", "server-fs"]

    def test_settings_are_frozen(self):
        settings = config_utils.build_agent_settings({})
        with pytest.raises(ValidationError):
            settings.safe_mode = False

    def test_invalid_toml_value_raises_config_error(self):
        config_utils._CONFIG_FROM_TOML["max_tool_iterations"] = "lots"
        with pytest.raises(ConfigError):
            config_utils.build_agent_settings({})

    def test_runtime_override_applies(self):
        settings = config_utils.build_agent_settings({"auto_approve": True, "temperature": 0.0})
        assert settings.auto_approve is True
        assert settings.temperature == 0.0


def test_convert_param_value():
    assert config_utils.convert_param_value("command_timeout", "15") == 15
    assert config_utils.convert_param_value("temperature", "0") == 0.0
    assert config_utils.convert_param_value("safe_mode", "no") is False
    assert config_utils.convert_param_value("allowed_commands", ["ls", " "]) == ["ls"]
    assert config_utils.convert_param_value("model", "m") == "m"
    with pytest.raises(ValueError):
        config_utils.convert_param_value("max_output_chars", "-1")


def test_max_command_timeout_is_configurable(monkeypatch):
    monkeypatch.setenv("LOCAL_CODER_MAX_COMMAND_TIMEOUT", "60")
    assert config_utils.build_agent_settings({}).max_command_timeout == 60
    assert config_utils.AgentSettings().allowed_tools is None
