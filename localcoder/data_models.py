# localcoder/data_models.py
import copy
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from localcoder.exceptions import IterationLimitExceededError, ModelTransportError


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool-result"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    SAFETY_DENIED = "safety_denied"
    USER_CANCELLED = "user_cancelled"
    EXECUTION_FAILURE = "execution_failure"
    TOOL_NOT_FOUND = "tool_not_found"
    TIMEOUT = "timeout"
    INTERRUPTED = "interrupted"


class SafetyDecision(str, Enum):
    ALLOWED = "allowed"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    DENIED = "denied"


class TerminalState(str, Enum):
    ANSWERED = "answered"
    MAX_ITERATIONS_EXCEEDED = "max_iterations_exceeded"
    CANCELLED = "cancelled"
    FATAL_ERROR = "fatal_error"


class ToolInvocation(BaseModel):
    name: str
    parameters: Dict[str, str] = Field(default_factory=dict)
    model_config = ConfigDict(extra='ignore', frozen=True)

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Tool invocation name cannot be empty.")
        return value


class ToolResult(BaseModel):
    succeeded: bool
    exit_status: Optional[int] = None
    output: str = ""
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    model_config = ConfigDict(extra='ignore', frozen=True)

    @classmethod
    def ok(cls, output: str = "", exit_status: Optional[int] = None) -> "ToolResult":
        return cls(succeeded=True, output=output, exit_status=exit_status)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, output: str = "", exit_status: Optional[int] = None) -> "ToolResult":
        return cls(succeeded=False, error_kind=kind, error_message=message, output=output, exit_status=exit_status)


class Turn(BaseModel):
    role: Role
    content: str
    model_config = ConfigDict(extra='ignore', frozen=True)

    def to_message(self) -> Dict[str, str]:
        """Chat-completion message dict. Tool results travel back to the model as user messages."""
        role = Role.USER if self.role == Role.TOOL_RESULT else self.role
        return {"role": role.value, "content": self.content}


class ConversationState(BaseModel):
    """Ordered turns plus the number of tool rounds since the last user message."""
    turns: List[Turn] = Field(default_factory=list)
    iteration_count: int = 0

    def add_user_message(self, content: str) -> None:
        self.turns.append(Turn(role=Role.USER, content=content))
        self.iteration_count = 0

    def add(self, role: Role, content: str) -> None:
        self.turns.append(Turn(role=role, content=content))

    def snapshot(self) -> Tuple[Turn, ...]:
        return tuple(copy.deepcopy(self.turns))

    def clear(self, keep_system: bool = True) -> None:
        self.turns = [t for t in self.turns if keep_system and t.role == Role.SYSTEM]
        self.iteration_count = 0


class LoopResult(BaseModel):
    state: TerminalState
    answer: str = ""
    iterations: int = 0
    model_calls: int = 0
    error: Optional[str] = None
    model_config = ConfigDict(extra='ignore', frozen=True)

    def raise_for_state(self) -> None:
        """Raise for the terminal states that end a request abnormally."""
        if self.state == TerminalState.FATAL_ERROR:
            raise ModelTransportError(self.error or "Model call failed.")
        if self.state == TerminalState.MAX_ITERATIONS_EXCEEDED:
            raise IterationLimitExceededError(self.iterations)


class McpServerConfig(BaseModel):
    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env: Optional[Dict[str, str]] = None
    enabled: bool = True
    model_config = ConfigDict(extra='ignore', frozen=True)
