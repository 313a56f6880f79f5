# tests/test_data_models.py
import pytest
from pydantic import ValidationError

from localcoder.data_models import (
    ConversationState,
    ErrorKind,
    LoopResult,
    Role,
    TerminalState,
    ToolInvocation,
    ToolResult,
    Turn,
)


def test_tool_invocation_requires_name():
    with pytest.raises(ValidationError):
        ToolInvocation(name="  ")


def test_tool_invocation_is_immutable():
    invocation = ToolInvocation(name="Read", parameters={"file_path": "a"})
    with pytest.raises(ValidationError):
        invocation.name = "Write"


def test_tool_result_constructors():
    ok = ToolResult.ok("out", exit_status=0)
    assert ok.succeeded and ok.error_kind is None and ok.exit_status == 0
    failed = ToolResult.fail(ErrorKind.TIMEOUT, "too slow", output="partial")
    assert not failed.succeeded
    assert failed.error_kind == ErrorKind.TIMEOUT
    assert failed.output == "partial"


def test_tool_result_turn_is_sent_as_user_message():
    assert Turn(role=Role.TOOL_RESULT, content="r").to_message() == {"role": "user", "content": "r"}
    assert Turn(role=Role.ASSISTANT, content="a").to_message() == {"role": "assistant", "content": "a"}


def test_add_user_message_resets_iteration_count():
    state = ConversationState()
    state.iteration_count = 7
    state.add_user_message("next")
    assert state.iteration_count == 0
    assert state.turns[-1] == Turn(role=Role.USER, content="next")


def test_snapshot_is_independent_copy():
    state = ConversationState()
    state.add(Role.USER, "a")
    snap = state.snapshot()
    state.add(Role.ASSISTANT, "b")
    assert len(snap) == 1
    assert isinstance(snap, tuple)


def test_clear_keeps_system_turn():
    state = ConversationState()
    state.add(Role.SYSTEM, "sys")
    state.add_user_message("u")
    state.iteration_count = 2
    state.clear()
    assert [t.content for t in state.turns] == ["sys"]
    assert state.iteration_count == 0
    state.clear(keep_system=False)
    assert state.turns == []


def test_loop_result_raise_for_state_answered_is_silent():
    LoopResult(state=TerminalState.ANSWERED, answer="x").raise_for_state()
    LoopResult(state=TerminalState.CANCELLED).raise_for_state()
