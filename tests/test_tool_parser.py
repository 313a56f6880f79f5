# tests/test_tool_parser.py
from localcoder.data_models import ToolInvocation
from localcoder.tool_parser import has_tool_calls, parse


def test_scenario_glob_with_leading_commentary():
    """A bare <tool_call> after prose yields one invocation and the prose as commentary."""
    text = "I'll list files.\n<tool_call><tool_name>Glob</tool_name><parameters><pattern>*.md</pattern></parameters></tool_call>"
    invocations, commentary = parse(text)
    assert invocations == [ToolInvocation(name="Glob", parameters={"pattern": "*.md"})]
    assert commentary == "I'll list files."


def test_no_tool_calls_returns_text_unchanged():
    text = "  Just an answer.\n\nWith two paragraphs.  "
    invocations, commentary = parse(text)
    assert invocations == []
    assert commentary == text


def test_empty_and_none_input():
    assert parse("") == ([], "")
    assert parse(None) == ([], "")


def test_function_calls_block_with_multiple_invocations():
    text = (
        "Let me look.\n"
        "<function_calls>\n"
        "<invoke name=\"Read\">\n<parameter name=\"file_path\">src/app.py</parameter>\n</invoke>\n"
        "<invoke name='Bash'>\n<parameter name='command'>git status</parameter>\n"
        "<parameter name=\"description\">Show status</parameter>\n</invoke>\n"
        "</function_calls>\n"
        "Done."
    )
    invocations, commentary = parse(text)
    assert [i.name for i in invocations] == ["Read", "Bash"]
    assert invocations[0].parameters == {"file_path": "src/app.py"}
    assert invocations[1].parameters == {"command": "git status", "description": "Show status"}
    assert commentary == "Let me look.\n\nDone."


def test_tool_calls_wrapper_with_several_items():
    text = (
        "<tool_calls>"
        "<tool_call><tool_name>Read</tool_name><parameters><path>a.txt</path></parameters></tool_call>"
        "<tool_call><tool_name>Grep</tool_name><parameters><pattern>TODO</pattern><mode>content</mode></parameters></tool_call>"
        "</tool_calls>"
    )
    invocations, commentary = parse(text)
    assert [i.name for i in invocations] == ["Read", "Grep"]
    assert invocations[0].parameters == {"path": "a.txt"}
    assert invocations[1].parameters == {"pattern": "TODO", "mode": "content"}
    assert commentary == ""


def test_multiple_blocks_in_one_response():
    text = (
        "First.\n<tool_call><tool_name>Read</tool_name><parameters><file_path>a</file_path></parameters></tool_call>\n"
        "Second.\n<tool_call><tool_name>Read</tool_name><parameters><file_path>b</file_path></parameters></tool_call>"
    )
    invocations, commentary = parse(text)
    assert [i.parameters["file_path"] for i in invocations] == ["a", "b"]
    assert "First." in commentary and "Second." in commentary


def test_last_write_wins_for_duplicate_tags():
    """The same parameter twice keeps the later value."""
    text = "<tool_call><tool_name>Bash</tool_name><parameters><command>a</command><command>b</command></parameters></tool_call>"
    invocations, _ = parse(text)
    assert invocations[0].parameters["command"] == "b"


def test_last_write_wins_in_invoke_form():
    text = (
        '<function_calls><invoke name="Bash">'
        '<parameter name="command">a</parameter><parameter name="command">b</parameter>'
        '</invoke></function_calls>'
    )
    invocations, _ = parse(text)
    assert invocations[0].parameters == {"command": "b"}


def test_unknown_parameter_names_pass_through():
    text = "<tool_call><tool_name>Read</tool_name><parameters><filename>x.py</filename><foo>bar</foo></parameters></tool_call>"
    invocations, _ = parse(text)
    assert invocations[0].parameters == {"filename": "x.py", "foo": "bar"}


def test_parameter_values_are_kept_verbatim():
    content = "\n  indented line\n\ttab\n<b>not a tag boundary</b>\n"
    text = f'<function_calls><invoke name="Write"><parameter name="file_path">f.txt</parameter><parameter name="content">{content}</parameter></invoke></function_calls>'
    invocations, _ = parse(text)
    assert invocations[0].parameters["content"] == content


def test_tool_name_is_trimmed():
    text = "<tool_call><tool_name>  Glob \n</tool_name><parameters><pattern>*</pattern></parameters></tool_call>"
    invocations, _ = parse(text)
    assert invocations[0].name == "Glob"


def test_truncated_block_keeps_complete_invocations_and_raw_remainder():
    """A missing closing tag returns what parsed before the cut, remainder as commentary."""
    text = (
        "Working.\n<function_calls>\n"
        '<invoke name="Read"><parameter name="file_path">a.py</parameter></invoke>\n'
        '<invoke name="Bash"><parameter name="command">ls -'
    )
    invocations, commentary = parse(text)
    assert invocations == [ToolInvocation(name="Read", parameters={"file_path": "a.py"})]
    assert commentary.startswith("Working.")
    assert '<invoke name="Bash"><parameter name="command">ls -' in commentary


def test_truncated_block_without_complete_invocation_is_all_commentary():
    text = "Hmm <tool_call><tool_name>Bash</tool_name><parameters><command>ls"
    invocations, commentary = parse(text)
    assert invocations == []
    assert commentary == text


def test_truncated_tool_calls_wrapper():
    text = (
        "<tool_calls><tool_call><tool_name>Read</tool_name><parameters><file_path>a</file_path></parameters></tool_call>"
        "<tool_call><tool_name>Read</tool_name>"
    )
    invocations, commentary = parse(text)
    assert len(invocations) == 1
    assert commentary == "<tool_call><tool_name>Read</tool_name>"


def test_parsing_is_deterministic():
    text = (
        "Plan:\n<function_calls><invoke name=\"Edit\"><parameter name=\"file_path\">a</parameter>"
        "<parameter name=\"old_string\">x</parameter></invoke></function_calls>\n\n\n\nAfter."
    )
    first = parse(text)
    for _ in range(5):
        assert parse(text) == first


def test_json_tool_call_form():
    text = 'Sure.\n<tool_call>\n{"name": "Bash", "arguments": {"command": "ls -la", "timeout": 30}}\n</tool_call>'
    invocations, commentary = parse(text)
    assert invocations == [ToolInvocation(name="Bash", parameters={"command": "ls -la", "timeout": "30"})]
    assert commentary == "Sure."


def test_json_tool_call_with_string_encoded_arguments():
    text = '<tool_call>{"name": "Read", "arguments": "{\\"file_path\\": \\"a.py\\"}"}</tool_call>'
    invocations, _ = parse(text)
    assert invocations[0].parameters == {"file_path": "a.py"}


def test_invalid_json_tool_call_is_kept_as_commentary():
    text = "<tool_call>{not json}</tool_call>"
    invocations, commentary = parse(text)
    assert invocations == []
    assert commentary == text


def test_malformed_block_between_prose_returns_whole_input():
    text = "Here you go: <tool_call>{broken json</tool_call> thanks"
    invocations, commentary = parse(text)
    assert invocations == []
    assert commentary == text


def test_malformed_block_next_to_valid_one_stays_in_commentary():
    text = (
        "<tool_call>{broken json</tool_call>\n"
        "<tool_call><tool_name>Read</tool_name><parameters><file_path>a</file_path></parameters></tool_call>"
    )
    invocations, commentary = parse(text)
    assert [i.name for i in invocations] == ["Read"]
    assert commentary == "<tool_call>{broken json</tool_call>"


def test_invocation_with_empty_name_is_skipped():
    text = '<function_calls><invoke name=" "><parameter name="a">b</parameter></invoke></function_calls>'
    invocations, _ = parse(text)
    assert invocations == []


def test_garbage_input_never_raises():
    for text in ["<tool_call>", "</tool_call>", "<function_calls><invoke", "<tool_calls><<<>>>", "<invoke name=\"x\">"]:
        invocations, commentary = parse(text)
        assert isinstance(invocations, list)
        assert isinstance(commentary, str)


def test_has_tool_calls():
    assert has_tool_calls("x <function_calls> y")
    assert has_tool_calls("<tool_calls>")
    assert has_tool_calls("<tool_call>{}")
    assert not has_tool_calls("plain text about tool calls")
    assert not has_tool_calls("")
    assert not has_tool_calls(None)
