import pytest

from jira_draft.application.services.document_codec import DocumentCodec
from jira_draft.application.services.template_renderer import TemplateRenderer
from jira_draft.domain.errors import DocumentSyntaxError, UnknownFieldError
from jira_draft.domain.ticket import TicketDraft


@pytest.fixture
def codec():
    return DocumentCodec(renderer=TemplateRenderer())


def test_encode_then_decode_summary_and_description(codec):
    draft = TicketDraft(summary="Login fails", description="Steps:\n1. open\n2. click")

    ticket = codec.decode(codec.encode(draft))

    assert ticket.to_payload() == {
        "fields": {
            "summary": "Login fails",
            "description": "Steps:\n1. open\n2. click",
        }
    }


def test_description_with_indented_first_line_survives(codec):
    draft = TicketDraft(summary="s", description="    code block\nexplanation")

    fields = codec.decode(codec.encode(draft)).fields

    assert fields["description"] == "    code block\nexplanation"


@pytest.mark.parametrize("description", ["line\n", "line\n\n", "  \nfirst line blank"])
def test_description_trailing_and_leading_whitespace_survives(codec, description):
    fields = codec.decode(codec.encode(TicketDraft(description=description))).fields

    assert fields["description"] == description


def test_empty_description_is_not_submitted(codec):
    assert "description" not in codec.decode(codec.encode(TicketDraft(summary="s"))).fields


def test_encode_quotes_values_that_look_like_yaml(codec):
    draft = TicketDraft(summary="fix: crash on # start", project="123", priority="Major")

    fields = codec.decode(codec.encode(draft)).fields

    assert fields["summary"] == "fix: crash on # start"
    assert fields["project"] == {"key": "123"}
    assert fields["priority"] == {"name": "Major"}


def test_encode_includes_priority_hint():
    codec = DocumentCodec(renderer=TemplateRenderer(), priorities=["P1", "P2"])

    text = codec.encode(TicketDraft())

    assert text.splitlines()[0] == "# priority: P1, P2"


def test_empty_values_are_dropped(codec):
    fields = codec.decode('summary: hi\nproject: ""\nassignee:\n').fields

    assert fields == {"summary": "hi"}


def test_unknown_field_names_the_key(codec):
    with pytest.raises(UnknownFieldError, match="foo") as exc_info:
        codec.decode("summary: hi\nfoo: bar\n")

    assert exc_info.value.field == "foo"


def test_unknown_field_with_empty_value_is_dropped(codec):
    assert codec.decode("foo:\nsummary: hi\n").fields == {"summary": "hi"}


def test_mapping_description_wins_over_trailing_scalar(codec):
    fields = codec.decode("description: A\n---\nB\n").fields

    assert fields == {"description": "A"}


def test_trailing_scalar_becomes_description(codec):
    assert codec.decode("--- hello\n").fields == {"description": "hello"}


def test_empty_mapping_description_is_filled_by_trailing_scalar(codec):
    assert codec.decode('description: ""\n---\nfrom block\n').fields == {
        "description": "from block"
    }
    assert codec.decode("description:\n---\nfrom block\n").fields == {
        "description": "from block"
    }


def test_last_scalar_section_wins(codec):
    assert codec.decode("--- first\n--- second\n").fields == {"description": "second"}


def test_later_mapping_sections_overwrite_earlier_keys(codec):
    fields = codec.decode("summary: one\nproject: A\n---\nsummary: two\n").fields

    assert fields == {"summary": "two", "project": {"key": "A"}}


def test_component_is_renamed_and_wrapped_in_list(codec):
    fields = codec.decode("component: core\n").fields

    assert fields == {"components": [{"name": "core"}]}


def test_all_field_transforms(codec):
    text = (
        "summary: s\n"
        "description: d\n"
        "project: PROJ\n"
        "component: core\n"
        "issuetype: Bug\n"
        "assignee: bob\n"
        "reporter: alice\n"
        "priority: Major\n"
    )

    assert codec.decode(text).fields == {
        "summary": "s",
        "description": "d",
        "project": {"key": "PROJ"},
        "components": [{"name": "core"}],
        "issuetype": {"name": "Bug"},
        "assignee": {"name": "bob"},
        "reporter": {"name": "alice"},
        "priority": {"name": "Major"},
    }


def test_non_string_scalars_become_text(codec):
    fields = codec.decode("summary: 2024-01-05\npriority: 1\n").fields

    assert fields == {"summary": "2024-01-05", "priority": {"name": "1"}}


def test_error_comments_do_not_affect_parsing(codec):
    text = "# ERROR: unknown field: 'foo'\nsummary: hi\n"

    assert codec.decode(text).fields == {"summary": "hi"}


def test_malformed_yaml_is_a_syntax_error(codec):
    with pytest.raises(DocumentSyntaxError):
        codec.decode("summary: [unclosed\n")


def test_list_section_is_a_syntax_error(codec):
    with pytest.raises(DocumentSyntaxError, match="섹션 1"):
        codec.decode("- a\n- b\n")


def test_nested_value_is_a_syntax_error(codec):
    with pytest.raises(DocumentSyntaxError, match="assignee"):
        codec.decode("assignee:\n  name: bob\n")
