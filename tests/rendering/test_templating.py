"""Tests for the placeholder grammar and rendering."""

from typing import Tuple

from pgsnip.rendering import RawQuoter, ShellQuoter, Template
from pgsnip.rendering.errors import InvalidPlaceholderValueError, MissingPlaceholderError, TemplateError
from pgsnip.rendering.templating import dollar_quoted_spans

import pytest

from tests.rendering.template_cases import BAD_RENDER_CASES, GOOD_CASES


@pytest.mark.parametrize("text, ex_args, values, ex_render", GOOD_CASES)
def test_valid_templates(text: str, ex_args: Tuple[str, ...], values: dict, ex_render: str):
    """Tests placeholders are found and replaced with SQL quoting."""
    template = Template(text)
    assert template.arguments == ex_args
    assert template.render(values) == ex_render
    assert str(template) == text


@pytest.mark.parametrize("text, values, error, match", BAD_RENDER_CASES)
def test_bad_render_values(text: str, values: dict, error, match: str):
    """Tests missing and unknown values are rejected."""
    with pytest.raises(error, match=match):
        Template(text).render(values)


def test_missing_placeholders_are_all_named():
    """Tests the error lists every missing placeholder at once."""
    with pytest.raises(MissingPlaceholderError) as exc_info:
        Template("GRANT SELECT ON [TABLE] TO [ROLE]; -- 'SCHEMA_NAME'").render({})
    assert exc_info.value.names == ("TABLE", "ROLE", "SCHEMA_NAME")


def test_partial_render_keeps_unresolved_placeholders():
    """Tests partial rendering leaves placeholders without values as written."""
    template = Template("SELECT pid FROM pg_stat_activity WHERE datname = 'DATABASE_NAME' OR pid = [PID]")
    rendered = template.render({"PID": 7}, partial=True)
    assert rendered == "SELECT pid FROM pg_stat_activity WHERE datname = 'DATABASE_NAME' OR pid = 7"


def test_placeholders_are_distinct():
    """Tests placeholders lists each name once and literal_placeholders only the quoted ones."""
    template = Template("[ROLE] 'DATABASE_NAME' [ROLE] [SCHEMA] 'DATABASE_NAME'")
    assert template.placeholders == ("ROLE", "DATABASE_NAME", "SCHEMA")
    assert template.literal_placeholders == ("DATABASE_NAME",)


def test_name_used_in_both_forms_is_rejected():
    """Tests a name cannot be both an identifier and a string placeholder."""
    with pytest.raises(TemplateError, match="TABLE_NAME"):
        Template("SELECT * FROM [TABLE_NAME] WHERE relname = 'TABLE_NAME';")


def test_render_with_shell_quoting():
    """Tests shell rendering quotes values as single words."""
    template = Template("psql --dbname [DATABASE] --file [FILE]")
    rendered = template.render({"DATABASE": "shop", "FILE": "dump; rm -rf ~"}, ShellQuoter())
    assert rendered == "psql --dbname shop --file 'dump; rm -rf ~'"


def test_render_raw():
    """Tests raw rendering splices values verbatim."""
    template = Template("SELECT * FROM [TABLE] WHERE datname = 'DATABASE_NAME';")
    rendered = template.render({"TABLE": "Weird Table", "DATABASE_NAME": "it's"}, RawQuoter())
    assert rendered == "SELECT * FROM Weird Table WHERE datname = 'it's';"


def test_dollar_quoted_placeholders():
    """Tests placeholders inside a DO body refuse values that would close it, those outside do not."""
    template = Template(
        "-- $$ in a comment opens nothing\n"
        "SELECT 'SCHEMA_NAME' AS target;\n"
        "DO $body$ BEGIN RAISE NOTICE '%', 'SCHEMA_NAME'; END $body$;"
    )
    with pytest.raises(InvalidPlaceholderValueError, match=r"\$body\$ quoted block"):
        template.render({"SCHEMA_NAME": "odd$body$name"})
    with pytest.raises(InvalidPlaceholderValueError, match=r"\$\$"):
        template.render({"SCHEMA_NAME": "odd$$name"})
    outside = Template("SELECT 'SCHEMA_NAME' AS target; DO $$ BEGIN NULL; END $$;")
    assert outside.render({"SCHEMA_NAME": "odd$$name"}).startswith("SELECT 'odd$$name' AS target;")


def test_dollar_quoted_spans():
    """Tests dollar quoted bodies are found past comments and string constants."""
    text = "SELECT '$$'; /* $x$ */ DO $$ SELECT $q$ a $q$ $$; DO $f$ x"
    spans = dollar_quoted_spans(text)
    assert [(text[s:e], tag) for s, e, tag in spans] == [(" SELECT $q$ a $q$ ", "$$"), (" x", "$f$")]
