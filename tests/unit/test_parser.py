"""
Unit tests for the parser module.

Tests cover record normalization, JSON input and every malformed-input case
that raises ParseError.
"""

import pytest

from processflow.models import Process, ProcessStatus
from processflow.parser import ParseError, Parser, parse_processes


class TestParserRecords:
    """Tests for parsing mappings and Process instances."""

    def test_parse_full_record(self):
        """Test that every field of a mapping is carried over."""
        parser = Parser()
        result = parser.parse(
            [
                {
                    "name": "etl.load",
                    "kind": "sql",
                    "status": "FAILED",
                    "upstream_processes": ["extract"],
                    "last_run_error_message": "boom",
                }
            ]
        )
        assert len(result) == 1
        process = result[0]
        assert process.name == "etl.load"
        assert process.kind == "sql"
        assert process.status == ProcessStatus.FAILED
        assert process.upstream_processes == ("extract",)
        assert process.last_run_error_message == "boom"

    def test_defaults(self):
        """Test that missing optional keys get their defaults."""
        process = Parser().parse([{"name": "a"}])[0]
        assert process.status == ProcessStatus.NOTSTARTED
        assert process.upstream_processes == ()
        assert process.kind == ""
        assert process.last_run_error_message is None

    def test_null_upstream_is_empty(self):
        """Test that a null upstream list is treated as empty."""
        process = Parser().parse([{"name": "a", "upstream_processes": None}])[0]
        assert process.upstream_processes == ()

    def test_process_instances_are_accepted(self):
        """Test that a well-formed Process object comes out unchanged."""
        original = Process("a", status=ProcessStatus.SUCCESS, upstream_processes=("b",))
        assert Parser().parse([original]) == [original]

    def test_process_instance_fields_are_coerced(self):
        """Test that Process objects built with raw values are normalized."""
        process = Parser().parse(
            [Process("a", status="SUCCESS", upstream_processes=["x"])]
        )[0]
        assert process.status is ProcessStatus.SUCCESS
        assert process.upstream_processes == ("x",)

    def test_order_is_preserved(self):
        """Test that output order follows input order."""
        names = [p.name for p in Parser().parse([{"name": "z"}, {"name": "a"}])]
        assert names == ["z", "a"]

    def test_unknown_upstream_is_allowed(self):
        """Test that a dangling upstream reference is not a parse error."""
        process = Parser().parse([{"name": "a", "upstream_processes": ["ghost"]}])[0]
        assert process.upstream_processes == ("ghost",)

    def test_parse_processes_convenience(self):
        """Test the module-level convenience function."""
        result = parse_processes([{"name": "a"}, {"name": "b"}])
        assert [p.name for p in result] == ["a", "b"]


class TestParserErrors:
    """Tests for malformed input."""

    @pytest.mark.parametrize("name", ["", "a..b", ".a", "a."])
    def test_bad_names(self, name):
        """Test that empty names and empty segments are rejected."""
        with pytest.raises(ParseError):
            Parser().parse([{"name": name}])

    def test_missing_name(self):
        """Test that a record without a name is rejected."""
        with pytest.raises(ParseError, match="name"):
            Parser().parse([{"status": "SUCCESS"}])

    def test_duplicate_name(self):
        """Test that duplicate process names are rejected."""
        with pytest.raises(ParseError, match="Duplicate"):
            Parser().parse([{"name": "a"}, {"name": "a"}])

    def test_unknown_status(self):
        """Test that an unknown status string is rejected."""
        with pytest.raises(ParseError, match="Unknown status"):
            Parser().parse([{"name": "a", "status": "DONE"}])

    def test_upstream_not_a_list(self):
        """Test that a string upstream value is rejected."""
        with pytest.raises(ParseError, match="must be a list"):
            Parser().parse([{"name": "a", "upstream_processes": "b"}])

    def test_empty_upstream_entry(self):
        """Test that an empty upstream name is rejected."""
        with pytest.raises(ParseError):
            Parser().parse([{"name": "a", "upstream_processes": [""]}])

    def test_reserved_prefix(self):
        """Test that names colliding with group node ids are rejected."""
        with pytest.raises(ParseError, match="reserved"):
            Parser().parse([{"name": "group-a"}])

    def test_process_instance_with_unknown_status(self):
        """Test that a Process object is validated like a mapping."""
        with pytest.raises(ParseError, match="Unknown status"):
            Parser().parse([Process("a", status="BOGUS")])

    def test_process_instance_with_string_upstream(self):
        with pytest.raises(ParseError, match="must be a list"):
            Parser().parse([Process("a", upstream_processes="b")])

    def test_non_mapping_record(self):
        """Test that a record that is neither a mapping nor a Process fails."""
        with pytest.raises(ParseError, match="Expected a mapping"):
            Parser().parse(["a"])

    def test_none_input(self):
        """Test that None is rejected."""
        with pytest.raises(ParseError):
            Parser().parse(None)


class TestParserJson:
    """Tests for JSON input."""

    def test_json_list(self):
        """Test parsing a JSON list of records."""
        result = Parser().parse_json('[{"name": "a"}, {"name": "b.c"}]')
        assert [p.name for p in result] == ["a", "b.c"]

    def test_json_object_with_processes(self):
        """Test parsing the object shape with a processes key."""
        text = '{"processes": [{"name": "a", "status": "SUCCESS"}]}'
        result = Parser().parse_json(text)
        assert result[0].status == ProcessStatus.SUCCESS

    def test_json_object_without_processes(self):
        """Test that an object without a processes key is rejected."""
        with pytest.raises(ParseError, match="processes"):
            Parser().parse_json('{"items": []}')

    def test_invalid_json(self):
        """Test that invalid JSON is reported as a ParseError."""
        with pytest.raises(ParseError, match="Invalid JSON"):
            Parser().parse_json("[{")

    def test_json_scalar(self):
        """Test that a JSON scalar is rejected."""
        with pytest.raises(ParseError, match="list"):
            Parser().parse_json("42")
