"""Tests for linearctl.query: the key:value selector language."""

from linearctl.models import QueryFilter
from linearctl.query import SUPPORTED_QUERY_KEYS, parse_query, supported_query_keys


class TestParseQuery:
    def test_single_pair(self) -> None:
        assert parse_query("state:Todo") == QueryFilter(state="Todo")

    def test_multiple_pairs(self) -> None:
        parsed = parse_query("state:Todo team:ENG priority:1")
        assert parsed.state == "Todo"
        assert parsed.team == "ENG"
        assert parsed.priority == 1

    def test_quoted_value_with_spaces(self) -> None:
        parsed = parse_query('state:"In Progress" assignee:"Jane Doe"')
        assert parsed.state == "In Progress"
        assert parsed.assignee == "Jane Doe"

    def test_spaces_around_colon(self) -> None:
        parsed = parse_query("state : Todo team:  ENG")
        assert parsed.state == "Todo"
        assert parsed.team == "ENG"

    def test_keys_are_case_insensitive(self) -> None:
        assert parse_query("STATE:Todo Team:ENG") == QueryFilter(state="Todo", team="ENG")

    def test_value_case_is_preserved(self) -> None:
        assert parse_query("label:NeedsReview").label == "NeedsReview"

    def test_unknown_keys_ignored(self) -> None:
        assert parse_query("state:Todo color:blue") == QueryFilter(state="Todo")

    def test_tokens_without_colon_ignored(self) -> None:
        assert parse_query("hello state:Todo world") == QueryFilter(state="Todo")

    def test_last_duplicate_wins(self) -> None:
        assert parse_query("state:Todo state:Done").state == "Done"

    def test_value_keeps_extra_colons(self) -> None:
        assert parse_query("project:Q4:Roadmap").project == "Q4:Roadmap"

    def test_empty_and_blank(self) -> None:
        assert parse_query("").is_empty()
        assert parse_query("   ").is_empty()


class TestPriority:
    def test_all_valid_values(self) -> None:
        for value in range(5):
            assert parse_query(f"priority:{value}").priority == value

    def test_out_of_range_dropped(self) -> None:
        assert parse_query("priority:5").priority is None
        assert parse_query("priority:-1").priority is None

    def test_only_plain_decimal_accepted(self) -> None:
        for value in ("+2", "٣", "1.5", "2abc", "--1"):
            assert parse_query(f"priority:{value}").priority is None, value
        assert parse_query('priority:" 2"').priority is None

    def test_non_numeric_dropped(self) -> None:
        assert parse_query("priority:high team:ENG") == QueryFilter(team="ENG")


class TestSupportedKeys:
    def test_lists_every_key(self) -> None:
        assert supported_query_keys() == ["state", "team", "assignee", "label", "project", "cycle", "priority"]

    def test_returns_a_copy(self) -> None:
        keys = supported_query_keys()
        keys.append("bogus")
        assert "bogus" not in SUPPORTED_QUERY_KEYS
