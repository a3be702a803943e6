"""Unit tests for bracket-nested query string parsing."""

import time

from hyperconnect.querystring import PARAMETER_LIMIT, parse_query, query_from_url


class TestParseQuery:
    def test_simple_pair(self):
        assert parse_query("q=Ninkasi") == {"q": "Ninkasi"}

    def test_plus_and_percent_decoding(self):
        assert parse_query("q=tobi+ferret&x=%2Fa") == {"q": "tobi ferret", "x": "/a"}

    def test_empty(self):
        assert parse_query("") == {}
        assert parse_query(None) == {}

    def test_nested_mapping(self):
        assert parse_query("a[b]=1") == {"a": {"b": "1"}}

    def test_nested_siblings(self):
        result = parse_query("order=desc&shoe[color]=blue&shoe[type]=converse")

        assert result == {"order": "desc", "shoe": {"color": "blue", "type": "converse"}}

    def test_encoded_brackets(self):
        assert parse_query("a%5Bb%5D=1") == {"a": {"b": "1"}}

    def test_empty_brackets_append(self):
        assert parse_query("a[]=x&a[]=y") == {"a": ["x", "y"]}

    def test_indices_are_ordered(self):
        assert parse_query("a[1]=y&a[0]=x") == {"a": ["x", "y"]}

    def test_large_index_becomes_key(self):
        assert parse_query("a[100]=x") == {"a": {"100": "x"}}

    def test_repeated_key_becomes_list(self):
        assert parse_query("a=1&a=2&a=3") == {"a": ["1", "2", "3"]}

    def test_blank_value_kept(self):
        assert parse_query("flag=") == {"flag": ""}

    def test_depth_limit_keeps_remainder(self):
        result = parse_query("a[b][c][d][e][f][g]=1")

        assert result == {"a": {"b": {"c": {"d": {"e": {"f": {"[g]": "1"}}}}}}}

    def test_list_of_mappings(self):
        result = parse_query("a[0][b]=1&a[1][b]=2")

        assert result == {"a": [{"b": "1"}, {"b": "2"}]}

    def test_leading_bracket_is_stripped(self):
        assert parse_query("[a]=b") == {"a": "b"}

    def test_text_after_brackets_is_dropped(self):
        assert parse_query("a[b]c=1") == {"a": {"b": "1"}}

    def test_unclosed_bracket_is_literal(self):
        assert parse_query("a[b=1") == {"a[b": "1"}

    def test_parameter_limit_truncates(self):
        query = "&".join(f"k{i}=v" for i in range(1500))

        result = parse_query(query)

        assert len(result) == PARAMETER_LIMIT
        assert "k999" in result
        assert "k1000" not in result


class TestLargeQueries:
    def test_many_appends_parse_quickly(self):
        started = time.perf_counter()
        result = parse_query("&".join(["a[]=x"] * 20000))

        assert time.perf_counter() - started < 1.0
        assert result == {"a": ["x"] * PARAMETER_LIMIT}

    def test_many_appends_below_limit(self):
        result = parse_query("&".join(f"a[]={i}" for i in range(PARAMETER_LIMIT)))

        assert result["a"][0] == "0"
        assert result["a"][-1] == str(PARAMETER_LIMIT - 1)

    def test_appends_past_the_limit_stay_linear(self, monkeypatch):
        monkeypatch.setattr("hyperconnect.querystring.PARAMETER_LIMIT", 50000)

        started = time.perf_counter()
        result = parse_query("&".join(["a[]=x"] * 20000) + "&" + "&".join(["b=1"] * 20000))

        assert time.perf_counter() - started < 2.0
        assert len(result["a"]) == 20000
        assert len(result["b"]) == 20000

    def test_repeated_key_parses_quickly(self):
        started = time.perf_counter()
        result = parse_query("&".join(["a=1"] * 20000))

        assert time.perf_counter() - started < 1.0
        assert len(result["a"]) == PARAMETER_LIMIT


class TestQueryFromUrl:
    def test_query_after_first_question_mark(self):
        assert query_from_url("/users?q=Ninkasi") == {"q": "Ninkasi"}

    def test_no_question_mark(self):
        assert query_from_url("/users") == {}

    def test_nested(self):
        assert query_from_url("/x?a[b]=1") == {"a": {"b": "1"}}

    def test_only_first_question_mark_splits(self):
        assert query_from_url("/x?a=1?2") == {"a": "1?2"}
