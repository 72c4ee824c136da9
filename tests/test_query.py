"""Tests for the URL query builder."""

from sonarqube_mcp.sonarqube.query import QueryBuilder

BASE = "https://sonar.example.com/api/issues/search"


class TestQueryBuilder:
    """Tests for QueryBuilder."""

    def test_no_params_returns_base_url(self):
        """Should return the base URL unchanged."""
        assert QueryBuilder(BASE).build() == BASE

    def test_first_param_uses_question_mark(self):
        """Should separate the first param with ? and the rest with &."""
        url = QueryBuilder(BASE).add_param("a", "1").add_param("b", "2").build()
        assert url == f"{BASE}?a=1&b=2"

    def test_skips_none(self):
        """Should skip None values."""
        url = QueryBuilder(BASE).add_param("a", None).add_param("b", "2").build()
        assert url == f"{BASE}?b=2"

    def test_encodes_values(self):
        """Should URL-encode values."""
        url = QueryBuilder(BASE).add_param("q", "a b&c=d/é").build()
        assert url == f"{BASE}?q=a%20b%26c%3Dd%2F%C3%A9"

    def test_renders_booleans(self):
        """Should render booleans as true/false."""
        url = QueryBuilder(BASE).add_bool_param("resolved", False).add_bool_param("asc", True)
        assert url.build() == f"{BASE}?resolved=false&asc=true"

    def test_renders_integers(self):
        """Should render integers as decimal strings."""
        assert QueryBuilder(BASE).add_param("ps", 50).build() == f"{BASE}?ps=50"

    def test_joins_arrays_with_commas(self):
        """Should join sequences with encoded commas."""
        url = QueryBuilder(BASE).add_array_param("severities", ["MAJOR", "BLOCKER"]).build()
        assert url == f"{BASE}?severities=MAJOR%2CBLOCKER"

    def test_skips_empty_arrays(self):
        """Should skip None and empty sequences."""
        url = (
            QueryBuilder(BASE)
            .add_array_param("a", [])
            .add_array_param("b", None)
            .add_param("c", "x")
            .build()
        )
        assert url == f"{BASE}?c=x"

    def test_add_params_from_pairs(self):
        """Should add several params, skipping None values."""
        url = QueryBuilder(BASE).add_params([("a", "1"), ("b", None), ("c", 3)]).build()
        assert url == f"{BASE}?a=1&c=3"
