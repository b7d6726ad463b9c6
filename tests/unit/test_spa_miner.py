"""Tests for SPA payload mining: balanced JSON recovery and the four strategies."""

from pathlib import Path
from unittest.mock import patch

import pytest

from src.core.schemas import MinedRecord
from src.scraping.spa_miner import (
    extract_balanced,
    find_job_data,
    loads_lenient,
    mine,
    mine_api_endpoints,
    mine_global_state,
    mine_script_json,
    mine_text_blocks,
    mined_text,
    possible_api_urls,
)
from src.scraping.text import parse_html

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


def _load(name: str) -> str:
    return (FIXTURES_DIR / name).read_text()


# ---------------------------------------------------------------------------
# TestExtractBalanced
# ---------------------------------------------------------------------------


class TestExtractBalanced:
    def test_simple_object(self) -> None:
        assert extract_balanced('x = {"a": {"b": 1}}; y()', 4) == '{"a": {"b": 1}}'

    def test_braces_inside_strings_ignored(self) -> None:
        text = '{"title": "C++ {templates}", "note": "a \\"}\\" b"} trailing'
        assert extract_balanced(text) == '{"title": "C++ {templates}", "note": "a \\"}\\" b"}'

    def test_single_quoted_strings(self) -> None:
        assert extract_balanced("{'a': '}'}") == "{'a': '}'}"

    def test_array(self) -> None:
        assert extract_balanced("  [1, [2, 3]], 4") == "[1, [2, 3]]"

    def test_non_json_start_returns_none(self) -> None:
        assert extract_balanced("foo({})") is None

    def test_unterminated_returns_none(self) -> None:
        assert extract_balanced('{"a": [1, 2') is None


class TestJsonHelpers:
    def test_loads_lenient_maps_undefined(self) -> None:
        assert loads_lenient('{"a": undefined, "b": 1}') == {"a": None, "b": 1}

    def test_loads_lenient_still_raises_on_garbage(self) -> None:
        with pytest.raises(ValueError):
            loads_lenient("{nope")

    def test_find_job_data_unwraps_job_key(self) -> None:
        tree = {"page": {"data": [{"job": {"title": "SRE", "id": 1}}]}}
        assert find_job_data(tree) == {"title": "SRE", "id": 1}

    def test_find_job_data_returns_job_like_mapping(self) -> None:
        assert find_job_data({"meta": {}, "jobTitle": "SRE"}) == {"meta": {}, "jobTitle": "SRE"}

    def test_find_job_data_none_without_job_keys(self) -> None:
        assert find_job_data({"user": {"name": "x"}, "items": [1, 2]}) is None


# ---------------------------------------------------------------------------
# TestGlobalState
# ---------------------------------------------------------------------------


class TestGlobalState:
    def test_initial_state_assignment(self) -> None:
        html = _load("spa_shell.html")
        record = mine_global_state(parse_html(html), html)
        assert record is not None
        assert record.strategy == "global-state"
        assert record.data is not None
        assert record.data["title"] == "Staff Backend Engineer"
        assert record.data["internalRef"] is None

    def test_next_data_tag(self) -> None:
        html = (
            '<script id="__NEXT_DATA__" type="application/json">'
            '{"props": {"pageProps": {"position": {"title": "Designer", "location": "NYC"}}}}'
            "</script>"
        )
        record = mine_global_state(parse_html(html), html)
        assert record is not None
        assert record.data == {"title": "Designer", "location": "NYC"}

    def test_state_without_job_keeps_whole_state(self) -> None:
        html = "<script>window.__NUXT__ = {\"layout\": \"default\"};</script>"
        record = mine_global_state(parse_html(html), html)
        assert record is not None
        assert record.data == {"layout": "default"}

    def test_unparseable_state_is_skipped(self) -> None:
        html = "<script>window.__INITIAL_STATE__ = {broken: true,};</script>"
        assert mine_global_state(parse_html(html), html) is None


# ---------------------------------------------------------------------------
# TestScriptJson
# ---------------------------------------------------------------------------


class TestScriptJson:
    def test_structured_data_first(self) -> None:
        record = mine_script_json(parse_html(_load("json_ld_job.html")))
        assert record is not None
        assert record.strategy == "structured-data"
        assert record.data is not None
        assert record.data["title"] == "Platform Engineer"

    def test_microdata(self) -> None:
        html = (
            '<div itemscope itemtype="https://schema.org/JobPosting">'
            '<h1 itemprop="title">Data Analyst</h1>'
            '<span itemprop="hiringOrganization">Umbrella</span>'
            '<meta itemprop="employmentType" content="PART_TIME">'
            "</div>"
        )
        record = mine_script_json(parse_html(html))
        assert record is not None
        assert record.data == {
            "title": "Data Analyst",
            "hiringOrganization": "Umbrella",
            "employmentType": "PART_TIME",
        }

    def test_job_object_in_inline_script(self) -> None:
        html = (
            "<script>var config = {theme: 'dark'};"
            'render({"position": {"title": "Recruiter", "team": "People"}});</script>'
        )
        record = mine_script_json(parse_html(html))
        assert record is not None
        assert record.strategy == "script-json"
        assert record.data == {"title": "Recruiter", "team": "People"}

    def test_scripts_without_hints_are_ignored(self) -> None:
        html = '<script>init({"title": "Home page"});</script>'
        assert mine_script_json(parse_html(html)) is None


# ---------------------------------------------------------------------------
# TestApiEndpoints
# ---------------------------------------------------------------------------


class TestApiEndpoints:
    def test_declared_endpoints_resolved_against_page(self) -> None:
        html = "<script>const cfg = { apiUrl: '/api/v2', baseURL: \"https://api.acme.io\" };</script>"
        record = mine_api_endpoints(parse_html(html), "https://careers.acme.io/jobs/5")
        assert record is not None
        assert record.api_urls == ["https://careers.acme.io/api/v2", "https://api.acme.io"]

    def test_known_site_gets_generated_candidates(self) -> None:
        url = "https://careers.eplus.com/jobs/7456/Principal+Architect/"
        record = mine_api_endpoints(parse_html("<html></html>"), url)
        assert record is not None
        assert "https://careers.eplus.com/api/jobs/7456" in record.api_urls
        assert record.api_urls[-1] == "https://careers.eplus.com/graphql"

    def test_nothing_declared_returns_none(self) -> None:
        assert mine_api_endpoints(parse_html("<p>x</p>"), "https://acme.io/jobs/1") is None

    def test_possible_api_urls_requires_job_id(self) -> None:
        assert possible_api_urls("https://acme.io/about") == []
        assert possible_api_urls("https://acme.io/positions/42")[0] == "https://acme.io/api/jobs/42"


# ---------------------------------------------------------------------------
# TestTextBlocks
# ---------------------------------------------------------------------------


class TestTextBlocks:
    def test_keyword_paragraphs_collected(self) -> None:
        html = (
            "<body><div><p>You will own the responsibilities of the platform team day to day.</p>"
            "<p>Short requirements.</p>"
            "<p>This paragraph is long enough but talks about the weather and the sea.</p>"
            "<div><span>nested</span> requirements are skipped because this is not a leaf</div>"
            "</div></body>"
        )
        record = mine_text_blocks(parse_html(html))
        assert record is not None
        assert record.text_blocks == [
            "You will own the responsibilities of the platform team day to day.",
        ]

    def test_none_when_no_blocks(self) -> None:
        assert mine_text_blocks(parse_html("<body><p>Hi</p></body>")) is None


# ---------------------------------------------------------------------------
# TestMine
# ---------------------------------------------------------------------------


class TestMine:
    def test_first_strategy_wins(self) -> None:
        record = mine(_load("spa_shell.html"), "https://initech.example.com/jobs/991")
        assert record is not None
        assert record.strategy == "global-state"

    def test_failing_strategy_moves_on(self) -> None:
        html = "<body><p>The qualifications for this role include five years of Go.</p></body>"
        with patch(
            "src.scraping.spa_miner.mine_global_state", side_effect=RuntimeError("boom"),
        ):
            record = mine(html, "https://acme.io/careers")
        assert record is not None
        assert record.strategy == "text-blocks"

    def test_nothing_found(self) -> None:
        assert mine("<html><body></body></html>", "https://acme.io/") is None

    def test_declared_endpoint_does_not_hide_text_blocks(self) -> None:
        paragraphs = "".join(
            f"<p>Responsibility {i}: you will own the experience of our data platform.</p>"
            for i in range(13)
        )
        html = (
            '<html><head><script>var cfg = {apiUrl: "/api/v2"};</script></head>'
            f"<body>{paragraphs}</body></html>"
        )
        record = mine(html, "https://acme.example/careers/1")
        assert record is not None
        assert record.strategy == "text-blocks"
        assert len(record.text_blocks) == 13
        assert record.api_urls == ["https://acme.example/api/v2"]
        assert "Responsibility 0" in mined_text(record)

    def test_endpoints_only_when_no_text(self) -> None:
        html = '<html><head><script>var cfg = {apiUrl: "/api/v2"};</script></head><body></body></html>'
        record = mine(html, "https://acme.example/careers/1")
        assert record is not None
        assert record.strategy == "api-endpoint"
        assert record.api_urls == ["https://acme.example/api/v2"]


# ---------------------------------------------------------------------------
# TestMinedText
# ---------------------------------------------------------------------------


class TestMinedText:
    def test_priority_keys_first_and_html_stripped(self) -> None:
        html = _load("spa_shell.html")
        record = mine_global_state(parse_html(html), html)
        assert record is not None
        text = mined_text(record)
        lines = text.splitlines()
        assert lines[0] == "title: Staff Backend Engineer"
        assert lines[1] == "company: Initech"
        assert "requirements: Production experience with Go" in lines
        assert "<p>" not in text
        assert "https://initech.example.com/apply/991" not in text
        assert len(text) >= 500

    def test_text_blocks_joined(self) -> None:
        record = MinedRecord(strategy="text-blocks", text_blocks=["one", "two"])
        assert mined_text(record) == "one\n\ntwo"

    def test_api_only_record_has_no_text(self) -> None:
        record = MinedRecord(strategy="api-endpoint", api_urls=["https://x/api"])
        assert mined_text(record) == ""

    def test_json_ld_type_keys_skipped(self) -> None:
        record = MinedRecord(strategy="script-json", data={"@type": "JobPosting", "title": "QA"})
        assert mined_text(record) == "title: QA"
