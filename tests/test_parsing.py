"""Tests for JSON extraction from free-form model responses."""

from uxpilot.investigation.models import VerifiedIssue
from uxpilot.parsing import extract_json, parse_items


def test_tagged_block_is_parsed():
    text = 'Dashboard...\n\n```json\n[{"a": 1}]\n```\nThanks.'
    assert extract_json(text, []) == [{"a": 1}]


def test_untagged_block_is_parsed():
    assert extract_json('```\n{"ok": true}\n```', None) == {"ok": True}


def test_first_block_wins():
    text = '```json\n[1]\n```\n\nand later\n\n```json\n[2]\n```'
    assert extract_json(text, []) == [1]


def test_no_block_returns_same_fallback_object():
    fallback = [{"sentinel": True}]
    result = extract_json("No code here, only prose.", fallback)
    assert result is fallback
    assert fallback == [{"sentinel": True}]


def test_invalid_json_returns_fallback_without_raising():
    fallback: list = []
    result = extract_json("```json\n[{'single': quotes},]\n```", fallback)
    assert result is fallback


def test_unterminated_block_returns_fallback():
    fallback = {}
    assert extract_json('```json\n{"a": 1}', fallback) is fallback


def test_non_string_input_returns_fallback():
    fallback = []
    assert extract_json(None, fallback) is fallback


def test_parse_items_drops_invalid_entries():
    raw = [
        {"id": "UX-001", "url": "/a", "metric": "DeadClickCount", "type": "dead_click",
         "count": 3, "priority": "P3"},
        {"id": "UX-002", "url": "/b", "metric": "X", "type": "not_a_type", "count": 1, "priority": "P1"},
        "garbage",
    ]
    items = parse_items(raw, VerifiedIssue, "test")
    assert [i.id for i in items] == ["UX-001"]


def test_parse_items_non_list_is_empty():
    assert parse_items({"issues": []}, VerifiedIssue, "test") == []
    assert parse_items(None, VerifiedIssue, "test") == []
