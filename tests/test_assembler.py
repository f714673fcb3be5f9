"""Tests for report assembly: left join on issue id with synthesized defaults."""

from conftest import make_investigation, make_issue, make_prompt
from uxpilot.investigation.models import IssueType, Priority, ReportMetadata
from uxpilot.reporting.assembler import (
    assemble_report,
    default_investigation,
    default_prompt,
    extract_total_sessions,
)

META = ReportMetadata(target_repo="acme/web", pipeline_version="3.1.0")


def test_fully_matched_issues_keep_stage_outputs(issues):
    report = assemble_report(
        issues,
        [make_investigation("UX-001"), make_investigation("UX-002")],
        [make_prompt("UX-001"), make_prompt("UX-002")],
        META,
        total_sessions=500,
    )

    assert [e.verified.id for e in report.issues] == ["UX-001", "UX-002"]
    assert all(not e.defaulted for e in report.issues)
    assert report.issues[0].investigation.known_facts == ["fact for UX-001"]
    assert report.issues[1].prompt.prompt_text == "Investigate UX-002 thoroughly."
    assert report.summary.total_sessions == 500


def test_missing_stage_output_gets_defaults(issues):
    # UX-002 has neither an investigation nor a prompt
    report = assemble_report(
        issues, [make_investigation("UX-001")], [make_prompt("UX-001")], META
    )

    second = report.issues[1]
    assert second.defaulted
    assert second.investigation.known_facts == [
        "4 dead_click detected on https://my.example.com/documents"
    ]
    assert second.investigation.unknown_factors == [
        "Investigation data not available for this issue"
    ]
    assert second.investigation.possible_causes == []
    assert second.prompt.prompt_text.startswith(
        "Investigate the dead_click on https://my.example.com/documents."
    )
    assert second.prompt.quick_context.files_to_check == []
    assert not report.issues[0].defaulted


def test_partial_match_defaults_only_the_gap(issues):
    report = assemble_report(
        issues,
        [make_investigation("UX-001"), make_investigation("UX-002")],
        [make_prompt("UX-001")],
        META,
    )

    second = report.issues[1]
    assert second.defaulted
    assert second.investigation.known_facts == ["fact for UX-002"]
    assert second.prompt == default_prompt(issues[1])


def test_issue_list_is_authoritative_and_orphans_are_dropped(issues):
    report = assemble_report(
        issues,
        [make_investigation("UX-001"), make_investigation("UX-404")],
        [make_prompt("UX-404")],
        META,
    )

    assert [e.verified.id for e in report.issues] == ["UX-001", "UX-002"]
    assert all(e.prompt.issue_id == e.verified.id for e in report.issues)
    assert all(e.investigation.issue_id == e.verified.id for e in report.issues)


def test_duplicate_stage_entries_keep_the_first(issues):
    later = make_prompt("UX-001").model_copy(update={"prompt_text": "second"})
    report = assemble_report(issues[:1], [], [make_prompt("UX-001"), later], META)

    assert report.issues[0].prompt.prompt_text == "Investigate UX-001 thoroughly."


def test_assembly_is_deterministic(issues):
    inputs = (issues, [make_investigation("UX-001")], [make_prompt("UX-002")], META)

    first = assemble_report(*inputs)
    second = assemble_report(*inputs)

    assert first.issues == second.issues
    assert first.summary == second.summary


def test_no_issues_yields_empty_report():
    report = assemble_report([], [make_investigation("UX-001")], [], META)

    assert report.issues == []
    assert report.summary.total_pages == 0
    assert report.summary.issues_by_priority == {p: 0 for p in Priority}


def test_summary_counts(issues):
    extra = make_issue("UX-003", Priority.P1, IssueType.DEAD_CLICK, 7)
    report = assemble_report([*issues, extra], [], [], META)

    summary = report.summary
    assert summary.total_dead_clicks == 11
    assert summary.total_rage_clicks == 30
    assert summary.total_pages == 2
    assert summary.issues_by_priority[Priority.P0] == 1
    assert summary.issues_by_priority[Priority.P1] == 1
    assert summary.issues_by_priority[Priority.P2] == 1
    assert summary.issues_by_priority[Priority.P3] == 0


def test_total_sessions_falls_back_to_dashboard_text(issues):
    dashboard = "| Metric | Value |\n|---|---|\n| Total Sessions | 1,234 |\n"

    report = assemble_report(issues, [], [], META, dashboard_text=dashboard)

    assert report.summary.total_sessions == 1234


def test_extract_total_sessions():
    assert extract_total_sessions("| **Total Sessions** | **88** |") == 88
    assert extract_total_sessions("| total sessions | 88 |") == 88
    assert extract_total_sessions("no table here") == 0
    assert extract_total_sessions("") == 0


def test_default_investigation_has_no_causes(issues):
    data = default_investigation(issues[0])

    assert data.issue_id == "UX-001"
    assert data.known_facts == ["30 rage_click detected on https://my.example.com/checkout"]
    assert data.relevant_files == []


def test_checkout_and_documents_scenario_summary(issues):
    report = assemble_report(issues, [], [], META)

    summary = report.summary
    assert summary.total_rage_clicks == 30
    assert summary.total_dead_clicks == 4
    assert summary.issues_by_priority == {
        Priority.P0: 1, Priority.P1: 0, Priority.P2: 1, Priority.P3: 0,
    }
    assert all(e.defaulted for e in report.issues)
