from __future__ import annotations

from typing import TYPE_CHECKING

from hanjadict.adapters.filesystem import render_html, render_markdown, write_report
from hanjadict.domain.model import StageName
from hanjadict.domain.pipeline.report import DataFlow, PipelineReport

if TYPE_CHECKING:
    from pathlib import Path


def _report() -> PipelineReport:
    return PipelineReport(
        run_id="run-7",
        data_flow=DataFlow(ingested=10, normalized=9, merged=8, resolved=6, needs_review=2),
        errors_by_kind={"normalization": 1},
        failed_stages=(StageName.LOAD,),
        recommendations=("2 entries await manual review of their element",),
    )


def test_markdown_lists_funnel_and_recommendations() -> None:
    markdown = render_markdown(_report())

    assert markdown.startswith("# Pipeline report `run-7`")
    assert "| Ingested | 10 |" in markdown
    assert "| normalization | 1 |" in markdown
    assert "- Failed: load" in markdown
    assert "- 2 entries await manual review of their element" in markdown


def test_html_escapes_content() -> None:
    report = PipelineReport(run_id="<run>", recommendations=("a < b",))

    html = render_html(report)

    assert "<title>Pipeline report &lt;run&gt;</title>" in html
    assert "<li>a &lt; b</li>" in html


def test_write_report_creates_all_renderings(tmp_path: Path) -> None:
    paths = write_report(tmp_path / "out", _report())

    assert {path.name for path in paths.values()} == {"report.md", "report.html", "report.json"}
    assert all(path.is_file() for path in paths.values())
    assert '"run_id": "run-7"' in paths["json"].read_text(encoding="utf-8")
