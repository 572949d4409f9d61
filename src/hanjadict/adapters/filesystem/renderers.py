"""Markdown and HTML renderings of a pipeline report."""

from __future__ import annotations

import html
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from hanjadict.domain.pipeline.report import PipelineReport

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)

_REPORT_ADAPTER = TypeAdapter(PipelineReport)


def _percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def _flow_rows(report: PipelineReport) -> list[tuple[str, str]]:
    flow = report.data_flow
    return [
        ("Ingested", str(flow.ingested)),
        ("Normalized", str(flow.normalized)),
        ("Merged", str(flow.merged)),
        ("Resolved automatically", str(flow.resolved)),
        ("Needs review", str(flow.needs_review)),
        ("Validated", str(flow.validated)),
        ("Loaded", str(flow.loaded)),
    ]


def _quality_rows(report: PipelineReport) -> list[tuple[str, str]]:
    quality = report.quality
    return [
        ("Completeness", _percent(quality.completeness)),
        ("Accuracy", _percent(quality.accuracy)),
        ("Validity", _percent(quality.validity)),
        ("Consistency", _percent(quality.consistency)),
    ]


def _stage_rows(report: PipelineReport) -> list[tuple[str, ...]]:
    return [
        (
            str(stage.stage),
            "ok" if stage.success else "failed",
            str(stage.processed_count),
            f"{stage.duration_ms:.1f}",
            f"{stage.throughput_per_second:.1f}",
        )
        for stage in report.performance.stages
    ]


_STAGE_HEADER = ("Stage", "Status", "Processed", "Duration (ms)", "Records/s")


def _markdown_table(header: tuple[str, ...], rows: list[tuple[str, ...]]) -> list[str]:
    lines = ["| " + " | ".join(header) + " |", "|" + "---|" * len(header)]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return lines


def render_markdown(report: PipelineReport) -> str:
    lines = [
        f"# Pipeline report `{report.run_id}`",
        "",
        f"Generated {report.generated_at.isoformat()}",
        "",
        "## Data flow",
        "",
        *_markdown_table(("Step", "Records"), _flow_rows(report)),
        "",
        "## Quality",
        "",
        *_markdown_table(("Metric", "Value"), _quality_rows(report)),
        "",
    ]
    if report.field_completeness:
        lines += ["## Field completeness", ""]
        lines += _markdown_table(
            ("Field", "Filled"),
            [(name, f"{value:.1f}%") for name, value in report.field_completeness.items()],
        )
        lines.append("")
    if report.errors_by_kind:
        lines += ["## Errors", ""]
        lines += _markdown_table(
            ("Kind", "Count"), [(kind, str(count)) for kind, count in report.errors_by_kind.items()]
        )
        lines.append("")
    lines += ["## Performance", ""]
    lines += _markdown_table(_STAGE_HEADER, _stage_rows(report))
    lines += [
        "",
        f"Total {report.performance.total_duration_ms:.1f} ms, "
        f"{report.performance.overall_throughput:.1f} records/s",
        "",
    ]
    if report.failed_stages or report.skipped_stages:
        lines += ["## Stage status", ""]
        if report.failed_stages:
            lines.append("- Failed: " + ", ".join(report.failed_stages))
        if report.skipped_stages:
            lines.append("- Skipped: " + ", ".join(report.skipped_stages))
        lines.append("")
    if report.recommendations:
        lines += ["## Recommendations", ""]
        lines += [f"- {item}" for item in report.recommendations]
        lines.append("")
    return "\n".join(lines)


def _html_table(header: tuple[str, ...], rows: list[tuple[str, ...]]) -> str:
    head = "".join(f"<th>{html.escape(cell)}</th>" for cell in header)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(cell)}</td>" for cell in row) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def render_html(report: PipelineReport) -> str:
    sections = [
        "<h2>Data flow</h2>",
        _html_table(("Step", "Records"), _flow_rows(report)),
        "<h2>Quality</h2>",
        _html_table(("Metric", "Value"), _quality_rows(report)),
        "<h2>Performance</h2>",
        _html_table(_STAGE_HEADER, _stage_rows(report)),
    ]
    if report.errors_by_kind:
        sections += [
            "<h2>Errors</h2>",
            _html_table(
                ("Kind", "Count"),
                [(kind, str(count)) for kind, count in report.errors_by_kind.items()],
            ),
        ]
    if report.recommendations:
        items = "".join(f"<li>{html.escape(item)}</li>" for item in report.recommendations)
        sections += ["<h2>Recommendations</h2>", f"<ul>{items}</ul>"]
    title = html.escape(f"Pipeline report {report.run_id}")
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="en"><head><meta charset="utf-8"><title>{title}</title></head>\n'
        f"<body><h1>{title}</h1>\n"
        f"<p>Generated {html.escape(report.generated_at.isoformat())}</p>\n"
        + "\n".join(sections)
        + "\n</body></html>\n"
    )


def write_report(directory: Path, report: PipelineReport) -> dict[str, Path]:
    """Write ``report.md`` and ``report.html`` (the JSON form is the report stage batch)."""

    directory.mkdir(parents=True, exist_ok=True)
    paths = {
        "markdown": directory / "report.md",
        "html": directory / "report.html",
        "json": directory / "report.json",
    }
    paths["markdown"].write_text(render_markdown(report), encoding="utf-8")
    paths["html"].write_text(render_html(report), encoding="utf-8")
    if not paths["json"].exists():
        paths["json"].write_bytes(_REPORT_ADAPTER.dump_json(report, indent=2))
    log.info("Report written to %s", directory)
    return paths
