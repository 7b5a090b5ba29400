"""
Presentation of update summaries and status reports.

Results are either dumped as JSON (``to_dict()`` of the result objects) or
rendered as plain-text tables. Nothing in here talks to a remote service.
"""

import json
from typing import Any, Iterable, Optional, Sequence

from .aggregator import AggregatedReport, DatacenterTrafficStatus
from .i18n import get_message
from .orchestrator import DetailedStatus, UpdateSummary


def to_json(result: Any) -> str:
    """Serialize a result object (anything with ``to_dict``) as indented JSON."""
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str)


def format_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Left-aligned text table with a header rule."""
    cells = [[_cell(v) for v in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    def line(values: Sequence[str]) -> str:
        return "  ".join(v.ljust(widths[i]) for i, v in enumerate(values)).rstrip()

    out = [line(headers), line(["-" * w for w in widths])]
    out.extend(line(row) for row in cells)
    return "\n".join(out)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_update_summary(summary: UpdateSummary, language: Optional[str] = None) -> str:
    if summary.dry_run:
        return render_dry_run(summary, language)

    if not summary.has_changes:
        return get_message("update.no_updates_needed", language)

    sections = [get_message("summary.title", language), ""]

    sections.append(get_message("summary.completed", language))
    if summary.updated:
        detailed = any(isinstance(u.status, DetailedStatus) for u in summary.updated)
        if detailed:
            sections.append(render_response_status(summary, language))
        else:
            rows = []
            for record in summary.updated:
                completion = record.outcome.state.value if record.outcome else ""
                rows.append([record.property_name, record.status.change_id, completion])
            sections.append(format_table(["Property", "Change Id", "Completion"], rows))
    else:
        sections.append(get_message("summary.no_success", language))

    sections.append("")
    sections.append(get_message("summary.failed", language))
    if summary.failed:
        sections.append(format_table(
            ["Property", "Error"],
            [[f.property_name, f.message] for f in summary.failed],
        ))
    else:
        sections.append(get_message("summary.no_failures", language))
    return "\n".join(sections)


def render_response_status(summary: UpdateSummary, language: Optional[str] = None) -> str:
    """Full deployment status of every accepted submission (verbose mode)."""
    blocks = []
    for record in summary.updated:
        status = record.status.to_dict()
        rows = [[key, value] for key, value in status.items()]
        if record.outcome is not None:
            rows.append(["completion", record.outcome.state.value])
        blocks.append("\n".join([
            f"{get_message('summary.response_status', language)}: {record.property_name}",
            format_table(["Field", "Value"], rows),
        ]))
    return "\n\n".join(blocks)


def render_dry_run(summary: UpdateSummary, language: Optional[str] = None) -> str:
    if not summary.planned:
        return get_message("update.no_changes", language)
    rows = []
    for plan in summary.planned:
        for change in plan.changes:
            rows.append([plan.property_name, change.subject, change.field, change.old, change.new])
    return "\n".join([
        get_message("update.dry_run", language),
        format_table(["Property", "Subject", "Field", "Old", "New"], rows),
    ])


def render_property_report(report: AggregatedReport, language: Optional[str] = None) -> str:
    """
    Render the property status as two tables.

    The first lists every datacenter with one row per IP (the datacenter
    columns are only filled on its first row). The second lists the
    per-interval traffic of each datacenter.
    """
    sections = [
        f"Domain: {report.domain}    Property: {report.property_name}",
        f"Period: {report.period_start} - {report.period_end}",
        "",
        get_message(
            "report.status_summary",
            language,
            last_update=report.last_update,
            cut_off=report.cut_off if report.cut_off is not None else "",
        ),
    ]

    availability = report.availability_rows()
    if availability:
        rows = []
        for row in availability:
            dc = row.summary
            lead = [
                dc.datacenter_id, dc.nickname, dc.target_name, dc.enabled,
                dc.requests, dc.usage, dc.status,
            ] if row.first else [""] * 7
            ip = row.ip
            rows.append(lead + ([ip.ip, ip.handed_out, ip.score, ip.alive] if ip else [""] * 4))
        sections.append(format_table(
            ["Datacenter", "Nickname", "Target Name", "Enabled", "Requests", "Usage", "Status",
             "IP", "Handed Out", "Score", "Alive"],
            rows,
        ))
    else:
        sections.append(get_message("report.no_summary", language))

    sections.append("")
    sections.append(get_message("report.datacenter_status", language))
    if report.interval_status:
        rows = []
        for interval in report.interval_status:
            for index, dc in enumerate(interval.datacenters):
                rows.append([
                    interval.timestamp if index == 0 else "",
                    dc.datacenter_id, dc.nickname, dc.traffic_target_name, dc.requests, dc.status,
                ])
        sections.append(format_table(
            ["Timestamp", "Datacenter", "Nickname", "Target Name", "Requests", "Status"],
            rows,
        ))
    else:
        sections.append(get_message("report.no_interval_status", language))
    return "\n".join(sections)


def render_datacenter_report(status: DatacenterTrafficStatus, language: Optional[str] = None) -> str:
    sections = [
        f"Domain: {status.domain}",
        f"Period: {status.period_start} - {status.period_end}",
    ]
    if not status.datacenters:
        sections.append(get_message("report.no_datacenter_status", language))
        return "\n".join(sections)

    for dc in status.datacenters:
        sections.append("")
        sections.append(f"{get_message('report.datacenter_status', language)}: "
                        f"{dc.datacenter_id} {dc.nickname or ''}".rstrip())
        rows = []
        for row in dc.rows:
            for index, prop in enumerate(row.properties):
                rows.append([row.timestamp if index == 0 else "", prop.name, prop.requests, prop.status])
        if rows:
            sections.append(format_table(["Timestamp", "Property", "Requests", "Status"], rows))
        else:
            sections.append(get_message("report.no_interval_status", language))
    return "\n".join(sections)
