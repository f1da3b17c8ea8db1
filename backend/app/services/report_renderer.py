"""정규화된 보고서 데이터를 PDF(reportlab)와 Excel(pandas/openpyxl) 파일로 렌더링합니다."""

from io import BytesIO
from textwrap import wrap

import pandas as pd
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.services.report_service import REPORT_BUCKETS

PDF_MEDIA_TYPE = "application/pdf"
EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ITEM_COLUMNS = [
    ("kind", "Type"),
    ("title", "Title"),
    ("project", "Project"),
    ("owner", "Owner"),
    ("assignees", "Assignees"),
    ("priority", "Priority"),
    ("deadline", "Deadline"),
    ("created_at", "Created"),
    ("time_taken_display", "Time Taken"),
]


def _report_title(report: dict) -> str:
    meta = report["metadata"]
    kind = str(meta.get("type", "report")).replace("_", " ").title()
    return f"{kind} Report - {meta.get('scope_name', '')}"


def _item_line(row: dict) -> str:
    assignees = ", ".join(row.get("assignees") or []) or "-"
    return (
        f"[{row['kind']}] {row['title']} | owner: {row.get('owner') or '-'} | "
        f"assignees: {assignees} | priority: {row.get('priority')} | "
        f"deadline: {row.get('deadline') or '-'} | time: {row.get('time_taken_display')}"
    )


def render_pdf(report: dict) -> bytes:
    meta = report["metadata"]
    aggregates = report["aggregates"]
    buffer = BytesIO()
    p = canvas.Canvas(buffer, pagesize=letter)

    top = 750
    bottom = 50
    margin_left = 50
    line_height = 15
    y_position = top

    def draw(text: str, font: str = "Helvetica", size: int = 10, indent: int = 0):
        nonlocal y_position
        for line in wrap(text, width=95 - indent // 5) or [""]:
            if y_position < bottom:
                p.showPage()
                y_position = top
            p.setFont(font, size)
            p.drawString(margin_left + indent, y_position, line)
            y_position -= line_height

    draw(_report_title(report), "Helvetica-Bold", 14)
    date_range = meta.get("date_range") or {}
    draw(f"Period: {date_range.get('start')} - {date_range.get('end')}")
    draw(f"Generated: {meta.get('generated_at')}")
    y_position -= line_height

    draw("Summary", "Helvetica-Bold", 12)
    for bucket in REPORT_BUCKETS:
        draw(f"{bucket}: {aggregates.get(bucket, 0)}", indent=10)
    draw(f"Total: {aggregates.get('total', 0)}", indent=10)
    draw(f"Time logged: {aggregates.get('time_taken_display')}", indent=10)

    members = report.get("team_members")
    if members:
        y_position -= line_height
        draw("Team Members", "Helvetica-Bold", 12)
        for m in members:
            draw(
                f"{m['username']} ({m['role']}, {m['department']}): "
                f"{m['item_count']} items, {m['time_taken_display']}",
                indent=10,
            )

    for bucket in REPORT_BUCKETS:
        rows = report["data"].get(bucket) or []
        y_position -= line_height
        draw(f"{bucket} ({len(rows)})", "Helvetica-Bold", 12)
        for row in rows:
            draw(_item_line(row), size=9, indent=10)

    p.showPage()
    p.save()
    return buffer.getvalue()


def _items_frame(rows: list) -> pd.DataFrame:
    records = []
    for row in rows:
        record = {label: row.get(key) for key, label in ITEM_COLUMNS}
        record["Assignees"] = ", ".join(row.get("assignees") or [])
        records.append(record)
    return pd.DataFrame(records, columns=[label for _, label in ITEM_COLUMNS])


def render_excel(report: dict) -> bytes:
    meta = report["metadata"]
    aggregates = report["aggregates"]
    date_range = meta.get("date_range") or {}

    summary = pd.DataFrame(
        [
            ("Report", _report_title(report)),
            ("Period", f"{date_range.get('start')} - {date_range.get('end')}"),
            ("Generated", meta.get("generated_at")),
            *[(bucket, aggregates.get(bucket, 0)) for bucket in REPORT_BUCKETS],
            ("Total", aggregates.get("total", 0)),
            ("Time logged", aggregates.get("time_taken_display")),
        ],
        columns=["Field", "Value"],
    )

    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        summary.to_excel(writer, sheet_name="Summary", index=False)
        for bucket in REPORT_BUCKETS:
            _items_frame(report["data"].get(bucket) or []).to_excel(writer, sheet_name=bucket, index=False)
        members = report.get("team_members")
        if members:
            pd.DataFrame(members).to_excel(writer, sheet_name="Team Members", index=False)
    return buffer.getvalue()


RENDERERS = {
    "pdf": (render_pdf, PDF_MEDIA_TYPE, "pdf"),
    "excel": (render_excel, EXCEL_MEDIA_TYPE, "xlsx"),
}
