import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi.responses import Response
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .schemas import DashboardSummary, JudgmentRecord
from .scoring import HIGH_RISK_FLAGS

ROWS_PER_PAGE = 20

TABLE_HEADERS = ["Customer", "Shipment ID", "Amount", "Location", "Risk", "Decision"]
COL_WIDTHS = [100, 100, 75, 85, 55, 80]

PRIMARY = HexColor("#6366f1")
DANGER = HexColor("#ef4444")
WARNING = HexColor("#f59e0b")
SUCCESS = HexColor("#22c55e")
TEXT = HexColor("#1f2937")
MUTED = HexColor("#6b7280")
HEADER_BG = HexColor("#e2e8f0")
STRIPE_BG = HexColor("#f8fafc")
HIGHLIGHT_BG = HexColor("#fef2f2")
WHITE = HexColor("#ffffff")

TONES = {
    "primary": PRIMARY,
    "danger": DANGER,
    "warning": WARNING,
    "success": SUCCESS,
    "text": TEXT,
}


def format_inr(amount: float) -> str:
    """Indian digit grouping: 150000 -> 1,50,000."""
    whole = int(round(amount))
    sign = "-" if whole < 0 else ""
    digits = str(abs(whole))
    if len(digits) <= 3:
        return sign + digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return sign + ",".join(groups + [tail])


def _risk(flag_count: int) -> Tuple[str, str]:
    if flag_count >= HIGH_RISK_FLAGS:
        return "High", "danger"
    if flag_count >= 1:
        return "Med", "warning"
    return "Low", "success"


def _decision(decision: Optional[str]) -> Tuple[str, str]:
    decision = decision or "pending"
    tone = {"reject": "danger", "approve": "success"}.get(decision, "warning")
    return decision[:1].upper() + decision[1:], tone


# ---------------------------
# Content (what goes on the pages)
# ---------------------------

@dataclass
class Kpi:
    label: str
    value: str
    tone: str = "text"


@dataclass
class ReportRow:
    customer: str
    shipment: str
    amount: str
    location: str
    risk: str
    risk_tone: str
    decision: str
    decision_tone: str
    striped: bool = False
    highlighted: bool = False

    def cells(self) -> List[str]:
        return [self.customer, self.shipment, self.amount, self.location, self.risk, self.decision]


@dataclass
class ReportContent:
    title: str
    generated_label: str
    kpi_rows: List[List[Kpi]]
    pages: List[List[ReportRow]] = field(default_factory=list)
    headers: List[str] = field(default_factory=lambda: list(TABLE_HEADERS))


def build_row(record: JudgmentRecord, index: int) -> ReportRow:
    risk, risk_tone = _risk(record.flag_count)
    decision, decision_tone = _decision(record.decision)
    return ReportRow(
        customer=record.user_name[:15],
        shipment=record.shipment_id[:12] if record.shipment_id else "N/A",
        amount=f"Rs. {format_inr(record.refund_amount)}",
        location=record.delivery_city[:10],
        risk=risk,
        risk_tone=risk_tone,
        decision=decision,
        decision_tone=decision_tone,
        striped=index % 2 == 0,
        highlighted=record.flag_count >= HIGH_RISK_FLAGS,
    )


def paginate(rows: List[ReportRow], per_page: int = ROWS_PER_PAGE) -> List[List[ReportRow]]:
    return [rows[i:i + per_page] for i in range(0, len(rows), per_page)]


def build_report_content(
    records: List[JudgmentRecord],
    summary: DashboardSummary,
    generated_at: Optional[datetime] = None,
    per_page: int = ROWS_PER_PAGE,
) -> ReportContent:
    generated_at = generated_at or datetime.now()
    s = summary

    kpi_rows = [
        [
            Kpi("Total Returns Analyzed", str(s.analyzed_returns), "primary"),
            Kpi("Total Value at Risk", f"Rs. {format_inr(s.total_value)}", "success"),
            Kpi("Avg Fraud Score", f"{s.avg_fraud_score:.1f}/10", "warning"),
        ],
        [
            Kpi("High Risk Cases", str(s.high_risk_count), "danger"),
            Kpi("Rejection Rate", f"{s.avg_return_rate}%", "danger"),
            Kpi("Approved / Review / Reject", f"{s.approve_count} / {s.review_count} / {s.reject_count}"),
        ],
    ]

    rows = [build_row(r, i) for i, r in enumerate(records)]
    return ReportContent(
        title="Returns Intelligence Report",
        generated_label=f"Generated on {generated_at.strftime('%A, %d %B %Y at %H:%M')}",
        kpi_rows=kpi_rows,
        pages=paginate(rows, per_page),
    )


# ---------------------------
# PDF rendering
# ---------------------------

def _styles():
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("title", parent=base["Title"], fontSize=22, leading=26, textColor=PRIMARY),
        "sub": ParagraphStyle("sub", parent=base["Normal"], fontSize=10, alignment=1, textColor=MUTED),
        "h2": ParagraphStyle("h2", parent=base["Heading2"], fontSize=14, leading=17, textColor=TEXT, spaceAfter=8),
        "kpi": ParagraphStyle("kpi", parent=base["Normal"], fontSize=9, leading=20, textColor=MUTED),
        "note": ParagraphStyle("note", parent=base["Normal"], fontSize=10, textColor=MUTED),
    }


def _kpi_table(content: ReportContent, styles) -> Table:
    data = []
    for row in content.kpi_rows:
        cells = []
        for kpi in row:
            color = TONES.get(kpi.tone, TEXT).hexval().replace("0x", "#")
            cells.append(Paragraph(
                f"{kpi.label}<br/><font size=16 color='{color}'><b>{kpi.value}</b></font>",
                styles["kpi"],
            ))
        data.append(cells)

    t = Table(data, colWidths=[165, 165, 165], rowHeights=[52] * len(data))
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), STRIPE_BG),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 12),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
    ]))
    return t


def _page_table(content: ReportContent, rows: List[ReportRow]) -> Table:
    data = [content.headers] + [r.cells() for r in rows]
    t = Table(data, colWidths=COL_WIDTHS, rowHeights=[22] + [20] * len(rows))

    cmds = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 1), (-1, -1), 8),
        ("TEXTCOLOR", (0, 0), (-1, -1), TEXT),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    for i, row in enumerate(rows, start=1):
        if row.highlighted:
            cmds.append(("BACKGROUND", (0, i), (-1, i), HIGHLIGHT_BG))
        elif row.striped:
            cmds.append(("BACKGROUND", (0, i), (-1, i), STRIPE_BG))
        cmds.append(("TEXTCOLOR", (4, i), (4, i), TONES[row.risk_tone]))
        cmds.append(("TEXTCOLOR", (5, i), (5, i), TONES[row.decision_tone]))
        cmds.append(("FONTNAME", (4, i), (5, i), "Helvetica-Bold"))

    t.setStyle(TableStyle(cmds))
    return t


def _footer(canvas, doc):
    canvas.saveState()
    canvas.setFont("Helvetica", 9)
    canvas.setFillColor(MUTED)
    canvas.drawCentredString(
        A4[0] / 2, 30,
        f"This report is auto-generated by the Returns Intelligence System. Page {doc.page}",
    )
    canvas.restoreState()


def render_report_pdf(content: ReportContent) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf, pagesize=A4,
        leftMargin=50, rightMargin=50, topMargin=50, bottomMargin=50,
        title=content.title,
    )
    styles = _styles()

    story = [
        Paragraph(content.title, styles["title"]),
        Paragraph(content.generated_label, styles["sub"]),
        Spacer(1, 16),
        Paragraph("Executive Summary", styles["h2"]),
        _kpi_table(content, styles),
        Spacer(1, 18),
        Paragraph("Returns Details", styles["h2"]),
    ]

    if not content.pages:
        story.append(_page_table(content, []))
        story.append(Spacer(1, 10))
        story.append(Paragraph("No returns in this batch.", styles["note"]))
    for n, rows in enumerate(content.pages):
        if n:
            story.append(PageBreak())
        story.append(_page_table(content, rows))

    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buf.getvalue()


def pdf_response(content: ReportContent, filename: str) -> Response:
    return Response(
        content=render_report_pdf(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
