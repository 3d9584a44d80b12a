import io
from datetime import date, datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from buildtrack.domain.dates import coerce_date, is_overdue
from buildtrack.domain.filters import summarize
from buildtrack.domain.statuses import RFI, SUBMITTAL, TERMINAL_STATUSES

HEADER_FILL = PatternFill(start_color="1E293B", end_color="1E293B", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
OVERDUE_FILL = PatternFill(start_color="FDE2E1", end_color="FDE2E1", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

RFI_LOG_COLUMNS = (
    ("RFI #", "rfi_number", 18),
    ("Subject", "subject", 40),
    ("Status", "status", 12),
    ("Priority", "priority", 10),
    ("Sent To", "recipient", 28),
    ("Date Sent", "date_sent", 12),
    ("Due Date", "due_date", 12),
    ("Answered", "answered_date", 12),
    ("Question", "question", 50),
    ("Answer", "answer", 50),
)

SUBMITTAL_LOG_COLUMNS = (
    ("Submittal #", "submittal_number", 18),
    ("Title", "title", 40),
    ("Type", "submittal_type", 16),
    ("Spec Section", "spec_section", 14),
    ("Manufacturer", "manufacturer", 22),
    ("Status", "status", 20),
    ("Priority", "priority", 10),
    ("Submitted", "date_submitted", 12),
    ("Due Date", "due_date", 12),
    ("Approved", "approved_date", 12),
)


def _recipient_label(recipient):
    if not recipient:
        return ""
    if recipient.get("kind") == "external":
        return f"{recipient.get('name')} <{recipient.get('email')}>"
    return recipient.get("name") or f"Team member #{recipient.get('owner_id')}"


def _cell_value(row, field):
    value = row.get(field)
    if field == "recipient":
        return _recipient_label(value)
    if field.endswith("_date") or field.startswith("date_"):
        return coerce_date(value)
    return value if value is not None else ""


def _write_log(title, project, rows, columns, item_type, today=None) -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = title

    last_col = get_column_letter(len(columns))
    ws.merge_cells(f"A1:{last_col}1")
    ws["A1"] = f"{title} — {project['project_number']} {project['name']}"
    ws["A1"].font = Font(size=16, bold=True)
    ws["A2"] = f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}"
    ws["A2"].font = Font(size=10, italic=True, color="666666")

    counts = summarize(rows, item_type, today)
    ws["A3"] = (f"Total {counts['total']} · Open {counts['open']} · "
                f"Overdue {counts['overdue']} · Closed {counts['completed']}")
    ws["A3"].font = Font(size=10, bold=True)

    header_row = 5
    for col, (header, _, width) in enumerate(columns, 1):
        cell = ws.cell(row=header_row, column=col, value=header)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        ws.column_dimensions[get_column_letter(col)].width = width

    terminal = TERMINAL_STATUSES[item_type]
    for r, row in enumerate(rows, header_row + 1):
        late = is_overdue(row.get("due_date"), row.get("status"), terminal, today)
        for col, (_, field, _) in enumerate(columns, 1):
            cell = ws.cell(row=r, column=col, value=_cell_value(row, field))
            cell.border = THIN_BORDER
            cell.alignment = Alignment(vertical="top", wrap_text=field in ("question", "answer"))
            if isinstance(cell.value, date):
                cell.number_format = "yyyy-mm-dd"
            if late:
                cell.fill = OVERDUE_FILL

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


def export_rfi_log_xlsx(project: dict, rfis: list, today=None) -> io.BytesIO:
    """RFI log workbook. Overdue rows are shaded; returns a BytesIO for send_file."""
    return _write_log("RFI Log", project, rfis, RFI_LOG_COLUMNS, RFI, today)


def export_submittal_log_xlsx(project: dict, submittals: list, today=None) -> io.BytesIO:
    return _write_log("Submittal Log", project, submittals, SUBMITTAL_LOG_COLUMNS, SUBMITTAL, today)
