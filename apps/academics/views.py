# academics/views.py

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from datetime import datetime
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
import logging

from .models import Class

logger = logging.getLogger(__name__)


# =============================================================================
# EXPORT VIEWS - CLASS SCHEDULE
# =============================================================================

def build_class_schedule_workbook(cls):
    """Workbook with one row per session of the class"""
    wb = Workbook()
    ws = wb.active
    ws.title = "Sessions"

    # Define styles
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=12)
    header_alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    border_style = Border(
        left=Side(style='thin', color='000000'),
        right=Side(style='thin', color='000000'),
        top=Side(style='thin', color='000000'),
        bottom=Side(style='thin', color='000000')
    )

    # Title row
    ws.merge_cells('A1:F1')
    title_cell = ws['A1']
    title_cell.value = f"{cls.code} - {cls.name}"
    title_cell.font = Font(bold=True, size=16, color="4472C4")
    title_cell.alignment = Alignment(horizontal="center", vertical="center")

    # Subtitle with placement and timing
    ws.merge_cells('A2:F2')
    subtitle_cell = ws['A2']
    subtitle_cell.value = (
        f"{cls.branch.name} | {cls.room.name if cls.room else 'No room'} | "
        f"{cls.teacher if cls.teacher else 'No teacher'} | "
        f"{cls.get_days_display()} {cls.get_time_range_display()} | "
        f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    )
    subtitle_cell.font = Font(size=10, italic=True)
    subtitle_cell.alignment = Alignment(horizontal="center")

    ws.append([])  # Empty row

    headers = ['#', 'Date', 'Day', 'Status', 'Original Date', 'Note']
    ws.append(headers)
    for cell in ws[4]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = header_alignment
        cell.border = border_style

    sessions = cls.schedules.order_by('session_date', 'session_number')
    for session in sessions:
        ws.append([
            session.session_number,
            session.session_date.strftime('%Y-%m-%d'),
            session.session_date.strftime('%A'),
            session.get_status_display(),
            session.original_date.strftime('%Y-%m-%d') if session.original_date else '',
            session.note,
        ])
        for cell in ws[ws.max_row]:
            cell.border = border_style
            cell.alignment = Alignment(vertical="center", wrap_text=True)

    # Adjust column widths
    for col, width in {'A': 6, 'B': 14, 'C': 12, 'D': 14, 'E': 14, 'F': 40}.items():
        ws.column_dimensions[col].width = width

    # Summary at bottom
    summary = cls.get_sessions_summary()
    summary_row = ws.max_row + 2
    for offset, (label, value) in enumerate([
        ('Total Sessions:', summary['total']),
        ('Completed:', summary['completed']),
        ('Remaining:', summary['remaining']),
        ('End Date:', cls.end_date.strftime('%Y-%m-%d') if cls.end_date else ''),
    ]):
        ws[f'A{summary_row + offset}'] = label
        ws[f'B{summary_row + offset}'] = value
        ws[f'A{summary_row + offset}'].font = Font(bold=True)

    return wb


def export_class_schedule_excel(request, pk):
    """Export the session list of a class to Excel"""
    cls = get_object_or_404(Class.objects.select_related('branch', 'room', 'teacher'), pk=pk)
    wb = build_class_schedule_workbook(cls)

    response = HttpResponse(
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    response['Content-Disposition'] = f'attachment; filename="{cls.code}_sessions.xlsx"'
    wb.save(response)

    logger.info(f"Exported session list of {cls.code}")
    return response
