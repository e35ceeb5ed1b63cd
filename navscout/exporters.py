"""
Report Exporters
================
Persist DiscoveryReports as JSON, CSV (one row per link) or a Word
document.

Every exporter creates missing parent directories and returns the
absolute path of the written file.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Sequence

from .models import DiscoveryReport

logger = logging.getLogger(__name__)

CSV_FIELDS = ['target_url', 'section', 'url', 'label']


def _prepare(filepath: str) -> Path:
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def export_json(reports: Sequence[DiscoveryReport], filepath: str) -> str:
    """Export reports to JSON."""
    path = _prepare(filepath)
    data = {
        'total_links_found': sum(r.total_links_found for r in reports),
        'reports': [r.to_dict() for r in reports],
    }
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info(f"Exported JSON to {path.absolute()}")
    return str(path.absolute())


def export_csv(reports: Sequence[DiscoveryReport], filepath: str) -> str:
    """Export reports to CSV, one row per discovered link."""
    path = _prepare(filepath)
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for report in reports:
            writer.writerows(report.to_flat_rows())
    logger.info(f"Exported CSV to {path.absolute()}")
    return str(path.absolute())


def export_docx(reports: Sequence[DiscoveryReport], filepath: str) -> str:
    """
    Export reports to a Word document.

    Layout: title, a summary table (page / links / sections / errors),
    then per page one heading per section with its links as a bulleted
    list and any errors at the end.
    """
    from docx import Document
    from docx.enum.table import WD_TABLE_ALIGNMENT
    from docx.enum.text import WD_ALIGN_PARAGRAPH
    from docx.shared import Pt

    path = _prepare(filepath)
    doc = Document()

    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(10)
    style.paragraph_format.space_after = Pt(4)

    title = doc.add_heading("Navigation Discovery Report", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    # ── Summary ────────────────────────────────────────────────────
    table = doc.add_table(rows=1, cols=4)
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    table.style = "Table Grid"
    for cell, text in zip(table.rows[0].cells, ("Page", "Links", "Sections", "Errors")):
        _cell_text(cell, text, bold=True)
    for report in reports:
        cells = table.add_row().cells
        _cell_text(cells[0], report.target_url)
        _cell_text(cells[1], str(report.total_links_found))
        _cell_text(cells[2], str(len(report.sections)))
        _cell_text(cells[3], str(len(report.errors)))

    # ── Per-page detail ────────────────────────────────────────────
    for report in reports:
        doc.add_page_break()
        doc.add_heading(report.target_url, level=1)
        if not report.sections:
            doc.add_paragraph("No links discovered.")
        for section in report.sections:
            doc.add_heading(f"{section.label} ({len(section.links)})", level=2)
            for link in section.links:
                para = doc.add_paragraph(style="List Bullet")
                if link.label:
                    para.add_run(link.label).bold = True
                    para.add_run(f"  {link.url}")
                else:
                    para.add_run(link.url)
        if report.errors:
            doc.add_heading("Errors", level=2)
            for err in report.errors:
                doc.add_paragraph(err, style="List Bullet")

    doc.save(str(path))
    logger.info(f"Exported DOCX to {path.absolute()}")
    return str(path.absolute())


def _cell_text(cell, text: str, bold: bool = False) -> None:
    cell.text = ""
    run = cell.paragraphs[0].add_run(text)
    run.bold = bold
