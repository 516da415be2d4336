# =============================================================================
# core/pdf_extractor.py  —  PDF source -> one record per page
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads a PDF with pypdf and produces records of the form
#       {"pageNumber": 3, "text": "...", "tables": [{"headers": [...], "rows": [...]}]}
#
# PAGE SELECTION:
#   "all" (or nothing) selects every page.  Otherwise a comma-separated list
#   of pages and ranges: "1-5,8,10-12".  Tokens that are not numbers are
#   dropped.  If nothing valid remains, every page is used.
#
# TABLES:
#   pypdf has no table model, so tables are detected from its layout-mode
#   text: a line whose content splits into 2+ cells on runs of 2+ spaces is
#   a table row, and 2+ consecutive rows form a table (first row = headers).
#   A failure here is a warning, the text is still returned.
# =============================================================================

import logging
import os
import re
from typing import Optional

from pypdf import PdfReader

from core.models import ExtractionResult, Record

logger = logging.getLogger(__name__)

MAX_PAGE_CHARS = 10_000
# Upper bound for range ends when the document length is not known.
MAX_PAGE_NUMBER = 10_000

_CELL_SPLIT_RE = re.compile(r"\s{2,}")

PDF_FIELD_HINTS = {
    "pageNumber": "PDF page number",
    "text": "Extracted text content",
    "tables": "Detected tabular data (if extractTables was true)",
}


def parse_page_range(
    pages: Optional[str],
    page_count: Optional[int] = None,
) -> Optional[list[int]]:
    """Resolve a page-range string to sorted, unique 1-based page numbers.

    Range ends are clamped to page_count (or MAX_PAGE_NUMBER when the
    document length is unknown).  Single pages are kept as given so the
    caller can report the ones past the end.

    Returns None for "all", an empty value, or a string with no valid
    tokens, meaning "every page".
    """
    last_page = page_count if page_count is not None else MAX_PAGE_NUMBER
    if not pages or pages.strip().lower() == "all":
        return None

    selected: set[int] = set()
    for part in (p.strip() for p in pages.split(",")):
        if "-" in part:
            start_str, _, end_str = part.partition("-")
            start, end = _to_int(start_str), _to_int(end_str)
            if start is None or end is None:
                continue
            selected.update(range(max(1, start), min(end, last_page) + 1))
        else:
            page = _to_int(part)
            if page is not None and page > 0:
                selected.add(page)

    return sorted(selected) or None


def _to_int(text: str) -> Optional[int]:
    try:
        return int(text.strip())
    except ValueError:
        return None


def detect_tables(layout_text: str) -> list[dict]:
    """Find whitespace-aligned tables in layout-mode page text."""
    tables: list[dict] = []
    current: list[list[str]] = []

    def close_table() -> None:
        if len(current) >= 2:
            tables.append({"headers": current[0], "rows": current[1:]})
        current.clear()

    for line in layout_text.split("\n"):
        cells = [c for c in _CELL_SPLIT_RE.split(line.strip()) if c]
        if len(cells) >= 2:
            current.append(cells)
        else:
            close_table()
    close_table()

    return tables


def extract_pdf(
    file_path: str,
    pages: Optional[str] = None,
    extract_tables: bool = False,
) -> ExtractionResult:
    """Extract page text (and optionally tables) from a PDF file.

    Raises:
        FileNotFoundError: file_path does not exist.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(2, "No such file", file_path)

    reader = PdfReader(file_path)
    total_pages = len(reader.pages)
    warnings: list[str] = []

    wanted = parse_page_range(pages, total_pages)
    if wanted is None:
        page_numbers = list(range(1, total_pages + 1))
    else:
        page_numbers = [n for n in wanted if n <= total_pages]
        missing = [n for n in wanted if n > total_pages]
        if missing:
            warnings.append(
                f"Requested page(s) {', '.join(map(str, missing))} not in document "
                f"({total_pages} pages)."
            )

    table_pages: dict[int, list[dict]] = {}
    if extract_tables:
        try:
            for number in page_numbers:
                layout = reader.pages[number - 1].extract_text(extraction_mode="layout") or ""
                found = detect_tables(layout)
                if found:
                    table_pages[number] = found
        except Exception as exc:
            logger.warning("Table extraction failed for %s: %s", file_path, exc)
            table_pages = {}
            warnings.append("Table extraction failed, returning text only.")

    records: list[Record] = []
    for number in page_numbers:
        text = (reader.pages[number - 1].extract_text() or "").strip()
        if len(text) > MAX_PAGE_CHARS:
            warnings.append(f"Page {number} text truncated to 10,000 characters.")

        record: Record = {"pageNumber": number, "text": text[:MAX_PAGE_CHARS]}
        if number in table_pages:
            record["tables"] = table_pages[number]
        records.append(record)

    return ExtractionResult.build("pdf", records, warnings=warnings, field_hints=PDF_FIELD_HINTS)
