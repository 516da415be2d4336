"""
Pytest configuration and shared fixtures.
"""
from pathlib import Path
from typing import Callable

import pytest

from core.models import ExtractionResult
from core.store import FastTrackStore

FIXED_TIMESTAMP = "2026-01-01T00:00:00.000Z"


@pytest.fixture
def store() -> FastTrackStore:
    """A freshly seeded store, isolated per test."""
    return FastTrackStore()


@pytest.fixture
def make_result() -> Callable[..., ExtractionResult]:
    """Build an ExtractionResult with a fixed timestamp for exact renderings."""

    def _make(records, source="json", warnings=None) -> ExtractionResult:
        result = ExtractionResult.build(source, records, warnings=warnings)
        result.metadata.extracted_at = FIXED_TIMESTAMP
        return result

    return _make


@pytest.fixture
def no_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make sure no Graph / Dataverse credentials leak in from the environment."""
    for name in (
        "GRAPH_TENANT_ID",
        "GRAPH_CLIENT_ID",
        "GRAPH_CLIENT_SECRET",
        "DATAVERSE_TENANT_ID",
        "DATAVERSE_CLIENT_ID",
        "DATAVERSE_CLIENT_SECRET",
        "DATAVERSE_ENVIRONMENT_URL",
    ):
        monkeypatch.delenv(name, raising=False)


# --- PDF fixtures ---
def build_pdf(pages: list[str]) -> bytes:
    """Minimal PDF with one Helvetica text block per page.

    Each "\\n" in a page's text starts a new text line.  Object offsets in the
    xref table are computed, so pypdf reads the file without repair.
    """
    page_count = len(pages)
    page_ids = [4 + 2 * i for i in range(page_count)]

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        (
            f"<< /Type /Pages /Kids [{' '.join(f'{p} 0 R' for p in page_ids)}] "
            f"/Count {page_count} >>"
        ).encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    for page_id, text in zip(page_ids, pages):
        ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for line in text.split("\n"):
            escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
            ops.append(f"({escaped}) Tj T*")
        ops.append("ET")
        stream = "\n".join(ops).encode("latin-1")

        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        objects.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode() + stream + b"\nendstream"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def pdf_file(tmp_path: Path) -> Callable[[list[str]], Path]:
    """Factory: write a PDF with the given page texts and return its path."""

    def _write(pages: list[str], name: str = "doc.pdf") -> Path:
        path = tmp_path / name
        path.write_bytes(build_pdf(pages))
        return path

    return _write
