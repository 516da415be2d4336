# =============================================================================
# core/code_extractor.py  —  source file -> code records
# =============================================================================
#
# Reads a source file and runs one of the code_structure scanners over it.
# The language comes from the caller's hint or the file extension.
# =============================================================================

from typing import Literal, Optional

from core.code_structure import (
    detect_language,
    extract_comments,
    extract_exports,
    extract_full,
    extract_imports,
    extract_structure,
)
from core.models import ExtractionResult

ExtractionMode = Literal["full", "structure", "imports", "exports", "comments"]

CODE_FIELD_HINTS = {
    "type": "Kind of code element (class, function, import, etc.)",
    "name": "Element name or identifier",
    "line": "Line number in the source file",
    "signature": "Full signature or line content",
}


def extract_code(
    file_path: str,
    extraction_mode: Optional[str] = "structure",
    language: Optional[str] = None,
) -> ExtractionResult:
    """Scan a source file.

    Args:
        file_path: Path of the file to read (UTF-8).
        extraction_mode: full | structure | imports | exports | comments.
            Unknown modes behave like "structure".
        language: Language hint; detected from the extension when omitted.

    Raises:
        FileNotFoundError: file_path does not exist.
    """
    with open(file_path, encoding="utf-8") as fh:
        content = fh.read()

    lang = language or detect_language(file_path)
    mode = extraction_mode or "structure"

    if mode == "full":
        code_records = extract_full(content)
    elif mode == "imports":
        code_records = extract_imports(content, lang)
    elif mode == "exports":
        code_records = extract_exports(content, lang)
    elif mode == "comments":
        code_records = extract_comments(content)
    else:
        code_records = extract_structure(content, lang)

    records = [r.to_record() for r in code_records]
    return ExtractionResult.build("code", records, field_hints=CODE_FIELD_HINTS)
