# =============================================================================
# core/code_structure.py  —  Code Structure Extractor
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Scans source text line by line and recovers declarations, imports,
#   exports and documentation comments as CodeRecords.
#
# THIS IS A HEURISTIC SCANNER, NOT A PARSER:
#   Each language is a LanguageScanner holding a few line-anchored regexes.
#   The first declaration pattern that matches a line wins.  Multi-line
#   signatures, nested scopes and string contents are not understood.
#
# ADDING OR REPLACING A LANGUAGE:
#   Register a LanguageScanner (or a subclass with its own scan_* methods)
#   in _SCANNERS.  Languages without a scanner fall back to typescript.
#
# Everything here is pure: the caller passes already-read text.
# =============================================================================

from dataclasses import dataclass, field
import os
import re
from typing import Optional

from core.models import CodeRecord

SIGNATURE_LIMIT = 200
EXPORT_NAME_LIMIT = 80
DOC_BLOCK_LIMIT = 500
FULL_MODE_LINE_CAP = 500

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".cs": "csharp",
    ".xpp": "xpp",
    ".xml": "xml",
    ".json": "json",
    ".py": "python",
    ".java": "java",
    ".sql": "sql",
}

FALLBACK_LANGUAGE = "typescript"


def detect_language(file_path: str) -> str:
    """Map a file extension to a language name ("unknown" if unmapped)."""
    _, ext = os.path.splitext(file_path)
    return LANGUAGE_BY_EXTENSION.get(ext.lower(), "unknown")


def infer_declaration_type(signature: str, language: str) -> str:
    """Guess the kind of declaration by sniffing keywords in the line."""
    s = signature.lower()
    if "class" in s:
        return "class"
    if "interface" in s:
        return "interface"
    if "enum" in s:
        return "enum"
    if "struct" in s:
        return "struct"
    if "type " in s and language == "typescript":
        return "type"
    if "function" in s or "def " in s:
        return "function"
    if "table" in s and language == "xpp":
        return "table"
    return "method"


# -----------------------------------------------------------------------------
# LanguageScanner — one strategy per language
# -----------------------------------------------------------------------------
@dataclass
class LanguageScanner:
    """Line-pattern tables for one language.

    declaration_patterns are tried in order against the raw line; the
    import pattern and export prefix are tested against the trimmed line.
    """

    language: str
    declaration_patterns: list[re.Pattern] = field(default_factory=list)
    import_pattern: Optional[re.Pattern] = None
    export_pattern: Optional[re.Pattern] = None

    def scan_structure(self, lines: list[str]) -> list[CodeRecord]:
        records: list[CodeRecord] = []
        for i, line in enumerate(lines):
            for pattern in self.declaration_patterns:
                match = pattern.match(line)
                if not match:
                    continue
                signature = line.strip()
                records.append(CodeRecord(
                    type=infer_declaration_type(signature, self.language),
                    name=_declaration_name(match, signature),
                    line=i + 1,
                    signature=signature[:SIGNATURE_LIMIT],
                ))
                break
        return records

    def scan_imports(self, lines: list[str]) -> list[CodeRecord]:
        if self.import_pattern is None:
            return []
        records = []
        for i, line in enumerate(lines):
            text = line.strip()
            if self.import_pattern.match(text):
                records.append(CodeRecord(type="import", name=text, line=i + 1, signature=text))
        return records

    def scan_exports(self, lines: list[str]) -> list[CodeRecord]:
        if self.export_pattern is None:
            return []
        records = []
        for i, line in enumerate(lines):
            text = line.strip()
            if self.export_pattern.match(text):
                records.append(CodeRecord(
                    type="export",
                    name=text[:EXPORT_NAME_LIMIT],
                    line=i + 1,
                    signature=text[:SIGNATURE_LIMIT],
                ))
        return records


def _declaration_name(match: re.Match, signature: str) -> str:
    """Last non-blank piece of the match (groups after the full match)."""
    candidates = [g for g in (match.group(0), *match.groups()) if g and g.strip()]
    name = candidates[-1] if candidates else signature[:50]
    return re.sub(r"\s*\($", "", name)


_TS_EXPORT = re.compile(r"^export ")
_PUBLIC_EXPORT = re.compile(r"^public\s+")

_SCANNERS: dict[str, LanguageScanner] = {
    "typescript": LanguageScanner(
        language="typescript",
        declaration_patterns=[
            re.compile(r"^(export\s+)?(interface|type|enum|class|abstract\s+class)\s+(\w+)"),
            re.compile(r"^(export\s+)?(async\s+)?function\s+(\w+)"),
            re.compile(r"^\s*(public|private|protected|static|async)\s+(\w+)\s*\("),
        ],
        import_pattern=re.compile(r"^import\s+.*"),
        export_pattern=_TS_EXPORT,
    ),
    "javascript": LanguageScanner(
        language="javascript",
        declaration_patterns=[
            re.compile(r"^(export\s+)?(class)\s+(\w+)"),
            re.compile(r"^(export\s+)?(async\s+)?function\s+(\w+)"),
            re.compile(r"^\s*(const|let|var)\s+(\w+)\s*=\s*(async\s+)?\("),
        ],
        import_pattern=re.compile(r"^(import|require)\s*\(?.*"),
        export_pattern=_TS_EXPORT,
    ),
    "csharp": LanguageScanner(
        language="csharp",
        declaration_patterns=[
            re.compile(
                r"^\s*(public|private|protected|internal)?\s*(static\s+)?(partial\s+)?"
                r"(class|interface|struct|enum|record)\s+(\w+)"
            ),
            re.compile(
                r"^\s*(public|private|protected|internal)?\s*(static\s+)?(async\s+)?"
                r"(virtual\s+)?(override\s+)?\w[\w<>\[\],\s]*\s+(\w+)\s*\("
            ),
        ],
        import_pattern=re.compile(r"^using\s+.*"),
        export_pattern=_PUBLIC_EXPORT,
    ),
    "xpp": LanguageScanner(
        language="xpp",
        declaration_patterns=[
            re.compile(r"^\s*(public|private|protected)?\s*(static\s+)?(class|interface|table)\s+(\w+)"),
            re.compile(r"^\s*(public|private|protected)?\s*(static\s+)?\w+\s+(\w+)\s*\("),
        ],
        import_pattern=re.compile(r"^using\s+.*"),
        export_pattern=_PUBLIC_EXPORT,
    ),
    "python": LanguageScanner(
        language="python",
        declaration_patterns=[
            re.compile(r"^class\s+(\w+)"),
            re.compile(r"^(async\s+)?def\s+(\w+)"),
        ],
        import_pattern=re.compile(r"^(import|from)\s+.*"),
    ),
    "java": LanguageScanner(
        language="java",
        declaration_patterns=[
            re.compile(
                r"^\s*(public|private|protected)?\s*(static\s+)?(abstract\s+)?"
                r"(class|interface|enum)\s+(\w+)"
            ),
            re.compile(
                r"^\s*(public|private|protected)?\s*(static\s+)?(abstract\s+)?"
                r"\w[\w<>\[\],\s]*\s+(\w+)\s*\("
            ),
        ],
        import_pattern=re.compile(r"^import\s+.*"),
        export_pattern=_PUBLIC_EXPORT,
    ),
}


def register_scanner(scanner: LanguageScanner) -> None:
    """Install (or replace) the scanner for scanner.language."""
    _SCANNERS[scanner.language] = scanner


def scanner_for(language: str) -> LanguageScanner:
    """The scanner for a language, or the typescript scanner as fallback."""
    return _SCANNERS.get(language.lower(), _SCANNERS[FALLBACK_LANGUAGE])


# =============================================================================
# PUBLIC API: one function per extraction mode
# =============================================================================
def extract_structure(source_text: str, language: str) -> list[CodeRecord]:
    """Class / interface / function / method declarations, one per line."""
    return scanner_for(language).scan_structure(source_text.split("\n"))


def extract_imports(source_text: str, language: str) -> list[CodeRecord]:
    return scanner_for(language).scan_imports(source_text.split("\n"))


def extract_exports(source_text: str, language: str) -> list[CodeRecord]:
    """Exported symbols: `export` lines for TS/JS, `public` lines for C#/Java/X++."""
    return scanner_for(language).scan_exports(source_text.split("\n"))


def extract_comments(source_text: str) -> list[CodeRecord]:
    """Doc comments: `/** ... */` blocks and `///` lines.

    A block becomes one record anchored at its opening line.  An unclosed
    block at end of file is dropped.
    """
    records: list[CodeRecord] = []
    in_block = False
    block_start = 0
    block_lines: list[str] = []

    for i, raw in enumerate(source_text.split("\n")):
        line = raw.strip()

        if not in_block and line.startswith("/**"):
            in_block = True
            block_start = i + 1
            block_lines = [line]
            closes_here = "*/" in line[3:]
        elif in_block:
            block_lines.append(line)
            closes_here = "*/" in line
        else:
            closes_here = False

        if in_block and closes_here:
            in_block = False
            records.append(CodeRecord(
                type="doc-comment",
                name=f"Comment at line {block_start}",
                line=block_start,
                signature="\n".join(block_lines)[:DOC_BLOCK_LIMIT],
            ))
            block_lines = []

        if line.startswith("///"):
            records.append(CodeRecord(
                type="xml-doc-comment",
                name=f"Comment at line {i + 1}",
                line=i + 1,
                signature=line[:SIGNATURE_LIMIT],
            ))

    return records


def extract_full(source_text: str) -> list[CodeRecord]:
    """Every line as a record, capped at the first 500 lines."""
    lines = source_text.split("\n")[:FULL_MODE_LINE_CAP]
    return [
        CodeRecord(type="line", name=str(i + 1), line=i + 1, signature=line)
        for i, line in enumerate(lines)
    ]
