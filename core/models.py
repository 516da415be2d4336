# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of every piece of information that flows
# through the server:
#   - store entities (Customer, Environment, ChecklistItem, BestPractice)
#   - the extraction envelope (ExtractionMetadata, ExtractionResult)
#   - the code scanner's output (CodeRecord)
#
# A "record" is a plain dict[str, Any]: extraction sources produce arbitrary
# field sets.  Insertion order is the display order.
# =============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional


Record = dict[str, Any]

# The closed set of output encodings.
OutputFormat = Literal["json", "markdown", "summary", "key-value", "csv"]

CustomerStatus = Literal["Active", "Onboarding", "Go-Live", "Post-Go-Live", "Completed"]
EngagementType = Literal["FastTrack", "Unified", "Direct"]
EnvironmentType = Literal["Sandbox", "UAT", "Production", "DevTest", "Build"]
ChecklistPhase = Literal["Initiate", "Implement", "Prepare", "Operate"]
ChecklistStatus = Literal["Not Started", "In Progress", "Completed", "Blocked", "N/A"]
Severity = Literal["Critical", "High", "Medium", "Low"]


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a trailing 'Z'."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# -----------------------------------------------------------------------------
# TargetTool — downstream tools whose input shape drives formatting
# -----------------------------------------------------------------------------
# Keep this enum in sync with the tool names registered in tools/mcp_server.py.
# The format/field tables in core/output_formatter.py are keyed by it.
# -----------------------------------------------------------------------------
class TargetTool(str, Enum):
    ADD_CUSTOMER = "add_customer"
    UPDATE_CUSTOMER_STATUS = "update_customer_status"
    ADD_ENVIRONMENT = "add_environment"
    ADD_CHECKLIST_ITEM = "add_checklist_item"
    UPDATE_CHECKLIST_ITEM = "update_checklist_item"
    SEARCH_BEST_PRACTICES = "search_best_practices"
    GET_IMPLEMENTATION_CHECKLIST = "get_implementation_checklist"
    GET_CUSTOMER = "get_customer"
    LIST_CUSTOMERS = "list_customers"
    GET_ENVIRONMENTS = "get_environments"
    VALIDATE_ENVIRONMENT_READINESS = "validate_environment_readiness"

    @classmethod
    def lookup(cls, name: Optional[str]) -> Optional["TargetTool"]:
        """Return the member for a tool name, or None for unknown names."""
        if not name:
            return None
        try:
            return cls(name)
        except ValueError:
            return None


# -----------------------------------------------------------------------------
# Store entities
# -----------------------------------------------------------------------------
@dataclass
class Customer:
    """A FastTrack customer engagement."""

    id: str                            # "cust-001"
    name: str
    industry: str
    region: str
    engagement_type: str               # FastTrack | Unified | Direct
    status: str                        # Active | Onboarding | Go-Live | ...
    d365_modules: list[str] = field(default_factory=list)
    go_live_date: Optional[str] = None  # YYYY-MM-DD
    assigned_architect: Optional[str] = None
    notes: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Camel-cased view used by the JSON resources."""
        data = {
            "id": self.id,
            "name": self.name,
            "industry": self.industry,
            "region": self.region,
            "engagementType": self.engagement_type,
            "status": self.status,
            "d365Modules": list(self.d365_modules),
            "goLiveDate": self.go_live_date,
            "assignedArchitect": self.assigned_architect,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class Environment:
    """A D365 F&O environment belonging to one customer."""

    id: str                            # "env-001"
    customer_id: str
    name: str
    type: str                          # Sandbox | UAT | Production | DevTest | Build
    region: str
    version: str                       # "10.0.40"
    lcs_project_id: Optional[str] = None
    url: Optional[str] = None
    status: str = "Active"             # Active | Provisioning | Decommissioned

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "customerId": self.customer_id,
            "name": self.name,
            "type": self.type,
            "region": self.region,
            "version": self.version,
            "lcsProjectId": self.lcs_project_id,
            "url": self.url,
            "status": self.status,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class ChecklistItem:
    """One item on a customer's implementation checklist."""

    id: str                            # "chk-001"
    phase: str                         # Initiate | Implement | Prepare | Operate
    category: str
    title: str
    description: str
    status: str = "Not Started"
    owner: Optional[str] = None
    due_date: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "phase": self.phase,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "owner": self.owner,
            "dueDate": self.due_date,
            "notes": self.notes,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass
class BestPractice:
    """An entry in the best-practices knowledge base."""

    id: str
    module: str
    category: str
    title: str
    description: str
    recommendation: str
    severity: str                      # Critical | High | Medium | Low
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "module": self.module,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "recommendation": self.recommendation,
            "severity": self.severity,
            "tags": list(self.tags),
        }


# -----------------------------------------------------------------------------
# Extraction envelope
# -----------------------------------------------------------------------------
# Every extraction tool builds one ExtractionResult, hands it to the output
# formatter, and throws it away once the text is rendered.
# -----------------------------------------------------------------------------
@dataclass
class ExtractionMetadata:
    """Descriptive wrapper for a batch of extracted records."""

    source: str                        # "pdf", "email", "dataverse", "json", "code"
    extracted_at: str = field(default_factory=utc_timestamp)
    output_format: str = "json"        # Overwritten once the format is resolved
    record_count: int = 0
    warnings: list[str] = field(default_factory=list)
    target_tool: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys downstream tools expect.

        Empty warnings and an unset target tool are omitted.
        """
        data: dict[str, Any] = {
            "source": self.source,
            "extractedAt": self.extracted_at,
            "outputFormat": self.output_format,
            "recordCount": self.record_count,
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        if self.target_tool:
            data["targetTool"] = self.target_tool
        return data


@dataclass
class ExtractionResult:
    """Records plus metadata, as produced by one extraction source."""

    metadata: ExtractionMetadata
    records: list[Record] = field(default_factory=list)
    field_hints: Optional[dict[str, str]] = None

    @classmethod
    def build(
        cls,
        source: str,
        records: list[Record],
        warnings: Optional[list[str]] = None,
        field_hints: Optional[dict[str, str]] = None,
    ) -> "ExtractionResult":
        """Create a result whose record_count matches the records given."""
        metadata = ExtractionMetadata(
            source=source,
            record_count=len(records),
            warnings=list(warnings or []),
        )
        return cls(metadata=metadata, records=records, field_hints=field_hints)


# -----------------------------------------------------------------------------
# CodeRecord — one finding from the code scanner
# -----------------------------------------------------------------------------
@dataclass
class CodeRecord:
    """A declaration, import, export, comment, or raw line found in source."""

    type: str                          # class, function, import, doc-comment, line, ...
    name: str
    line: int                          # 1-based
    signature: str
    body: Optional[str] = None

    def to_record(self) -> Record:
        record: Record = {
            "type": self.type,
            "name": self.name,
            "line": self.line,
            "signature": self.signature,
        }
        if self.body is not None:
            record["body"] = self.body
        return record
