# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines ALL MCP tools, resources and prompts the FastTrack server
#   exposes.  Each tool is a thin wrapper around a core/ function: it logs
#   the call, hands the arguments to core/, and returns text.
#
# TWO KINDS OF TOOLS:
#   - Store-backed tools (customers, environments, checklists, best
#     practices) read and write the process-wide FastTrackStore and return
#     markdown.
#   - Extraction tools (extract_*) pull data from a file, an inline JSON
#     string or a Microsoft API, normalize it into records, and render the
#     records through core/output_formatter.py.  Every extraction tool takes
#     output_format and target_tool so the caller can shape the output for
#     whichever tool consumes it next.
#
# THE TOOL BOUNDARY:
#   Tool calls never fail at the protocol level.  run_extraction() catches
#   every exception and turns it into plain text (see tool_error_text).
#
# SHARED STATE:
#   One FastTrackStore and one TokenProvider per process, created below and
#   passed into core/ explicitly.
#
# RUNNING THIS SERVER:
#   a) Through main.py (stdio by default, MCP_TRANSPORT=http for HTTP)
#   b) Standalone:  python -m tools.mcp_server   (stdio)
# =============================================================================

import functools
import inspect
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Optional, Union

import anyio
from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

# --- Import core logic ---
# The tools layer depends on core/ and nothing else.
from core import best_practices, checklist, customers, environments
from core import (
    code_extractor,
    dataverse_extractor,
    email_extractor,
    json_extractor,
    pdf_extractor,
)
from core.auth import TokenProvider
from core.code_extractor import ExtractionMode
from core.config import debug_enabled, load_server_config
from core.errors import FastTrackError
from core.models import (
    ChecklistPhase,
    ChecklistStatus,
    CustomerStatus,
    EngagementType,
    EnvironmentType,
    ExtractionResult,
    OutputFormat,
    Severity,
)
from core.output_formatter import format_result
from core.prompts import METHODOLOGY, golive_readiness_prompt, implementation_review_prompt
from core.store import FastTrackStore

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because, on the stdio transport, STDOUT carries the MCP
# JSON-RPC stream.  Anything we printed there would corrupt the protocol.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for responses (truncated preview)
#     - YELLOW for intermediate status/progress messages
# =============================================================================

_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

_RESPONSE_PREVIEW_CHARS = 200

logging.basicConfig(
    level=logging.DEBUG if debug_enabled() else logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if k != "access_token")
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, text: str) -> str:
    """Log the start of the response in GREEN, then return it."""
    preview = text[:_RESPONSE_PREVIEW_CHARS].replace("\n", " ")
    if len(text) > _RESPONSE_PREVIEW_CHARS:
        preview += "..."
    logging.info(f"{_GREEN}  ← {tool_name} response ({len(text)} chars): {preview}{_RESET}")
    return text


# =============================================================================
# Create the FastMCP server instance and the shared state
# =============================================================================
SERVER_NAME = "fasttrack-d365-mcp"
SERVER_VERSION = "1.1.0"

mcp = FastMCP(SERVER_NAME)

store = FastTrackStore()
token_provider = TokenProvider()


# =============================================================================
# The tool boundary
# =============================================================================
def tool_error_text(tool_name: str, exc: BaseException) -> str:
    """Turn an exception into the text a tool returns, and log it.

    FastTrackError messages are already user-facing.  A missing file names
    the path.  Anything else is reported as a failed extraction.
    """
    if isinstance(exc, FastTrackError):
        message = str(exc)
    elif isinstance(exc, FileNotFoundError):
        message = f"File not found: {exc.filename or exc}"
    else:
        message = f"Extraction failed: {exc}"
    logging.error(f"{tool_name} failed: {message}")
    return message


async def run_extraction(
    tool_name: str,
    extract: Callable[[], Union[ExtractionResult, Awaitable[ExtractionResult]]],
    output_format: Optional[str] = None,
    target_tool: Optional[str] = None,
) -> str:
    """Run one extraction and render it, never raising.

    Args:
        tool_name: Used in log lines.
        extract: Zero-argument callable producing the ExtractionResult.
            Coroutine functions are awaited; plain callables run in a worker
            thread so file reads and PDF parsing do not stall the event loop.
        output_format / target_tool: Passed to the output formatter.
    """
    try:
        if inspect.iscoroutinefunction(extract):
            result = await extract()
        else:
            result = await anyio.to_thread.run_sync(extract)
        _log_status(
            f"Extracted {result.metadata.record_count} {result.metadata.source} record(s)"
            + (f", {len(result.metadata.warnings)} warning(s)" if result.metadata.warnings else "")
        )
        text = format_result(result, output_format, target_tool)
        _log_status(f"Rendered as {result.metadata.output_format}")
    except Exception as exc:
        text = tool_error_text(tool_name, exc)
    return _log_response(tool_name, text)


# =============================================================================
# CUSTOMER TOOLS
# =============================================================================
@mcp.tool()
def list_customers(
    status: Optional[CustomerStatus] = None,
    region: Optional[str] = None,
    module: Optional[str] = None,
) -> str:
    """List all FastTrack customer engagements.

    Optionally filter by status, region (e.g. "North America", "Europe") or
    D365 module (e.g. "Finance", "Supply Chain Management").  Region and
    module match case-insensitive substrings.
    """
    _log_request("list_customers", status=status, region=region, module=module)
    return _log_response("list_customers", customers.list_customers(store, status, region, module))


@mcp.tool()
def get_customer(identifier: str) -> str:
    """Get detailed information about one FastTrack customer.

    WHEN TO CALL THIS: when you need a customer's profile, environments and
    implementation progress in one view.

    Args:
        identifier: Customer ID (e.g. "cust-001") or part of the customer name.
    """
    _log_request("get_customer", identifier=identifier)
    return _log_response("get_customer", customers.get_customer(store, identifier))


@mcp.tool()
def add_customer(
    name: str,
    industry: str,
    region: str,
    engagement_type: EngagementType,
    d365_modules: str,
    go_live_date: Optional[str] = None,
    assigned_architect: Optional[str] = None,
) -> str:
    """Add a new customer engagement.  New customers start as "Onboarding".

    Args:
        name: Customer/organization name.
        industry: e.g. Manufacturing, Retail, Distribution.
        region: e.g. North America, Europe, Asia Pacific.
        engagement_type: FastTrack, Unified or Direct.
        d365_modules: Comma-separated D365 modules.
        go_live_date: Planned go-live date (YYYY-MM-DD).
        assigned_architect: Assigned solution architect.
    """
    _log_request("add_customer", name=name, industry=industry, region=region,
                 engagement_type=engagement_type, d365_modules=d365_modules,
                 go_live_date=go_live_date, assigned_architect=assigned_architect)
    text = customers.add_customer(
        store, name, industry, region, engagement_type, d365_modules,
        go_live_date=go_live_date, assigned_architect=assigned_architect,
    )
    return _log_response("add_customer", text)


@mcp.tool()
def update_customer_status(
    customer_id: str,
    status: CustomerStatus,
    notes: Optional[str] = None,
) -> str:
    """Update the status of an existing customer engagement."""
    _log_request("update_customer_status", customer_id=customer_id, status=status, notes=notes)
    text = customers.update_customer_status(store, customer_id, status, notes)
    return _log_response("update_customer_status", text)


# =============================================================================
# ENVIRONMENT TOOLS
# =============================================================================
@mcp.tool()
def get_environments(customer_id: str) -> str:
    """List a customer's D365 F&O environments (Sandbox, UAT, Production, ...)."""
    _log_request("get_environments", customer_id=customer_id)
    return _log_response("get_environments", environments.get_environments(store, customer_id))


@mcp.tool()
def add_environment(
    customer_id: str,
    name: str,
    type: EnvironmentType,
    region: str,
    version: str,
    lcs_project_id: Optional[str] = None,
    url: Optional[str] = None,
) -> str:
    """Add a new D365 F&O environment for a customer.

    Args:
        customer_id: Customer ID.
        name: Environment name (e.g. "Contoso-UAT").
        type: Sandbox, UAT, Production, DevTest or Build.
        region: Azure region (e.g. "East US").
        version: D365 F&O version (e.g. "10.0.40").
        lcs_project_id: LCS project ID.
        url: Environment URL.
    """
    _log_request("add_environment", customer_id=customer_id, name=name, type=type,
                 region=region, version=version, lcs_project_id=lcs_project_id, url=url)
    text = environments.add_environment(
        store, customer_id, name, type, region, version,
        lcs_project_id=lcs_project_id, url=url,
    )
    return _log_response("add_environment", text)


@mcp.tool()
def validate_environment_readiness(customer_id: str) -> str:
    """Score a customer's environment setup against FastTrack best practices.

    Checks for a missing Production, UAT or Sandbox environment, version
    mismatches, and decommissioned environments.  Returns a 0-100 score
    with a label and the list of findings.
    """
    _log_request("validate_environment_readiness", customer_id=customer_id)
    text = environments.validate_environment_readiness(store, customer_id)
    return _log_response("validate_environment_readiness", text)


# =============================================================================
# IMPLEMENTATION CHECKLIST TOOLS
# =============================================================================
@mcp.tool()
def get_implementation_checklist(
    customer_id: str,
    phase: Optional[ChecklistPhase] = None,
    status: Optional[ChecklistStatus] = None,
) -> str:
    """Get a customer's FastTrack implementation checklist, grouped by phase.

    Optionally filter by phase (Initiate, Implement, Prepare, Operate) or
    item status.
    """
    _log_request("get_implementation_checklist", customer_id=customer_id, phase=phase, status=status)
    text = checklist.get_implementation_checklist(store, customer_id, phase, status)
    return _log_response("get_implementation_checklist", text)


@mcp.tool()
def update_checklist_item(
    customer_id: str,
    item_id: str,
    status: ChecklistStatus,
    notes: Optional[str] = None,
) -> str:
    """Update the status of one checklist item (e.g. item_id "chk-003")."""
    _log_request("update_checklist_item", customer_id=customer_id, item_id=item_id,
                 status=status, notes=notes)
    text = checklist.update_checklist_item(store, customer_id, item_id, status, notes)
    return _log_response("update_checklist_item", text)


@mcp.tool()
def add_checklist_item(
    customer_id: str,
    phase: ChecklistPhase,
    category: str,
    title: str,
    description: str,
    owner: Optional[str] = None,
    due_date: Optional[str] = None,
) -> str:
    """Add a new item to a customer's implementation checklist.

    Args:
        customer_id: Customer ID.
        phase: Initiate, Implement, Prepare or Operate.
        category: e.g. Solution Design, Data Migration, Testing.
        title: Item title.
        description: Item description.
        owner: Responsible person or role.
        due_date: Due date (YYYY-MM-DD).
    """
    _log_request("add_checklist_item", customer_id=customer_id, phase=phase,
                 category=category, title=title, owner=owner, due_date=due_date)
    text = checklist.add_checklist_item(
        store, customer_id, phase, category, title, description,
        owner=owner, due_date=due_date,
    )
    return _log_response("add_checklist_item", text)


# =============================================================================
# BEST PRACTICES
# =============================================================================
@mcp.tool()
def search_best_practices(
    query: Optional[str] = None,
    module: Optional[str] = None,
    severity: Optional[Severity] = None,
) -> str:
    """Search the FastTrack best-practices knowledge base for D365 F&O.

    Args:
        query: Free text matched against titles, descriptions,
            recommendations and tags.
        module: D365 module (e.g. "Finance", "General").
        severity: Critical, High, Medium or Low.
    """
    _log_request("search_best_practices", query=query, module=module, severity=severity)
    text = best_practices.search_best_practices(store, query, module, severity)
    return _log_response("search_best_practices", text)


# =============================================================================
# EXTRACTION TOOLS
# =============================================================================
# Every extraction tool ends in run_extraction(), which renders the records
# and converts any failure into text.
#
# output_format: force json | markdown | summary | key-value | csv.
# target_tool:   name of the tool that will consume the output.  Picks a
#                format that tool reads best and, for write tools, adds a
#                "mappedFields" block with the record's fields renamed to
#                that tool's parameters.
# =============================================================================
@mcp.tool()
async def extract_json(
    source: str,
    json_path: Optional[str] = None,
    select_fields: Optional[str] = None,
    flatten: bool = False,
    output_format: Optional[OutputFormat] = None,
    target_tool: Optional[str] = None,
) -> str:
    """Extract records from inline JSON or a JSON file.

    WHEN TO CALL THIS: to reshape JSON (API payloads, exports, config
    files) into records that another tool can consume.

    Args:
        source: Inline JSON text, or an absolute path to a .json file
            (starting with "/", "~" or a drive letter).
        json_path: Dot/bracket path to the data to extract, e.g.
            "data.customers", "items[0]", "results[*].name".
        select_fields: Comma-separated fields to keep.
        flatten: Collapse nested objects into dot-notation keys.
        output_format: Force an output format.  Auto-detected if omitted.
        target_tool: Name of the tool that will consume this output.
    """
    _log_request("extract_json", json_path=json_path, select_fields=select_fields,
                 flatten=flatten, output_format=output_format, target_tool=target_tool)
    return await run_extraction(
        "extract_json",
        lambda: json_extractor.extract_json(source, json_path, select_fields, flatten),
        output_format,
        target_tool,
    )


@mcp.tool()
async def extract_pdf(
    file_path: str,
    pages: Optional[str] = None,
    extract_tables: bool = False,
    output_format: Optional[OutputFormat] = None,
    target_tool: Optional[str] = None,
) -> str:
    """Extract text (and optionally tables) from a PDF, one record per page.

    Args:
        file_path: Absolute path to the PDF.
        pages: "all" (default) or a range such as "1-5,8,10-12".
        extract_tables: Also detect whitespace-aligned tables.
        output_format: Force an output format.  Auto-detected if omitted.
        target_tool: Name of the tool that will consume this output.
    """
    _log_request("extract_pdf", file_path=file_path, pages=pages, extract_tables=extract_tables,
                 output_format=output_format, target_tool=target_tool)
    return await run_extraction(
        "extract_pdf",
        lambda: pdf_extractor.extract_pdf(file_path, pages, extract_tables),
        output_format,
        target_tool,
    )


@mcp.tool()
async def extract_email(
    mailbox: Optional[str] = None,
    folder: str = "Inbox",
    query: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    max_results: int = 10,
    output_format: Optional[OutputFormat] = None,
    target_tool: Optional[str] = None,
    access_token: Optional[str] = None,
) -> str:
    """Extract emails from Microsoft 365 through the Graph API.

    Args:
        mailbox: Mailbox address.  Defaults to "me".
        folder: Mail folder (Inbox, SentItems, Archive, ...).
        query: Free-text search (e.g. "subject:go-live").
        from_date / to_date: Received-date window (YYYY-MM-DD).
        max_results: Emails to return (default 10, max 50).
        output_format: Force an output format.  Auto-detected if omitted.
        target_tool: Name of the tool that will consume this output.
        access_token: Pre-acquired Graph token; bypasses the configured
            app credentials.
    """
    _log_request("extract_email", mailbox=mailbox, folder=folder, query=query,
                 from_date=from_date, to_date=to_date, max_results=max_results,
                 output_format=output_format, target_tool=target_tool)
    return await run_extraction(
        "extract_email",
        functools.partial(
            email_extractor.extract_email,
            token_provider,
            mailbox=mailbox,
            folder=folder,
            query=query,
            from_date=from_date,
            to_date=to_date,
            max_results=max_results,
            access_token=access_token,
        ),
        output_format,
        target_tool,
    )


@mcp.tool()
async def extract_dataverse(
    table: str,
    select: Optional[str] = None,
    filter: Optional[str] = None,
    expand: Optional[str] = None,
    top: int = 50,
    order_by: Optional[str] = None,
    environment_url: Optional[str] = None,
    output_format: Optional[OutputFormat] = None,
    target_tool: Optional[str] = None,
    access_token: Optional[str] = None,
) -> str:
    """Extract rows from a Microsoft Dataverse table through the Web API (OData).

    Args:
        table: Table logical name (e.g. "accounts", "contacts").
        select: Comma-separated columns ($select).
        filter: OData $filter (e.g. "statecode eq 0").
        expand: OData $expand for related tables.
        top: Records to return (default 50, max 500).
        order_by: OData $orderby (e.g. "createdon desc").
        environment_url: Overrides DATAVERSE_ENVIRONMENT_URL.
        output_format: Force an output format.  Auto-detected if omitted.
        target_tool: Name of the tool that will consume this output.
        access_token: Pre-acquired Dataverse token.
    """
    _log_request("extract_dataverse", table=table, select=select, filter=filter,
                 expand=expand, top=top, order_by=order_by, environment_url=environment_url,
                 output_format=output_format, target_tool=target_tool)
    return await run_extraction(
        "extract_dataverse",
        functools.partial(
            dataverse_extractor.extract_dataverse,
            token_provider,
            table,
            select=select,
            filter=filter,
            expand=expand,
            top=top,
            order_by=order_by,
            environment_url=environment_url,
            access_token=access_token,
        ),
        output_format,
        target_tool,
    )


@mcp.tool()
async def extract_code(
    file_path: str,
    extraction_mode: ExtractionMode = "structure",
    language: Optional[str] = None,
    output_format: Optional[OutputFormat] = None,
    target_tool: Optional[str] = None,
) -> str:
    """Extract declarations, imports, exports or doc comments from a source file.

    Supports TypeScript, JavaScript, C#, X++, Python and Java; other
    languages are scanned with the TypeScript rules.

    Args:
        file_path: Absolute path to the code file.
        extraction_mode: "structure" (classes/functions), "imports",
            "exports", "comments" (doc comments) or "full" (every line,
            first 500 lines).
        language: Language hint (e.g. "csharp", "xpp").  Detected from the
            extension if omitted.
        output_format: Force an output format.  Auto-detected if omitted.
        target_tool: Name of the tool that will consume this output.
    """
    _log_request("extract_code", file_path=file_path, extraction_mode=extraction_mode,
                 language=language, output_format=output_format, target_tool=target_tool)
    return await run_extraction(
        "extract_code",
        lambda: code_extractor.extract_code(file_path, extraction_mode, language),
        output_format,
        target_tool,
    )


# =============================================================================
# RESOURCES
# =============================================================================
def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


@mcp.resource("fasttrack://customers", mime_type="application/json")
def customer_list() -> str:
    """All customers as JSON."""
    return _to_json([c.to_dict() for c in store.customers.values()])


def customer_detail_json(customer_id: str) -> str:
    """JSON body of the customer resource; an {"error": ...} object if unknown."""
    customer = store.get_customer(customer_id)
    if customer is None:
        return _to_json({"error": f"Customer not found: {customer_id}"})
    return _to_json({
        "customer": customer.to_dict(),
        "environments": [e.to_dict() for e in store.environments_for(customer_id)],
        "checklist": [i.to_dict() for i in store.checklist_for(customer_id)],
    })


@mcp.resource("fasttrack://customers/{customer_id}", mime_type="application/json")
def customer_detail(customer_id: str) -> str:
    """One customer with its environments and checklist."""
    return customer_detail_json(customer_id)


@mcp.resource("fasttrack://methodology", mime_type="text/markdown")
def fasttrack_methodology() -> str:
    """The FastTrack implementation methodology."""
    return METHODOLOGY


@mcp.resource("fasttrack://best-practices", mime_type="application/json")
def best_practices_summary() -> str:
    return _to_json([bp.to_dict() for bp in store.best_practices])


# =============================================================================
# PROMPTS
# =============================================================================
@mcp.prompt()
def implementation_review(
    customer_name: str,
    modules: str,
    phase: ChecklistPhase,
    concerns: Optional[str] = None,
) -> str:
    """Conduct a FastTrack implementation review for a D365 F&O customer."""
    return implementation_review_prompt(customer_name, modules, phase, concerns)


@mcp.prompt()
def golive_readiness_assessment(
    customer_name: str,
    customer_id: str,
    planned_go_live_date: str,
) -> str:
    """Perform a Go-Live Readiness assessment following the FastTrack review framework."""
    return golive_readiness_prompt(customer_name, customer_id, planned_go_live_date)


# =============================================================================
# HEALTH CHECK (served on the HTTP transport only)
# =============================================================================
def health_payload() -> dict:
    transport = load_server_config().transport
    return {
        "status": "healthy",
        "server": SERVER_NAME,
        "version": SERVER_VERSION,
        "transport": "streamable-http" if transport == "http" else transport,
    }


@mcp.custom_route("/health", methods=["GET"])
async def health(request: Request) -> JSONResponse:
    return JSONResponse(health_payload())


# =============================================================================
# Server entry point
# =============================================================================
# When run directly (python -m tools.mcp_server), start on stdio.
# main.py is the entry point that also honours MCP_TRANSPORT.
# =============================================================================
if __name__ == "__main__":
    mcp.run()
