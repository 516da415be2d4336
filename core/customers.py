# =============================================================================
# core/customers.py  —  Customer tools (list / get / add / update status)
# =============================================================================
#
# Store-backed logic for the customer tools.  Each function takes the store,
# does the lookup or write, and returns the markdown text the tool sends
# back.  Not-found cases are text too, not exceptions.
# =============================================================================

from typing import Optional

from core.models import Customer
from core.store import FastTrackStore


def list_customers(
    store: FastTrackStore,
    status: Optional[str] = None,
    region: Optional[str] = None,
    module: Optional[str] = None,
) -> str:
    customers = store.list_customers(status=status, region=region, module=module)
    if not customers:
        return "No customers found matching the criteria."

    summary = "\n\n".join(_customer_summary(c) for c in customers)
    return f"## FastTrack Customers ({len(customers)})\n\n{summary}"


def _customer_summary(customer: Customer) -> str:
    lines = [
        f"- **{customer.name}** ({customer.id})",
        f"  Status: {customer.status} | Region: {customer.region} "
        f"| Type: {customer.engagement_type}",
        f"  Modules: {', '.join(customer.d365_modules)}",
        f"  Go-Live: {customer.go_live_date or 'TBD'}",
    ]
    if customer.assigned_architect:
        lines.append(f"  Architect: {customer.assigned_architect}")
    return "\n".join(lines)


def get_customer(store: FastTrackStore, identifier: str) -> str:
    """Customer profile with environments and checklist progress.

    identifier is a customer ID ("cust-001") or part of the name.
    """
    customer = store.find_customer(identifier)
    if customer is None:
        return (
            f'Customer not found: "{identifier}". '
            "Use list_customers to see available customers."
        )

    environments = store.environments_for(customer.id)
    checklist = store.checklist_for(customer.id)

    def count(status: str) -> int:
        return sum(1 for item in checklist if item.status == status)

    if environments:
        env_list = "\n".join(
            f"  - {e.name} ({e.type}) — v{e.version} — {e.status}" for e in environments
        )
    else:
        env_list = "  No environments configured"

    detail = f"""## {customer.name}

| Field | Value |
|-------|-------|
| ID | {customer.id} |
| Industry | {customer.industry} |
| Region | {customer.region} |
| Engagement | {customer.engagement_type} |
| Status | {customer.status} |
| Go-Live Date | {customer.go_live_date or "TBD"} |
| Architect | {customer.assigned_architect or "Unassigned"} |
| Modules | {", ".join(customer.d365_modules)} |

### Environments
{env_list}

### Implementation Progress
- Total items: {len(checklist)}
- Completed: {count("Completed")}
- In Progress: {count("In Progress")}
- Not Started: {count("Not Started")}
- Blocked: {count("Blocked")}

"""
    if customer.notes:
        detail += f"### Notes\n{customer.notes}"
    return detail


def add_customer(
    store: FastTrackStore,
    name: str,
    industry: str,
    region: str,
    engagement_type: str,
    d365_modules: str,
    go_live_date: Optional[str] = None,
    assigned_architect: Optional[str] = None,
) -> str:
    """d365_modules is a comma-separated list."""
    customer = store.add_customer(
        name=name,
        industry=industry,
        region=region,
        engagement_type=engagement_type,
        d365_modules=[m.strip() for m in d365_modules.split(",")],
        go_live_date=go_live_date,
        assigned_architect=assigned_architect,
    )
    return (
        "Customer added successfully.\n\n"
        f"**ID:** {customer.id}\n"
        f"**Name:** {customer.name}\n"
        f"**Status:** {customer.status}\n"
        f"**Modules:** {', '.join(customer.d365_modules)}"
    )


def update_customer_status(
    store: FastTrackStore,
    customer_id: str,
    status: str,
    notes: Optional[str] = None,
) -> str:
    updated = store.update_customer_status(customer_id, status, notes)
    if updated is None:
        return f"Customer not found: {customer_id}"

    customer, previous = updated
    text = f"Customer **{customer.name}** status updated: {previous} → {status}"
    if notes:
        text += f"\nNotes: {notes}"
    return text
