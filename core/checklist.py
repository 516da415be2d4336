# =============================================================================
# core/checklist.py  —  Implementation checklist tools
# =============================================================================
#
# Reads and updates the per-customer FastTrack checklist.  Items are shown
# grouped by phase, in the order phases first appear, with a status marker:
#   [x] Completed   [-] In Progress   [!] Blocked   [ ] anything else
# =============================================================================

from typing import Optional

from core.models import ChecklistItem
from core.store import FastTrackStore

STATUS_MARKERS = {
    "Completed": "[x]",
    "In Progress": "[-]",
    "Blocked": "[!]",
}


def _render_item(item: ChecklistItem) -> str:
    marker = STATUS_MARKERS.get(item.status, "[ ]")
    status_line = f"  Status: {item.status}"
    if item.owner:
        status_line += f" | Owner: {item.owner}"
    if item.due_date:
        status_line += f" | Due: {item.due_date}"
    return f"- {marker} **{item.title}** ({item.id})\n  {item.description}\n{status_line}\n\n"


def get_implementation_checklist(
    store: FastTrackStore,
    customer_id: str,
    phase: Optional[str] = None,
    status: Optional[str] = None,
) -> str:
    customer = store.get_customer(customer_id)
    if customer is None:
        return f"Customer not found: {customer_id}"

    checklist = store.checklist_for(customer_id)
    if not checklist:
        return (
            f"No implementation checklist found for {customer.name}. "
            "Use add_checklist_item to create one."
        )

    if phase:
        checklist = [i for i in checklist if i.phase == phase]
    if status:
        checklist = [i for i in checklist if i.status == status]

    grouped: dict[str, list[ChecklistItem]] = {}
    for item in checklist:
        grouped.setdefault(item.phase, []).append(item)

    output = f"## Implementation Checklist — {customer.name}\n\n"
    for phase_name, items in grouped.items():
        completed = sum(1 for i in items if i.status == "Completed")
        output += f"### {phase_name} ({completed}/{len(items)} complete)\n\n"
        output += "".join(_render_item(i) for i in items)
    return output


def update_checklist_item(
    store: FastTrackStore,
    customer_id: str,
    item_id: str,
    status: str,
    notes: Optional[str] = None,
) -> str:
    if customer_id not in store.checklists:
        return f"No checklist found for customer: {customer_id}"

    updated = store.update_checklist_item(customer_id, item_id, status, notes)
    if updated is None:
        return f"Checklist item not found: {item_id}"

    item, previous = updated
    text = f"Checklist item updated.\n\n**{item.title}** ({item.id})\n{previous} → {status}"
    if notes:
        text += f"\nNotes: {notes}"
    return text


def add_checklist_item(
    store: FastTrackStore,
    customer_id: str,
    phase: str,
    category: str,
    title: str,
    description: str,
    owner: Optional[str] = None,
    due_date: Optional[str] = None,
) -> str:
    customer = store.get_customer(customer_id)
    if customer is None:
        return f"Customer not found: {customer_id}"

    item = store.add_checklist_item(
        customer_id, phase, category, title, description, owner=owner, due_date=due_date
    )
    text = (
        f"Checklist item added for {customer.name}.\n\n"
        f"**ID:** {item.id}\n**Phase:** {phase}\n**Title:** {title}"
    )
    if owner:
        text += f"\n**Owner:** {owner}"
    if due_date:
        text += f"\n**Due:** {due_date}"
    return text
