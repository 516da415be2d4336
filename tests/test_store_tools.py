from core import best_practices, checklist, customers, environments
from core.environments import assess_readiness, score_label
from core.models import ChecklistItem, Environment
from core.prompts import METHODOLOGY, golive_readiness_prompt, implementation_review_prompt
from core.store import FastTrackStore


# --- store ---
def test_seeded_store_contents(store):
    assert sorted(store.customers) == ["cust-001", "cust-002", "cust-003"]
    assert len(store.environments_for("cust-001")) == 3
    assert len(store.checklist_for("cust-001")) == 8
    assert store.checklist_for("cust-002") == []
    assert len(store.best_practices) == 7


def test_empty_store():
    empty = FastTrackStore(seed=False)
    assert empty.customers == {}
    assert empty.best_practices == []


def test_stores_do_not_share_seed_objects():
    first, second = FastTrackStore(), FastTrackStore()
    first.update_customer_status("cust-001", "Completed")
    assert second.get_customer("cust-001").status == "Active"


def test_find_customer_by_id_then_name(store):
    assert store.find_customer("cust-003").name == "Adventure Works"
    assert store.find_customer("NORTHWIND").id == "cust-002"
    assert store.find_customer("Globex") is None


# --- customers ---
def test_list_customers_all(store):
    text = customers.list_customers(store)
    assert text.startswith("## FastTrack Customers (3)\n\n- **Contoso Manufacturing** (cust-001)")
    assert "  Status: Active | Region: North America | Type: FastTrack" in text
    assert "  Architect: Ragnar Pitla" in text


def test_list_customers_filters(store):
    assert "(1)" in customers.list_customers(store, region="europe")
    assert "Northwind Traders" in customers.list_customers(store, module="commerce")
    assert "(2)" in customers.list_customers(store, module="supply chain")
    assert customers.list_customers(store, status="Completed") == (
        "No customers found matching the criteria."
    )


def test_get_customer_detail(store):
    text = customers.get_customer(store, "cust-001")
    assert text.startswith("## Contoso Manufacturing\n")
    assert "| Architect | Ragnar Pitla |" in text
    assert "  - Contoso-Prod (Production) — v10.0.39 — Active" in text
    assert "- Total items: 8" in text
    assert "- Completed: 2" in text
    assert "- In Progress: 1" in text
    assert "- Not Started: 5" in text
    assert "- Blocked: 0" in text


def test_get_customer_by_name_without_environments(store):
    text = customers.get_customer(store, "adventure")
    assert "| Architect | Unassigned |" in text
    assert "  No environments configured" in text


def test_get_customer_not_found(store):
    assert customers.get_customer(store, "Globex") == (
        'Customer not found: "Globex". Use list_customers to see available customers.'
    )


def test_add_customer(store):
    text = customers.add_customer(
        store, "Fabrikam", "Retail", "Europe", "Direct", "Finance, Commerce ", go_live_date="2027-01-01"
    )
    assert "**ID:** cust-004" in text
    assert "**Status:** Onboarding" in text
    assert "**Modules:** Finance, Commerce" in text

    added = store.get_customer("cust-004")
    assert added.d365_modules == ["Finance", "Commerce"]
    assert added.created_at == added.updated_at
    assert "(4)" in customers.list_customers(store)


def test_update_customer_status(store):
    text = customers.update_customer_status(store, "cust-002", "Active", notes="Kickoff held")
    assert text == (
        "Customer **Northwind Traders** status updated: Onboarding → Active\nNotes: Kickoff held"
    )
    assert store.get_customer("cust-002").notes == "Kickoff held"
    assert "### Notes\nKickoff held" in customers.get_customer(store, "cust-002")


def test_update_unknown_customer(store):
    assert customers.update_customer_status(store, "cust-999", "Active") == "Customer not found: cust-999"


# --- environments ---
def test_get_environments_table(store):
    text = environments.get_environments(store, "cust-001")
    assert text.startswith("## Environments for Contoso Manufacturing\n\n| Name | Type |")
    assert "| Contoso-UAT | UAT | East US | v10.0.40 | Active | N/A |" in text


def test_get_environments_empty_and_unknown(store):
    assert environments.get_environments(store, "cust-002") == (
        "No environments configured for Northwind Traders (cust-002)."
    )
    assert environments.get_environments(store, "cust-999") == "Customer not found: cust-999"


def test_add_environment(store):
    text = environments.add_environment(
        store, "cust-002", "NW-UAT", "UAT", "West Europe", "10.0.41", lcs_project_id="123"
    )
    assert "**ID:** env-004" in text
    assert "**Version:** v10.0.41" in text
    assert store.environments["env-004"].lcs_project_id == "123"
    assert environments.add_environment(store, "cust-999", "x", "UAT", "r", "1") == (
        "Customer not found: cust-999"
    )


def test_contoso_readiness_is_good(store):
    text = environments.validate_environment_readiness(store, "cust-001")
    assert text.startswith("## Environment Readiness Report — Contoso Manufacturing\n\n")
    assert "**Score:** 75/100 (Good)" in text
    assert "**Environments:** 3" in text
    assert "- WARNING: Version mismatch across environments: 10.0.40, 10.0.39." in text
    assert "Production (v10.0.39) and UAT (v10.0.40) are on different versions." in text


def test_customer_without_environments_has_critical_issues(store):
    text = environments.validate_environment_readiness(store, "cust-002")
    assert "**Score:** 40/100 (Critical Issues)" in text
    assert "- CRITICAL: No Production environment configured." in text


def _env(env_id, env_type, version="10.0.40", status="Active"):
    return Environment(env_id, "cust-x", env_id, env_type, "East US", version, status=status)


def test_complete_landscape_scores_100():
    report = assess_readiness([_env("a", "Sandbox"), _env("b", "UAT"), _env("c", "Production")])
    assert (report.score, report.label) == (100, "Excellent")
    assert report.findings == ["All environment checks passed."]


def test_decommissioned_environments_are_informational():
    report = assess_readiness([
        _env("a", "Sandbox"),
        _env("b", "UAT"),
        _env("c", "Production"),
        _env("d", "Sandbox", status="Decommissioned"),
    ])
    assert report.score == 100
    assert report.findings == [
        "INFO: 1 decommissioned environment(s) found. Consider cleaning up LCS resources."
    ]


def test_score_labels():
    assert [score_label(s) for s in (90, 89, 70, 69, 50, 49)] == [
        "Excellent",
        "Good",
        "Good",
        "Needs Attention",
        "Needs Attention",
        "Critical Issues",
    ]


# --- checklist ---
def test_checklist_grouped_by_phase(store):
    text = checklist.get_implementation_checklist(store, "cust-001")
    assert text.startswith("## Implementation Checklist — Contoso Manufacturing\n\n")
    assert "### Initiate (2/2 complete)" in text
    assert "### Implement (0/3 complete)" in text
    assert "- [x] **Define project scope and objectives** (chk-001)" in text
    assert "- [-] **Complete Fit-Gap analysis** (chk-003)" in text
    assert "- [ ] **Execute UAT** (chk-006)" in text
    assert text.index("### Initiate") < text.index("### Prepare") < text.index("### Operate")


def test_checklist_filters(store):
    text = checklist.get_implementation_checklist(store, "cust-001", phase="Prepare")
    assert "### Prepare (0/2 complete)" in text
    assert "Initiate" not in text

    text = checklist.get_implementation_checklist(store, "cust-001", status="Completed")
    assert "chk-001" in text and "chk-003" not in text


def test_render_item_with_owner_and_due_date():
    item = ChecklistItem("chk-009", "Prepare", "Cutover", "Mock cutover", "Dry run", owner="PM", due_date="2026-05-01")
    assert checklist._render_item(item) == (
        "- [ ] **Mock cutover** (chk-009)\n  Dry run\n  Status: Not Started | Owner: PM | Due: 2026-05-01\n\n"
    )


def test_checklist_missing(store):
    assert checklist.get_implementation_checklist(store, "cust-002") == (
        "No implementation checklist found for Northwind Traders. Use add_checklist_item to create one."
    )
    assert checklist.get_implementation_checklist(store, "cust-999") == "Customer not found: cust-999"


def test_update_checklist_item(store):
    text = checklist.update_checklist_item(store, "cust-001", "chk-004", "Blocked", notes="Waiting on legacy extract")
    assert text == (
        "Checklist item updated.\n\n**Define data migration strategy** (chk-004)\n"
        "Not Started → Blocked\nNotes: Waiting on legacy extract"
    )
    assert "- [!] **Define data migration strategy** (chk-004)" in checklist.get_implementation_checklist(
        store, "cust-001"
    )


def test_update_checklist_item_misses(store):
    assert checklist.update_checklist_item(store, "cust-002", "chk-001", "Completed") == (
        "No checklist found for customer: cust-002"
    )
    assert checklist.update_checklist_item(store, "cust-001", "chk-999", "Completed") == (
        "Checklist item not found: chk-999"
    )


def test_add_checklist_item_starts_a_new_checklist(store):
    text = checklist.add_checklist_item(
        store, "cust-002", "Initiate", "Governance", "Kickoff", "Run kickoff", owner="PM"
    )
    assert text == (
        "Checklist item added for Northwind Traders.\n\n"
        "**ID:** chk-001\n**Phase:** Initiate\n**Title:** Kickoff\n**Owner:** PM"
    )
    assert "### Initiate (0/1 complete)" in checklist.get_implementation_checklist(store, "cust-002")
    assert "Not Started → Completed" in checklist.update_checklist_item(
        store, "cust-002", "chk-001", "Completed"
    )


def test_add_checklist_item_ids_are_per_customer(store):
    text = checklist.add_checklist_item(store, "cust-001", "Operate", "Support", "Hypercare", "Two weeks")
    assert "**ID:** chk-009" in text
    assert checklist.add_checklist_item(store, "cust-999", "Operate", "x", "y", "z") == (
        "Customer not found: cust-999"
    )


# --- best practices ---
def test_search_by_severity(store):
    text = best_practices.search_best_practices(store, severity="Critical")
    assert text.startswith("## FastTrack Best Practices (2 results)\n\n### ")
    assert "(bp-002)" in text and "(bp-007)" in text
    assert text.count("\n\n---\n\n") == 1


def test_search_by_query_matches_text_and_tags(store):
    assert "(bp-006)" in best_practices.search_best_practices(store, query="NUMBER SEQUENCES")
    text = best_practices.search_best_practices(store, query="dmf")
    assert "(1 results)" in text and "(bp-004)" in text


def test_search_by_module(store):
    text = best_practices.search_best_practices(store, module="finance")
    assert "(2 results)" in text
    assert "**Module:** Finance | **Category:** Chart of Accounts | **Severity:** High" in text


def test_search_without_results(store):
    assert best_practices.search_best_practices(store, query="blockchain") == (
        "No best practices found matching your criteria. Try broadening your search."
    )


# --- prompts ---
def test_implementation_review_prompt():
    text = implementation_review_prompt("Contoso", "Finance, SCM", "Implement", concerns="Data volumes")
    assert "## Customer: Contoso" in text
    assert "## Current Phase: Implement" in text
    assert "## Specific Concerns: Data volumes" in text
    assert "Specific Concerns" not in implementation_review_prompt("Contoso", "Finance", "Initiate")


def test_golive_prompt_and_methodology():
    text = golive_readiness_prompt("Contoso", "cust-001", "2026-06-15")
    assert "## Customer: Contoso (cust-001)" in text
    assert "## Planned Go-Live Date: 2026-06-15" in text
    assert "FastTrack" in METHODOLOGY
