# =============================================================================
# core/store.py  —  In-memory record store (customers, environments, ...)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds the structured FastTrack data the store-backed tools read and
#   write: customers, their D365 environments, per-customer implementation
#   checklists, and the best-practices knowledge base.
#
# LIFETIME:
#   One FastTrackStore is created per server process (tools/mcp_server.py)
#   and lives until the process exits.  Nothing is persisted.  Writes are
#   last-write-wins.
#
# SAMPLE DATA:
#   A fresh store is seeded with three customers, Contoso's environments and
#   checklist, and seven best practices, so every tool has something to show.
#   Pass seed=False for an empty store.
#
# IDS:
#   New ids are "<prefix>-NNN" where NNN is the current collection size + 1
#   (customers and environments are global; checklist ids are per customer).
# =============================================================================

from typing import Optional

from core.models import (
    BestPractice,
    ChecklistItem,
    Customer,
    Environment,
    utc_timestamp,
)


def _next_id(prefix: str, size: int) -> str:
    return f"{prefix}-{size + 1:03d}"


class FastTrackStore:
    """Customers, environments, checklists and best practices, in memory."""

    def __init__(self, seed: bool = True) -> None:
        self.customers: dict[str, Customer] = {}
        self.environments: dict[str, Environment] = {}
        self.checklists: dict[str, list[ChecklistItem]] = {}
        self.best_practices: list[BestPractice] = []
        if seed:
            self._seed()

    # -------------------------------------------------------------------------
    # Customers
    # -------------------------------------------------------------------------
    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.customers.get(customer_id)

    def find_customer(self, identifier: str) -> Optional[Customer]:
        """Look up by exact ID, then by case-insensitive name substring."""
        customer = self.customers.get(identifier)
        if customer is not None:
            return customer
        needle = identifier.lower()
        return next((c for c in self.customers.values() if needle in c.name.lower()), None)

    def list_customers(
        self,
        status: Optional[str] = None,
        region: Optional[str] = None,
        module: Optional[str] = None,
    ) -> list[Customer]:
        """Filter customers.  region and module are case-insensitive substrings."""
        customers = list(self.customers.values())
        if status:
            customers = [c for c in customers if c.status == status]
        if region:
            customers = [c for c in customers if region.lower() in c.region.lower()]
        if module:
            customers = [
                c for c in customers
                if any(module.lower() in m.lower() for m in c.d365_modules)
            ]
        return customers

    def add_customer(
        self,
        name: str,
        industry: str,
        region: str,
        engagement_type: str,
        d365_modules: list[str],
        go_live_date: Optional[str] = None,
        assigned_architect: Optional[str] = None,
    ) -> Customer:
        """New customers always start in "Onboarding"."""
        now = utc_timestamp()
        customer = Customer(
            id=_next_id("cust", len(self.customers)),
            name=name,
            industry=industry,
            region=region,
            engagement_type=engagement_type,
            status="Onboarding",
            d365_modules=d365_modules,
            go_live_date=go_live_date,
            assigned_architect=assigned_architect,
            created_at=now,
            updated_at=now,
        )
        self.customers[customer.id] = customer
        return customer

    def update_customer_status(
        self,
        customer_id: str,
        status: str,
        notes: Optional[str] = None,
    ) -> Optional[tuple[Customer, str]]:
        """Returns (customer, previous status), or None if the id is unknown."""
        customer = self.customers.get(customer_id)
        if customer is None:
            return None
        previous = customer.status
        customer.status = status
        customer.updated_at = utc_timestamp()
        if notes:
            customer.notes = notes
        return customer, previous

    # -------------------------------------------------------------------------
    # Environments
    # -------------------------------------------------------------------------
    def environments_for(self, customer_id: str) -> list[Environment]:
        return [e for e in self.environments.values() if e.customer_id == customer_id]

    def add_environment(
        self,
        customer_id: str,
        name: str,
        type: str,
        region: str,
        version: str,
        lcs_project_id: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Environment:
        environment = Environment(
            id=_next_id("env", len(self.environments)),
            customer_id=customer_id,
            name=name,
            type=type,
            region=region,
            version=version,
            lcs_project_id=lcs_project_id,
            url=url,
        )
        self.environments[environment.id] = environment
        return environment

    # -------------------------------------------------------------------------
    # Checklists
    # -------------------------------------------------------------------------
    def checklist_for(self, customer_id: str) -> list[ChecklistItem]:
        return self.checklists.get(customer_id, [])

    def add_checklist_item(
        self,
        customer_id: str,
        phase: str,
        category: str,
        title: str,
        description: str,
        owner: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> ChecklistItem:
        checklist = self.checklists.setdefault(customer_id, [])
        item = ChecklistItem(
            id=_next_id("chk", len(checklist)),
            phase=phase,
            category=category,
            title=title,
            description=description,
            owner=owner,
            due_date=due_date,
        )
        checklist.append(item)
        return item

    def update_checklist_item(
        self,
        customer_id: str,
        item_id: str,
        status: str,
        notes: Optional[str] = None,
    ) -> Optional[tuple[ChecklistItem, str]]:
        """Returns (item, previous status), or None if the item is unknown."""
        item = next((i for i in self.checklists.get(customer_id, []) if i.id == item_id), None)
        if item is None:
            return None
        previous = item.status
        item.status = status
        if notes:
            item.notes = notes
        return item, previous

    # -------------------------------------------------------------------------
    # Best practices
    # -------------------------------------------------------------------------
    def search_best_practices(
        self,
        query: Optional[str] = None,
        module: Optional[str] = None,
        severity: Optional[str] = None,
    ) -> list[BestPractice]:
        """Filter by module substring, exact severity, then free text.

        The free-text query matches title, description, recommendation or
        any tag, case-insensitively.
        """
        results = list(self.best_practices)
        if module:
            results = [bp for bp in results if module.lower() in bp.module.lower()]
        if severity:
            results = [bp for bp in results if bp.severity == severity]
        if query:
            q = query.lower()
            results = [
                bp for bp in results
                if q in bp.title.lower()
                or q in bp.description.lower()
                or q in bp.recommendation.lower()
                or any(q in tag.lower() for tag in bp.tags)
            ]
        return results

    # -------------------------------------------------------------------------
    # Sample data
    # -------------------------------------------------------------------------
    def _seed(self) -> None:
        for customer in _sample_customers():
            self.customers[customer.id] = customer
        for environment in _sample_environments():
            self.environments[environment.id] = environment
        self.checklists["cust-001"] = _contoso_checklist()
        self.best_practices = _sample_best_practices()


# -----------------------------------------------------------------------------
# Seed data factories (fresh objects per store, so tests can mutate freely)
# -----------------------------------------------------------------------------
def _sample_customers() -> list[Customer]:
    return [
        Customer(
            id="cust-001",
            name="Contoso Manufacturing",
            industry="Manufacturing",
            region="North America",
            engagement_type="FastTrack",
            status="Active",
            d365_modules=["Finance", "Supply Chain Management", "Production Control"],
            go_live_date="2026-06-15",
            assigned_architect="Ragnar Pitla",
            created_at="2025-11-01T00:00:00Z",
            updated_at="2026-02-01T00:00:00Z",
        ),
        Customer(
            id="cust-002",
            name="Northwind Traders",
            industry="Retail",
            region="Europe",
            engagement_type="FastTrack",
            status="Onboarding",
            d365_modules=["Finance", "Commerce", "Warehouse Management"],
            go_live_date="2026-09-01",
            assigned_architect="Ragnar Pitla",
            created_at="2026-01-15T00:00:00Z",
            updated_at="2026-02-05T00:00:00Z",
        ),
        Customer(
            id="cust-003",
            name="Adventure Works",
            industry="Distribution",
            region="Asia Pacific",
            engagement_type="Unified",
            status="Go-Live",
            d365_modules=["Finance", "Supply Chain Management", "Transportation Management"],
            go_live_date="2026-03-01",
            created_at="2025-06-01T00:00:00Z",
            updated_at="2026-02-08T00:00:00Z",
        ),
    ]


def _sample_environments() -> list[Environment]:
    return [
        Environment(
            id="env-001",
            customer_id="cust-001",
            name="Contoso-Sandbox-T1",
            type="Sandbox",
            region="East US",
            version="10.0.40",
        ),
        Environment(
            id="env-002",
            customer_id="cust-001",
            name="Contoso-UAT",
            type="UAT",
            region="East US",
            version="10.0.40",
        ),
        Environment(
            id="env-003",
            customer_id="cust-001",
            name="Contoso-Prod",
            type="Production",
            region="East US",
            version="10.0.39",
        ),
    ]


def _contoso_checklist() -> list[ChecklistItem]:
    return [
        ChecklistItem(
            id="chk-001",
            phase="Initiate",
            category="Project Governance",
            title="Define project scope and objectives",
            description=(
                "Document the business objectives, project scope, and success "
                "criteria for the D365 F&O implementation."
            ),
            status="Completed",
            owner="Project Manager",
        ),
        ChecklistItem(
            id="chk-002",
            phase="Initiate",
            category="Project Governance",
            title="Establish governance model",
            description=(
                "Define roles, responsibilities, escalation paths, and "
                "decision-making processes."
            ),
            status="Completed",
            owner="Project Manager",
        ),
        ChecklistItem(
            id="chk-003",
            phase="Implement",
            category="Solution Design",
            title="Complete Fit-Gap analysis",
            description=(
                "Conduct fit-gap workshops for all in-scope modules to identify "
                "customization needs."
            ),
            status="In Progress",
            owner="Solution Architect",
        ),
        ChecklistItem(
            id="chk-004",
            phase="Implement",
            category="Data Migration",
            title="Define data migration strategy",
            description=(
                "Plan data migration approach including entity mapping, data "
                "cleansing, and validation."
            ),
            owner="Data Architect",
        ),
        ChecklistItem(
            id="chk-005",
            phase="Implement",
            category="Integration",
            title="Design integration architecture",
            description=(
                "Define integration patterns, middleware, and data flows for all "
                "external systems."
            ),
            owner="Integration Architect",
        ),
        ChecklistItem(
            id="chk-006",
            phase="Prepare",
            category="Testing",
            title="Execute UAT",
            description=(
                "Run user acceptance testing with business stakeholders across all "
                "configured processes."
            ),
            owner="Test Lead",
        ),
        ChecklistItem(
            id="chk-007",
            phase="Prepare",
            category="Cutover",
            title="Create cutover plan",
            description="Define step-by-step cutover plan including rollback procedures.",
            owner="Project Manager",
        ),
        ChecklistItem(
            id="chk-008",
            phase="Operate",
            category="Support",
            title="Establish hypercare support model",
            description=(
                "Set up post-go-live support structure with escalation matrix and SLAs."
            ),
            owner="Support Lead",
        ),
    ]


def _sample_best_practices() -> list[BestPractice]:
    return [
        BestPractice(
            id="bp-001",
            module="Finance",
            category="Chart of Accounts",
            title="Keep the chart of accounts flat",
            description=(
                "Avoid deeply nested account structures. Use financial dimensions for "
                "reporting granularity instead of creating separate main accounts."
            ),
            recommendation=(
                "Limit main accounts to 4-5 digit codes. Use financial dimensions "
                "(Business Unit, Department, Cost Center) for reporting segmentation."
            ),
            severity="High",
            tags=["finance", "chart-of-accounts", "configuration"],
        ),
        BestPractice(
            id="bp-002",
            module="Supply Chain Management",
            category="Warehouse Management",
            title="Plan warehouse configuration before go-live",
            description=(
                "Warehouse management module configurations are difficult to change "
                "post-go-live. Plan thoroughly."
            ),
            recommendation=(
                "Complete all warehouse zone, location profile, and work template "
                "configurations during the Implement phase. Test with realistic volumes."
            ),
            severity="Critical",
            tags=["scm", "warehouse", "configuration"],
        ),
        BestPractice(
            id="bp-003",
            module="General",
            category="Performance",
            title="Optimize batch job scheduling",
            description=(
                "Poorly scheduled batch jobs can cause performance degradation and "
                "timeout issues."
            ),
            recommendation=(
                "Stagger batch jobs, use batch groups to distribute load, and monitor "
                "batch job execution times regularly."
            ),
            severity="High",
            tags=["performance", "batch-jobs", "operations"],
        ),
        BestPractice(
            id="bp-004",
            module="General",
            category="Data Migration",
            title="Use data entities for migration",
            description=(
                "Leverage standard D365 F&O data entities through the Data Management "
                "Framework for data import/export."
            ),
            recommendation=(
                "Identify all required data entities early. Run test migrations in "
                "sandbox. Validate data integrity with reconciliation reports."
            ),
            severity="High",
            tags=["data-migration", "data-entities", "dmf"],
        ),
        BestPractice(
            id="bp-005",
            module="General",
            category="Integration",
            title="Use OData and Dataverse virtual entities for integrations",
            description=(
                "Prefer standard integration patterns over custom APIs to reduce "
                "maintenance burden."
            ),
            recommendation=(
                "Use OData endpoints for synchronous calls, Dataverse virtual entities "
                "for Power Platform integration, and Business Events for event-driven "
                "patterns."
            ),
            severity="Medium",
            tags=["integration", "odata", "dataverse", "business-events"],
        ),
        BestPractice(
            id="bp-006",
            module="Finance",
            category="Number Sequences",
            title="Plan number sequences before configuration",
            description=(
                "Number sequences affect voucher numbers, document numbers, and master "
                "data IDs across all modules."
            ),
            recommendation=(
                "Document all number sequence requirements across modules. Use "
                "continuous sequences only when legally required. Prefer non-continuous "
                "for performance."
            ),
            severity="Medium",
            tags=["finance", "number-sequences", "configuration"],
        ),
        BestPractice(
            id="bp-007",
            module="General",
            category="Go-Live",
            title="Complete Go-Live Readiness Review",
            description=(
                "The FastTrack Go-Live Readiness Review ensures all critical areas are "
                "validated before production cutover."
            ),
            recommendation=(
                "Submit the Go-Live Readiness checklist at least 4 weeks before planned "
                "go-live. Address all critical findings before proceeding."
            ),
            severity="Critical",
            tags=["go-live", "readiness", "fasttrack"],
        ),
    ]
