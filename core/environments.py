# =============================================================================
# core/environments.py  —  Environment tools + readiness scoring
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Lists and adds D365 environments, and scores a customer's environment
#   landscape for go-live readiness.
#
# READINESS SCORE (starts at 100):
#   no Production environment             -30   CRITICAL
#   no UAT environment                    -20   HIGH
#   no Sandbox environment                -10   MEDIUM
#   more than one distinct version        -15   WARNING
#   Production and UAT versions differ    -10   WARNING
#   decommissioned environments             0   INFO (count only)
#
#   Labels: >= 90 Excellent, >= 70 Good, >= 50 Needs Attention,
#   otherwise Critical Issues.  The score shown never goes below 0.
# =============================================================================

from dataclasses import dataclass, field
from typing import Optional

from core.models import Environment
from core.store import FastTrackStore


@dataclass
class ReadinessReport:
    score: int
    label: str
    findings: list[str] = field(default_factory=list)


def score_label(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Needs Attention"
    return "Critical Issues"


def assess_readiness(environments: list[Environment]) -> ReadinessReport:
    """Run the readiness checks over one customer's environments."""
    findings: list[str] = []
    score = 100

    def first_of(env_type: str) -> Optional[Environment]:
        return next((e for e in environments if e.type == env_type), None)

    prod = first_of("Production")
    uat = first_of("UAT")

    if prod is None:
        findings.append("CRITICAL: No Production environment configured.")
        score -= 30
    if uat is None:
        findings.append("HIGH: No UAT environment configured. UAT is required before go-live.")
        score -= 20
    if first_of("Sandbox") is None:
        findings.append("MEDIUM: No Sandbox environment configured for development/testing.")
        score -= 10

    # distinct, in first-seen order
    versions = list(dict.fromkeys(e.version for e in environments))
    if len(versions) > 1:
        findings.append(
            f"WARNING: Version mismatch across environments: {', '.join(versions)}. "
            "Ensure all environments are on the same version before go-live."
        )
        score -= 15

    if prod is not None and uat is not None and prod.version != uat.version:
        findings.append(
            f"WARNING: Production (v{prod.version}) and UAT (v{uat.version}) "
            "are on different versions."
        )
        score -= 10

    decommissioned = sum(1 for e in environments if e.status == "Decommissioned")
    if decommissioned:
        findings.append(
            f"INFO: {decommissioned} decommissioned environment(s) found. "
            "Consider cleaning up LCS resources."
        )

    if not findings:
        findings.append("All environment checks passed.")

    return ReadinessReport(score=max(0, score), label=score_label(score), findings=findings)


def get_environments(store: FastTrackStore, customer_id: str) -> str:
    customer = store.get_customer(customer_id)
    if customer is None:
        return f"Customer not found: {customer_id}"

    environments = store.environments_for(customer_id)
    if not environments:
        return f"No environments configured for {customer.name} ({customer_id})."

    rows = "\n".join(
        f"| {e.name} | {e.type} | {e.region} | v{e.version} | {e.status} "
        f"| {e.lcs_project_id or 'N/A'} |"
        for e in environments
    )
    return (
        f"## Environments for {customer.name}\n\n"
        "| Name | Type | Region | Version | Status | LCS Project |\n"
        "|------|------|--------|---------|--------|-------------|\n"
        f"{rows}"
    )


def add_environment(
    store: FastTrackStore,
    customer_id: str,
    name: str,
    type: str,
    region: str,
    version: str,
    lcs_project_id: Optional[str] = None,
    url: Optional[str] = None,
) -> str:
    customer = store.get_customer(customer_id)
    if customer is None:
        return f"Customer not found: {customer_id}"

    environment = store.add_environment(
        customer_id, name, type, region, version, lcs_project_id=lcs_project_id, url=url
    )
    return (
        f"Environment added for {customer.name}.\n\n"
        f"**ID:** {environment.id}\n"
        f"**Name:** {name}\n"
        f"**Type:** {type}\n"
        f"**Version:** v{version}\n"
        f"**Region:** {region}"
    )


def validate_environment_readiness(store: FastTrackStore, customer_id: str) -> str:
    customer = store.get_customer(customer_id)
    if customer is None:
        return f"Customer not found: {customer_id}"

    environments = store.environments_for(customer_id)
    report = assess_readiness(environments)
    findings = "\n".join(f"- {f}" for f in report.findings)
    return (
        f"## Environment Readiness Report — {customer.name}\n\n"
        f"**Score:** {report.score}/100 ({report.label})\n"
        f"**Environments:** {len(environments)}\n\n"
        f"### Findings\n{findings}"
    )
