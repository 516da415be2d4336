# =============================================================================
# core/prompts.py  —  Prompt templates and the methodology document
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Holds the text the server hands to clients as MCP prompts and the
#   FastTrack methodology resource.  These are static templates with a few
#   values filled in; there is no logic here beyond string building.
# =============================================================================

from typing import Optional


def implementation_review_prompt(
    customer_name: str,
    modules: str,
    phase: str,
    concerns: Optional[str] = None,
) -> str:
    """Structured implementation-review brief for a solution architect.

    The review asks the model to pull customer data through the server's
    own tools before writing the assessment.
    """
    concerns_line = f"## Specific Concerns: {concerns}" if concerns else ""

    return f"""You are a Microsoft FastTrack Solution Architect conducting an implementation review for a Dynamics 365 Finance & Operations project.

## Customer: {customer_name}
## Modules in Scope: {modules}
## Current Phase: {phase}
{concerns_line}

Please conduct a thorough review covering:

1. **Architecture Assessment**
   - Solution design alignment with D365 best practices
   - Customization vs configuration decisions
   - Integration architecture review
   - Security model design

2. **Implementation Progress**
   - Phase-appropriate milestone completion
   - Risk identification and mitigation
   - Resource allocation and skill gaps

3. **Technical Readiness**
   - Environment setup and management
   - Data migration strategy and progress
   - Performance considerations
   - ISV solution compatibility

4. **Go-Live Readiness** (if applicable)
   - UAT completion status
   - Cutover plan readiness
   - Support model preparation
   - Training completion

5. **Recommendations**
   - Priority action items
   - Best practices to adopt
   - Risks to mitigate

Use the FastTrack MCP tools (list_customers, get_implementation_checklist, validate_environment_readiness, search_best_practices) to gather data about this customer before providing your assessment."""


def golive_readiness_prompt(
    customer_name: str,
    customer_id: str,
    planned_go_live_date: str,
) -> str:
    """Go-Live Readiness Review brief, ending in a GO / NO-GO call."""
    return f"""You are a Microsoft FastTrack Solution Architect performing the official Go-Live Readiness Review for a Dynamics 365 Finance & Operations implementation.

## Customer: {customer_name} ({customer_id})
## Planned Go-Live Date: {planned_go_live_date}

Please use the FastTrack MCP tools to gather all available data:
1. Call get_customer with identifier "{customer_id}" for customer details
2. Call get_environments with customer_id "{customer_id}" for environment info
3. Call validate_environment_readiness with customer_id "{customer_id}" for env validation
4. Call get_implementation_checklist with customer_id "{customer_id}" for progress

Then provide a comprehensive Go-Live Readiness assessment covering:

### 1. Project Readiness
- Implementation progress against plan
- Outstanding blockers or critical items
- Change management and training status

### 2. Solution Readiness
- Configuration completeness
- Customization code quality and testing
- Integration testing results
- Data migration validation

### 3. Environment Readiness
- Production environment provisioned and validated
- Version alignment across environments
- Performance benchmarks met

### 4. Operational Readiness
- Cutover plan documented and rehearsed
- Rollback procedures defined
- Hypercare support team and processes ready
- Monitoring and alerting configured

### 5. Go/No-Go Recommendation
- Clear GO or NO-GO recommendation with justification
- If NO-GO: specific items that must be resolved
- If GO: remaining risk items and mitigation plans

### Risk Rating
Assign an overall risk rating: LOW / MEDIUM / HIGH / CRITICAL"""


METHODOLOGY = """# Microsoft FastTrack Implementation Methodology

## Overview
The FastTrack for Dynamics 365 methodology guides enterprise implementations through four key phases, ensuring successful deployment of D365 Finance & Operations.

## Phases

### 1. Initiate
- Define project scope, objectives, and success criteria
- Establish governance model (roles, responsibilities, escalation)
- Conduct solution overview and architecture review
- Set up LCS project and provision environments
- Identify key stakeholders and form project team

### 2. Implement
- Conduct Fit-Gap analysis workshops for all modules
- Design solution architecture (integrations, data model, security)
- Configure and customize D365 F&O
- Develop integrations with external systems
- Plan and execute data migration strategy
- Build reports and analytics
- Conduct unit testing and system integration testing

### 3. Prepare
- Execute User Acceptance Testing (UAT)
- Conduct performance testing and optimization
- Complete end-user training
- Finalize cutover plan and rehearsal
- Submit Go-Live Readiness Review to FastTrack
- Address all critical findings from readiness review
- Final data migration rehearsal

### 4. Operate
- Execute cutover plan
- Go-Live deployment
- Hypercare support period
- Monitor system performance and user adoption
- Transition to steady-state operations
- Post-implementation review and lessons learned

## Key Deliverables
- Solution Blueprint Document
- Fit-Gap Analysis Report
- Data Migration Plan
- Integration Architecture Document
- Test Strategy and Test Plans
- Cutover Plan
- Go-Live Readiness Checklist
- Hypercare Support Plan

## FastTrack Resources
- FastTrack Solution Architecture Reviews
- Go-Live Readiness Workshops
- Performance Optimization Guidance
- Best Practices Knowledge Base
- TechTalks and Community Resources
"""
