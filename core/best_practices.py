# =============================================================================
# core/best_practices.py  —  Best-practices knowledge base search
# =============================================================================

from typing import Optional

from core.models import BestPractice
from core.store import FastTrackStore


def _render_practice(bp: BestPractice) -> str:
    return (
        f"### {bp.title} ({bp.id})\n"
        f"**Module:** {bp.module} | **Category:** {bp.category} | **Severity:** {bp.severity}\n\n"
        f"{bp.description}\n\n"
        f"**Recommendation:** {bp.recommendation}\n\n"
        f"**Tags:** {', '.join(bp.tags)}"
    )


def search_best_practices(
    store: FastTrackStore,
    query: Optional[str] = None,
    module: Optional[str] = None,
    severity: Optional[str] = None,
) -> str:
    results = store.search_best_practices(query=query, module=module, severity=severity)
    if not results:
        return "No best practices found matching your criteria. Try broadening your search."

    body = "\n\n---\n\n".join(_render_practice(bp) for bp in results)
    return f"## FastTrack Best Practices ({len(results)} results)\n\n{body}"
