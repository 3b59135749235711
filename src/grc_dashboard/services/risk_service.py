"""
Risk Service Module

Filtering and aggregation over the risk and document collections. Every
function here is pure: inputs are never mutated and input order is kept.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Union

from grc_dashboard.models import (
    ALL,
    Document,
    DocumentStatus,
    DocumentType,
    Risk,
    RiskLevel,
    STATUS_LABELS,
    UnitSelector,
)
from grc_dashboard.scoring import risk_score, round_half_up

CRITICAL_OR_ABOVE = frozenset({RiskLevel.CRITICAL, RiskLevel.HIGH, RiskLevel.LARGE})

LEGAL_REGULATORY_BUCKET = "Legal / Regulatory"

# Ordered buckets for the category chart; Legal / Regulatory matches by substring.
CATEGORY_BUCKETS = [
    "Operational",
    LEGAL_REGULATORY_BUCKET,
    "Technological",
    "Financial",
    "Regulatory",
]


@dataclass
class DashboardSummary:
    critical_risks: int = 0
    active_policies: int = 0
    norms: int = 0
    manuals: int = 0
    avg_risk_score: float = 0.0
    risks_by_category: Dict[str, int] = field(default_factory=dict)
    documents_by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "critical_risks": self.critical_risks,
            "active_policies": self.active_policies,
            "norms": self.norms,
            "manuals": self.manuals,
            "avg_risk_score": self.avg_risk_score,
            "risks_by_category": dict(self.risks_by_category),
            "documents_by_type": dict(self.documents_by_type),
        }


def unit_matches(record: Union[Risk, Document], unit: UnitSelector) -> bool:
    if unit == ALL:
        return True
    return record.unit == unit


def _status_matches(doc: Document, status) -> bool:
    if status == ALL:
        return True
    if doc.status == status:
        return True
    return STATUS_LABELS[doc.status] == status


def filter_risks(risks: Iterable[Risk], unit: UnitSelector = ALL,
                 level: Union[str, RiskLevel] = ALL) -> List[Risk]:
    """Risks owned by ``unit`` whose level equals ``level`` ("All" disables either filter)."""
    return [
        r for r in risks
        if unit_matches(r, unit) and (level == ALL or r.level == level)
    ]


def filter_documents(documents: Iterable[Document], unit: UnitSelector = ALL,
                     status: Union[str, DocumentStatus] = ALL) -> List[Document]:
    """Documents owned by ``unit`` with the given status.

    ``status`` may be a DocumentStatus, its stored value, or its display
    label ("In Review" for Review).
    """
    return [d for d in documents if unit_matches(d, unit) and _status_matches(d, status)]


def _in_bucket(category: str, bucket: str) -> bool:
    if bucket == LEGAL_REGULATORY_BUCKET:
        return "Legal" in category or "Regulatory" in category
    return category == bucket


def category_histogram(risks: Iterable[Risk]) -> Dict[str, int]:
    risks = list(risks)
    counts = {}
    for bucket in CATEGORY_BUCKETS:
        count = sum(1 for r in risks if _in_bucket(r.category, bucket))
        if count > 0:
            counts[bucket] = count
    return counts


def count_active_policies(documents: Iterable[Document]) -> int:
    return sum(
        1 for d in documents
        if d.type == DocumentType.POLICY and d.status == DocumentStatus.PUBLISHED
    )


def count_by_type(documents: Iterable[Document], doc_type: DocumentType) -> int:
    return sum(1 for d in documents if d.type == doc_type)


def document_type_histogram(documents: Iterable[Document]) -> Dict[str, int]:
    """Chart data for the document distribution; Policy counts published policies only."""
    documents = list(documents)
    return {
        DocumentType.MANUAL.value: count_by_type(documents, DocumentType.MANUAL),
        DocumentType.NORM.value: count_by_type(documents, DocumentType.NORM),
        DocumentType.POLICY.value: count_active_policies(documents),
    }


def average_risk_score(risks: Iterable[Risk]) -> float:
    scores = [risk_score(r.probability, r.impact) for r in risks]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def aggregate(risks: Iterable[Risk], documents: Iterable[Document]) -> DashboardSummary:
    """KPIs and chart data for already-filtered collections."""
    risks = list(risks)
    documents = list(documents)
    return DashboardSummary(
        critical_risks=sum(1 for r in risks if r.level in CRITICAL_OR_ABOVE),
        active_policies=count_active_policies(documents),
        norms=count_by_type(documents, DocumentType.NORM),
        manuals=count_by_type(documents, DocumentType.MANUAL),
        avg_risk_score=average_risk_score(risks),
        risks_by_category=category_histogram(risks),
        documents_by_type=document_type_histogram(documents),
    )


def matrix_cell(risks: Iterable[Risk], probability: int, impact: int) -> List[Risk]:
    """Risks plotted in one matrix cell, located by rounded probability and impact."""
    return [
        r for r in risks
        if round_half_up(r.probability) == probability and round_half_up(r.impact) == impact
    ]
