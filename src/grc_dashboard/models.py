"""
models.py

Data models for the GRC dashboard: risks scored on a 5x5 probability/impact
matrix and the normative documents (policies, norms, manuals) that govern
them.
"""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Union

ALL = "All"


class Unit(str, Enum):
    """Business units that own risks and documents."""
    SEGURADORA = "Seguradora"
    CICLOS_PAY = "Ciclos Pay"


UnitSelector = Union[str, Unit]


class DocumentType(str, Enum):
    POLICY = "Policy"
    NORM = "Norm"
    MANUAL = "Manual"


class DocumentStatus(str, Enum):
    PUBLISHED = "Published"
    DRAFT = "Draft"
    REVIEW = "Review"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    DocumentStatus.PUBLISHED: "Published",
    DocumentStatus.DRAFT: "Draft",
    DocumentStatus.REVIEW: "In Review",
}


class RiskLevel(str, Enum):
    """Five-tier risk classification, ordered from lowest to highest."""
    SMALL = "Small"
    MODERATE = "Moderate"
    HIGH = "High"
    LARGE = "Large"
    CRITICAL = "Critical"


LEVEL_CODES = {
    RiskLevel.SMALL: "RP",
    RiskLevel.MODERATE: "RM",
    RiskLevel.HIGH: "RA",
    RiskLevel.LARGE: "RG",
    RiskLevel.CRITICAL: "RC",
}

RISK_CATEGORIES = [
    "Operational",
    "Legal / Regulatory",
    "Technological",
    "Financial",
    "Regulatory",
]

FACTOR_FIELDS = (
    "factor_management",
    "factor_regulation",
    "factor_functionality",
    "factor_data_protection",
    "factor_customer",
)


@dataclass
class Risk:
    """One identified organizational risk.

    ``impact`` and ``level`` are derived from the five factors and the
    probability; they are only ever written by the scoring path in the
    entity store.
    """
    id: str
    code: str
    title: str
    category: str
    unit: Unit
    owner: str
    factor_management: int = 1
    factor_regulation: int = 1
    factor_functionality: int = 1
    factor_data_protection: int = 1
    factor_customer: int = 1
    probability: int = 1
    impact: float = 1.0
    level: RiskLevel = RiskLevel.SMALL

    @property
    def factors(self) -> tuple:
        return tuple(getattr(self, name) for name in FACTOR_FIELDS)

    @property
    def level_code(self) -> str:
        return LEVEL_CODES[self.level]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["unit"] = self.unit.value
        data["level"] = self.level.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Risk":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["unit"] = Unit(values["unit"])
        values["level"] = RiskLevel(values.get("level", RiskLevel.SMALL.value))
        values["impact"] = float(values.get("impact", 1.0))
        return cls(**values)


@dataclass
class Document:
    """One normative artifact (policy, norm or manual)."""
    id: str
    title: str
    type: DocumentType
    unit: Unit
    status: DocumentStatus
    last_updated: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["unit"] = self.unit.value
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["type"] = DocumentType(values["type"])
        values["unit"] = Unit(values["unit"])
        values["status"] = DocumentStatus(values["status"])
        return cls(**values)
