"""
In-memory entity store for risks and documents, mirrored to a key-value
backend on demand.

All edits go through typed field updates. Factor and probability updates
are the only way impact and level change, and they always recompute both.
"""

import copy
import json
import logging
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from grc_dashboard import scoring
from grc_dashboard.db import DOCUMENTS_KEY, RISKS_KEY, KeyValueStore
from grc_dashboard.errors import InvalidFieldValue, StorageWriteError
from grc_dashboard.models import (
    Document,
    DocumentStatus,
    DocumentType,
    Risk,
    Unit,
)
from grc_dashboard.seed import SEED_DOCUMENTS, SEED_RISKS

logger = logging.getLogger(__name__)


class RiskField(str, Enum):
    CODE = "code"
    TITLE = "title"
    CATEGORY = "category"
    UNIT = "unit"
    OWNER = "owner"
    FACTOR_MANAGEMENT = "factor_management"
    FACTOR_REGULATION = "factor_regulation"
    FACTOR_FUNCTIONALITY = "factor_functionality"
    FACTOR_DATA_PROTECTION = "factor_data_protection"
    FACTOR_CUSTOMER = "factor_customer"
    PROBABILITY = "probability"


SCORING_FIELDS = frozenset({
    RiskField.FACTOR_MANAGEMENT,
    RiskField.FACTOR_REGULATION,
    RiskField.FACTOR_FUNCTIONALITY,
    RiskField.FACTOR_DATA_PROTECTION,
    RiskField.FACTOR_CUSTOMER,
    RiskField.PROBABILITY,
})


class DocumentField(str, Enum):
    TITLE = "title"
    TYPE = "type"
    UNIT = "unit"
    STATUS = "status"
    LAST_UPDATED = "last_updated"
    DESCRIPTION = "description"


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"


def _text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidFieldValue(field, value, "expected text")
    return value


def _enum(enum_cls, field: str, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidFieldValue(field, value, f"expected one of {allowed}") from None


def _iso_date(field: str, value: Any) -> str:
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(_text(field, value)).isoformat()
    except ValueError:
        raise InvalidFieldValue(field, value, "expected an ISO date (YYYY-MM-DD)") from None


def _coerce_field(enum_cls, field):
    try:
        return enum_cls(field)
    except ValueError:
        raise InvalidFieldValue("field", field, f"unknown {enum_cls.__name__}") from None


def rescore(risk: Risk) -> Risk:
    """Recompute the derived impact and level from factors and probability."""
    risk.impact = scoring.derive_impact(*risk.factors)
    risk.level = scoring.risk_level(risk.probability, risk.impact).level
    return risk


def build_risk(data: Dict[str, Any]) -> Risk:
    """Build a risk from its stored form, validating the scored fields and rescoring it."""
    risk = Risk.from_dict(data)
    for field in SCORING_FIELDS:
        setattr(risk, field.value, scoring.validate_score(field.value, getattr(risk, field.value)))
    return rescore(risk)


class EntityStore:
    """Owns the risk and document collections for one session."""

    def __init__(self, storage: KeyValueStore,
                 risk_seed: Optional[List[Dict[str, Any]]] = None,
                 document_seed: Optional[List[Dict[str, Any]]] = None):
        self.storage = storage
        self.risk_seed = SEED_RISKS if risk_seed is None else risk_seed
        self.document_seed = SEED_DOCUMENTS if document_seed is None else document_seed
        self._risks: List[Risk] = []
        self._documents: List[Document] = []
        self.dirty = False
        self.save_status = SaveStatus.IDLE

    @classmethod
    def open(cls, storage: KeyValueStore, **kwargs) -> "EntityStore":
        store = cls(storage, **kwargs)
        store.load()
        return store

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def risks(self) -> List[Risk]:
        return list(self._risks)

    @property
    def documents(self) -> List[Document]:
        return list(self._documents)

    def get_risk(self, risk_id: str) -> Optional[Risk]:
        for risk in self._risks:
            if risk.id == risk_id:
                return risk
        return None

    def get_document(self, document_id: str) -> Optional[Document]:
        for doc in self._documents:
            if doc.id == document_id:
                return doc
        return None

    def snapshot(self):
        """Deep copies of both collections, safe to hand to collaborators."""
        return copy.deepcopy(self._risks), copy.deepcopy(self._documents)

    # ------------------------------------------------------------------
    # Risks
    # ------------------------------------------------------------------
    def update_risk_field(self, risk_id: str, field, value) -> Optional[Risk]:
        """Set one field on a risk; returns the record, or None if the id is unknown."""
        field = _coerce_field(RiskField, field)
        risk = self.get_risk(risk_id)
        if risk is None:
            logger.debug("update_risk_field: no risk with id %s", risk_id)
            return None

        if field in SCORING_FIELDS:
            setattr(risk, field.value, scoring.validate_score(field.value, value))
            rescore(risk)
        elif field is RiskField.UNIT:
            risk.unit = _enum(Unit, field.value, value)
        else:
            setattr(risk, field.value, _text(field.value, value))

        self._mark_dirty()
        return risk

    def add_risk(self) -> Risk:
        risk = Risk(
            id=f"new-{uuid.uuid4().hex}",
            code="NOVO-00",
            title="Novo Risco",
            category="Operational",
            unit=Unit.SEGURADORA,
            owner="Responsável",
        )
        rescore(risk)
        self._risks.append(risk)
        self._mark_dirty()
        return risk

    def remove_risk(self, risk_id: str) -> bool:
        remaining = [r for r in self._risks if r.id != risk_id]
        if len(remaining) == len(self._risks):
            return False
        self._risks = remaining
        self._mark_dirty()
        return True

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------
    def update_document_field(self, document_id: str, field, value) -> Optional[Document]:
        field = _coerce_field(DocumentField, field)
        doc = self.get_document(document_id)
        if doc is None:
            logger.debug("update_document_field: no document with id %s", document_id)
            return None

        if field is DocumentField.TYPE:
            doc.type = _enum(DocumentType, field.value, value)
        elif field is DocumentField.UNIT:
            doc.unit = _enum(Unit, field.value, value)
        elif field is DocumentField.STATUS:
            doc.status = _enum(DocumentStatus, field.value, value)
        elif field is DocumentField.LAST_UPDATED:
            doc.last_updated = _iso_date(field.value, value)
        else:
            setattr(doc, field.value, _text(field.value, value))

        self._mark_dirty()
        return doc

    def add_document(self) -> Document:
        doc = Document(
            id=f"new-doc-{uuid.uuid4().hex}",
            title="Novo Documento",
            type=DocumentType.POLICY,
            unit=Unit.SEGURADORA,
            status=DocumentStatus.DRAFT,
            last_updated=date.today().isoformat(),
            description="",
        )
        self._documents.append(doc)
        self._mark_dirty()
        return doc

    def remove_document(self, document_id: str) -> bool:
        remaining = [d for d in self._documents if d.id != document_id]
        if len(remaining) == len(self._documents):
            return False
        self._documents = remaining
        self._mark_dirty()
        return True

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def persist(self) -> None:
        """Write both collections to storage.

        Raises StorageWriteError if the backend fails; the store stays dirty
        so the save can be retried.
        """
        self.save_status = SaveStatus.SAVING
        try:
            self.storage.set(RISKS_KEY, json.dumps([r.to_dict() for r in self._risks], ensure_ascii=False))
            self.storage.set(DOCUMENTS_KEY, json.dumps([d.to_dict() for d in self._documents], ensure_ascii=False))
        except Exception as exc:
            logger.error("Failed to save data to storage: %s", exc)
            self.save_status = SaveStatus.IDLE
            raise StorageWriteError("Erro ao salvar dados. Verifique o armazenamento.") from exc

        self.dirty = False
        self.save_status = SaveStatus.SAVED
        logger.info("Saved %d risks and %d documents", len(self._risks), len(self._documents))

    def load(self) -> None:
        self._risks = self._load_collection(RISKS_KEY, build_risk, self.risk_seed)
        self._documents = self._load_collection(DOCUMENTS_KEY, Document.from_dict, self.document_seed)
        self.dirty = False
        self.save_status = SaveStatus.IDLE

    def _load_collection(self, key: str, factory: Callable[[Dict[str, Any]], Any],
                         seed: List[Dict[str, Any]]) -> list:
        try:
            raw = self.storage.get(key)
            if raw is not None:
                items = json.loads(raw)
                if not isinstance(items, list):
                    raise ValueError(f"expected a JSON array, got {type(items).__name__}")
                return [factory(item) for item in items]
            logger.info("No stored data under %s, using seed data", key)
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.warning("Could not load %s, falling back to seed data: %s", key, exc)
        return [factory(copy.deepcopy(item)) for item in seed]

    def _mark_dirty(self) -> None:
        self.dirty = True
        self.save_status = SaveStatus.IDLE
