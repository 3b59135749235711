# HTTP routes for the GRC dashboard, operating on the session's EntityStore.

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from grc_dashboard.ai_helper import AnalysisRunner
from grc_dashboard.errors import InvalidFieldValue, StorageWriteError
from grc_dashboard.helpers import build_matrix
from grc_dashboard.models import ALL
from grc_dashboard.services.risk_service import aggregate, filter_documents, filter_risks
from grc_dashboard.store import EntityStore

router = APIRouter()


class FieldUpdate(BaseModel):
    field: str
    value: Any


class AnalysisRequest(BaseModel):
    unit: str = ALL
    model: Optional[str] = None


def get_store() -> EntityStore:
    """Overridden by the application factory with the real store."""
    raise HTTPException(status_code=503, detail="Store not configured")


def get_runner() -> AnalysisRunner:
    raise HTTPException(status_code=503, detail="Analysis runner not configured")


@router.get("/risks")
async def get_risks(unit: str = ALL, level: str = ALL, store: EntityStore = Depends(get_store)) -> List[dict]:
    return [r.to_dict() for r in filter_risks(store.risks, unit, level)]


@router.post("/risks", status_code=201)
async def create_risk(store: EntityStore = Depends(get_store)) -> dict:
    return store.add_risk().to_dict()


@router.patch("/risks/{risk_id}")
async def update_risk(risk_id: str, update: FieldUpdate, store: EntityStore = Depends(get_store)) -> dict:
    try:
        risk = store.update_risk_field(risk_id, update.field, update.value)
    except InvalidFieldValue as e:
        raise HTTPException(status_code=422, detail=str(e))
    if risk is None:
        raise HTTPException(status_code=404, detail=f"Risk {risk_id} not found")
    return risk.to_dict()


@router.delete("/risks/{risk_id}", status_code=204)
async def delete_risk(risk_id: str, store: EntityStore = Depends(get_store)) -> Response:
    store.remove_risk(risk_id)
    return Response(status_code=204)


@router.get("/documents")
async def get_documents(unit: str = ALL, status: str = ALL, store: EntityStore = Depends(get_store)) -> List[dict]:
    return [d.to_dict() for d in filter_documents(store.documents, unit, status)]


@router.post("/documents", status_code=201)
async def create_document(store: EntityStore = Depends(get_store)) -> dict:
    return store.add_document().to_dict()


@router.patch("/documents/{document_id}")
async def update_document(document_id: str, update: FieldUpdate, store: EntityStore = Depends(get_store)) -> dict:
    try:
        doc = store.update_document_field(document_id, update.field, update.value)
    except InvalidFieldValue as e:
        raise HTTPException(status_code=422, detail=str(e))
    if doc is None:
        raise HTTPException(status_code=404, detail=f"Document {document_id} not found")
    return doc.to_dict()


@router.delete("/documents/{document_id}", status_code=204)
async def delete_document(document_id: str, store: EntityStore = Depends(get_store)) -> Response:
    store.remove_document(document_id)
    return Response(status_code=204)


@router.get("/summary")
async def get_summary(unit: str = ALL, level: str = ALL, status: str = ALL,
                      store: EntityStore = Depends(get_store)) -> dict:
    risks = filter_risks(store.risks, unit, level)
    docs = filter_documents(store.documents, unit, status)
    return aggregate(risks, docs).to_dict()


@router.get("/matrix")
async def get_matrix(unit: str = ALL, level: str = ALL, store: EntityStore = Depends(get_store)) -> dict:
    matrix = build_matrix(filter_risks(store.risks, unit, level))
    return {"impact_rows": [5, 4, 3, 2, 1], "probability_columns": [1, 2, 3, 4, 5], "counts": matrix.tolist()}


@router.post("/save")
async def save(store: EntityStore = Depends(get_store)) -> dict:
    try:
        store.persist()
    except StorageWriteError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"status": store.save_status.value}


@router.post("/analysis")
def run_analysis(request: AnalysisRequest, store: EntityStore = Depends(get_store),
                 runner: AnalysisRunner = Depends(get_runner)) -> dict:
    risks, documents = store.snapshot()
    kwargs = {"model": request.model} if request.model else {}
    text = runner.run(risks, documents, request.unit, **kwargs)
    return {"unit": request.unit, "analysis": text}
