import pandas as pd
import numpy as np
from typing import Iterable, List

from grc_dashboard.models import Document, Risk
from grc_dashboard.scoring import impact_label, risk_score, round_half_up

RISK_COLUMNS = [
    "id", "code", "title", "category", "unit", "owner",
    "factor_management", "factor_regulation", "factor_functionality",
    "factor_data_protection", "factor_customer",
    "probability", "impact", "impact_label", "level", "level_code", "score",
]

DOCUMENT_COLUMNS = [
    "id", "title", "type", "unit", "status", "last_updated", "description",
]


def risks_frame(risks: Iterable[Risk]) -> pd.DataFrame:
    """Risks as a DataFrame, with the derived labels alongside the raw scores."""
    rows: List[dict] = []
    for risk in risks:
        row = risk.to_dict()
        row["impact_label"] = impact_label(risk.impact)
        row["level_code"] = risk.level_code
        row["score"] = risk_score(risk.probability, risk.impact)
        rows.append(row)
    return pd.DataFrame(rows, columns=RISK_COLUMNS)


def documents_frame(documents: Iterable[Document]) -> pd.DataFrame:
    return pd.DataFrame([d.to_dict() for d in documents], columns=DOCUMENT_COLUMNS)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def build_matrix(risks: Iterable[Risk]) -> np.ndarray:
    """Build 5x5 matrix of risk counts; row 0 is impact 5, column 0 is probability 1."""
    matrix = np.zeros((5, 5), dtype=int)
    for risk in risks:
        probability = round_half_up(risk.probability) - 1
        impact = round_half_up(risk.impact) - 1
        if 0 <= probability < 5 and 0 <= impact < 5:
            matrix[4 - impact, probability] += 1
    return matrix


def format_date_br(date_string: str) -> str:
    """'2024-03-01' -> '01/03/2024'; anything not shaped like an ISO date is returned as is."""
    if not date_string:
        return ""
    parts = date_string.split("-")
    if len(parts) != 3:
        return date_string
    year, month, day = parts
    return f"{day}/{month}/{year}"


def changed_cells(original: pd.DataFrame, edited: pd.DataFrame, columns: Iterable[str],
                  key: str = "id") -> List[tuple]:
    """(record id, column, new value) for every edited cell in ``columns``."""
    columns = list(columns)
    before = original.set_index(key)
    after = edited.set_index(key)
    changes = []
    for record_id in after.index:
        if record_id not in before.index:
            continue
        for column in columns:
            old, new = before.at[record_id, column], after.at[record_id, column]
            if pd.isna(old) and pd.isna(new):
                continue
            if old != new:
                if isinstance(new, np.generic):
                    new = new.item()
                changes.append((record_id, column, new))
    return changes
