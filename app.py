# app.py — GRC dashboard: risk matrix, normative documents and AI strategic analysis
# Run: streamlit run app.py
import time

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from grc_dashboard.ai_helper import AnalysisRunner, parse_analysis
from grc_dashboard.config import load_settings
from grc_dashboard.db import JsonFileStore
from grc_dashboard.errors import InvalidFieldValue, StorageWriteError
from grc_dashboard.helpers import (
    build_matrix,
    changed_cells,
    documents_frame,
    format_date_br,
    risks_frame,
    to_csv_bytes,
)
from grc_dashboard.logger_config import setup_logger
from grc_dashboard.models import (
    ALL,
    RISK_CATEGORIES,
    STATUS_LABELS,
    DocumentStatus,
    DocumentType,
    RiskLevel,
    Unit,
)
from grc_dashboard.scoring import GREEN, ORANGE, RED, YELLOW, matrix_cell_color
from grc_dashboard.services.risk_service import (
    aggregate,
    filter_documents,
    filter_risks,
    matrix_cell,
)
from grc_dashboard.store import EntityStore, SaveStatus

settings = load_settings()
logger = setup_logger("grc_dashboard", settings.log_file, settings.log_level)

st.set_page_config(page_title="GRC Dashboard", layout="wide")
st.title("🛡️ Painel Estratégico de Riscos e Compliance")

UNIT_OPTIONS = {
    "Consolidado": ALL,
    "Seguradora": Unit.SEGURADORA,
    "Ciclos Pay": Unit.CICLOS_PAY,
}
COLOR_INDEX = {GREEN: 0, YELLOW: 1, ORANGE: 2, RED: 3}
MATRIX_COLORSCALE = [
    [0.0, GREEN], [0.25, GREEN],
    [0.25, YELLOW], [0.5, YELLOW],
    [0.5, ORANGE], [0.75, ORANGE],
    [0.75, RED], [1.0, RED],
]
RISK_EDITABLE = [
    "code", "title", "category", "unit", "owner",
    "factor_management", "factor_regulation", "factor_functionality",
    "factor_data_protection", "factor_customer", "probability",
]
DOCUMENT_EDITABLE = ["title", "type", "unit", "status", "last_updated", "description"]


def openai_api_key():
    try:
        return st.secrets.get("OPENAI_API_KEY") or settings.openai_api_key
    except FileNotFoundError:
        return settings.openai_api_key


# -----------------------
# Session state
# -----------------------
if "store" not in st.session_state:
    st.session_state.store = EntityStore.open(JsonFileStore(settings.storage_path))
if "runner" not in st.session_state:
    st.session_state.runner = AnalysisRunner(model=settings.analysis_model, api_key=openai_api_key())

store: EntityStore = st.session_state.store
runner: AnalysisRunner = st.session_state.runner


def save_data():
    with st.spinner("Salvando..."):
        time.sleep(0.6)
        try:
            store.persist()
        except StorageWriteError as e:
            st.error(str(e))
            return
    st.success("✅ Alterações salvas.")


def apply_changes(changes, update):
    errors = []
    for record_id, field, value in changes:
        try:
            update(record_id, field, value)
        except InvalidFieldValue as e:
            errors.append(str(e))
    for message in errors:
        st.error(message)
    return not errors


# -----------------------
# Sidebar
# -----------------------
unit_label = st.sidebar.selectbox("Unidade de negócio", list(UNIT_OPTIONS))
unit = UNIT_OPTIONS[unit_label]
if st.sidebar.button("💾 Salvar alterações", use_container_width=True):
    save_data()
if store.dirty:
    st.sidebar.warning("Há alterações não salvas.")
elif store.save_status is SaveStatus.SAVED:
    st.sidebar.info("Dados salvos.")

dashboard_tab, documents_tab, manage_tab, ai_tab = st.tabs(
    ["📊 Dashboard", "📄 Documentos", "🗂️ Gestão de Dados", "🧠 Análise AI"]
)

# -----------------------
# Dashboard
# -----------------------
with dashboard_tab:
    st.caption(f"Visualizando dados para: **{'Visão Consolidada' if unit == ALL else unit_label}**")

    col_level, col_status = st.columns(2)
    with col_level:
        level_filter = st.selectbox("Nível de risco", [ALL] + [lvl.value for lvl in RiskLevel])
    with col_status:
        status_filter = st.selectbox("Status do documento", [ALL] + list(STATUS_LABELS.values()))

    filtered_risks = filter_risks(store.risks, unit, level_filter)
    filtered_docs = filter_documents(store.documents, unit, status_filter)
    summary = aggregate(filtered_risks, filtered_docs)

    cols = st.columns(4)
    cols[0].metric("Riscos Críticos/Altos", summary.critical_risks)
    cols[1].metric("Políticas Vigentes", summary.active_policies)
    cols[2].metric("Normas Operacionais", summary.norms)
    cols[3].metric("Manuais", summary.manuals)
    st.markdown("---")

    matrix_col, charts_col = st.columns([3, 2])
    with matrix_col:
        probabilities = [1, 2, 3, 4, 5]
        impacts = [5, 4, 3, 2, 1]
        counts = build_matrix(filtered_risks)
        z = [[COLOR_INDEX[matrix_cell_color(p, i)] for p in probabilities] for i in impacts]
        codes = [
            ["<br>".join(r.code for r in matrix_cell(filtered_risks, p, i)) for p in probabilities]
            for i in impacts
        ]
        fig = go.Figure(
            data=go.Heatmap(
                z=z,
                x=probabilities,
                y=impacts,
                text=codes,
                texttemplate="%{text}",
                customdata=counts,
                colorscale=MATRIX_COLORSCALE,
                zmin=0,
                zmax=3,
                showscale=False,
                xgap=2,
                ygap=2,
                hovertemplate="<b>Probabilidade:</b> %{x}<br><b>Impacto:</b> %{y}<br><b>Riscos:</b> %{customdata}<extra></extra>",
            )
        )
        fig.update_layout(
            title="Matriz de Riscos",
            xaxis_title="Probabilidade",
            yaxis_title="Impacto",
            margin=dict(l=60, r=20, t=50, b=60),
            height=500,
        )
        st.plotly_chart(fig, use_container_width=True)

    with charts_col:
        st.markdown("#### Riscos por categoria")
        if summary.risks_by_category:
            st.bar_chart(pd.Series(summary.risks_by_category, name="Riscos"))
        else:
            st.info("Nenhum risco para os filtros selecionados.")

        st.markdown("#### Distribuição de documentos")
        pie = go.Figure(
            data=go.Pie(
                labels=list(summary.documents_by_type),
                values=list(summary.documents_by_type.values()),
                marker=dict(colors=["#94a3b8", "#3b82f6", "#1e3a8a"]),
                hole=0.4,
            )
        )
        pie.update_layout(margin=dict(l=10, r=10, t=10, b=10), height=260)
        st.plotly_chart(pie, use_container_width=True)

# -----------------------
# Documents
# -----------------------
with documents_tab:
    docs = filter_documents(store.documents, unit, status_filter)
    if docs:
        df_docs = documents_frame(docs)
        df_docs["status"] = [STATUS_LABELS[d.status] for d in docs]
        df_docs["last_updated"] = df_docs["last_updated"].map(format_date_br)
        st.dataframe(df_docs.drop(columns=["id"]), use_container_width=True, hide_index=True)
        st.download_button("📥 Download CSV", data=to_csv_bytes(documents_frame(docs)),
                           file_name="documents.csv", mime="text/csv")
    else:
        st.warning("Nenhum documento cadastrado para esta unidade.")

# -----------------------
# Data management
# -----------------------
with manage_tab:
    st.markdown("### Riscos")
    df_risks = risks_frame(store.risks)
    edited_risks = st.data_editor(
        df_risks,
        key="risk_editor",
        hide_index=True,
        use_container_width=True,
        disabled=[c for c in df_risks.columns if c not in RISK_EDITABLE],
        column_config={
            "category": st.column_config.SelectboxColumn(options=RISK_CATEGORIES),
            "unit": st.column_config.SelectboxColumn(options=[u.value for u in Unit]),
            **{
                name: st.column_config.NumberColumn(min_value=1, max_value=5, step=1)
                for name in RISK_EDITABLE if name.startswith("factor_") or name == "probability"
            },
        },
    )
    risk_changes = changed_cells(df_risks, edited_risks, RISK_EDITABLE)
    if risk_changes and apply_changes(risk_changes, store.update_risk_field):
        st.rerun()

    add_col, del_col, csv_col = st.columns(3)
    if add_col.button("➕ Adicionar risco"):
        store.add_risk()
        st.rerun()
    risk_to_delete = del_col.selectbox("Excluir risco", [""] + [f"{r.code} | {r.id}" for r in store.risks])
    if risk_to_delete and del_col.button("🗑️ Excluir risco"):
        store.remove_risk(risk_to_delete.split(" | ", 1)[1])
        st.rerun()
    csv_col.download_button("📥 Download CSV", data=to_csv_bytes(df_risks),
                            file_name="risks.csv", mime="text/csv")

    st.markdown("---")
    st.markdown("### Documentos")
    df_all_docs = documents_frame(store.documents)
    edited_docs = st.data_editor(
        df_all_docs,
        key="document_editor",
        hide_index=True,
        use_container_width=True,
        disabled=["id"],
        column_config={
            "type": st.column_config.SelectboxColumn(options=[t.value for t in DocumentType]),
            "unit": st.column_config.SelectboxColumn(options=[u.value for u in Unit]),
            "status": st.column_config.SelectboxColumn(options=[s.value for s in DocumentStatus]),
        },
    )
    doc_changes = changed_cells(df_all_docs, edited_docs, DOCUMENT_EDITABLE)
    if doc_changes and apply_changes(doc_changes, store.update_document_field):
        st.rerun()

    add_doc_col, del_doc_col = st.columns(2)
    if add_doc_col.button("➕ Adicionar documento"):
        store.add_document()
        st.rerun()
    doc_to_delete = del_doc_col.selectbox("Excluir documento", [""] + [f"{d.title} | {d.id}" for d in store.documents])
    if doc_to_delete and del_doc_col.button("🗑️ Excluir documento"):
        store.remove_document(doc_to_delete.split(" | ", 1)[1])
        st.rerun()

# -----------------------
# AI analysis
# -----------------------
with ai_tab:
    st.markdown("### 🧠 Conselheiro Estratégico AI")
    st.write(
        "Analise a correlação entre os riscos identificados e a estrutura normativa da "
        f"**{'organização completa' if unit == ALL else unit_label}**."
    )
    if st.button("Gerar Análise Estratégica"):
        risks_snapshot, docs_snapshot = store.snapshot()
        with st.spinner("Analisando..."):
            runner.run(risks_snapshot, docs_snapshot, unit)

    if runner.result:
        st.markdown("#### Resultado da Análise")
        for line in parse_analysis(runner.result):
            if line.kind == "heading":
                st.markdown(f"##### {line.text}")
            elif line.kind == "bold":
                st.markdown(f"**{line.text}**")
            elif line.kind == "item":
                st.markdown(f"- {line.text}")
            else:
                st.write(line.text)
    else:
        st.info("Nenhuma análise gerada ainda.")
