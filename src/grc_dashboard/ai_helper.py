import logging
import os
import threading
from typing import Callable, Iterable, List, NamedTuple, Optional

from openai import OpenAI

from grc_dashboard.config import DEFAULT_ANALYSIS_MODEL
from grc_dashboard.models import ALL, Document, Risk, UnitSelector
from grc_dashboard.services.risk_service import filter_documents, filter_risks

logger = logging.getLogger(__name__)

ANALYSIS_ERROR_MESSAGE = (
    "Erro ao conectar com o serviço de inteligência artificial. Verifique sua chave de API."
)
NO_ANALYSIS_MESSAGE = "Não foi possível gerar a análise no momento."
RUN_ERROR_MESSAGE = "Erro ao gerar análise. Tente novamente."

CONSOLIDATED_LABEL = "Visão Geral Consolidada"


def _unit_label(unit: UnitSelector) -> str:
    if unit == ALL:
        return CONSOLIDATED_LABEL
    return getattr(unit, "value", unit)


def build_prompt(risks: Iterable[Risk], documents: Iterable[Document], unit: UnitSelector = ALL) -> str:
    """CRO-style prompt summarising the given risks and documents."""
    risk_summary = "\n".join(
        f"- {r.title} (Nível: {r.level.value}, Prob: {r.probability}, Impacto: {r.impact:g})"
        for r in risks
    )
    doc_summary = "\n".join(
        f"- {d.title} ({d.type.value}, Status: {d.status.value})"
        for d in documents
    )

    return f"""
    Atue como um Diretor de Riscos Sênior (CRO) para uma instituição que possui operações de Seguradora e Meios de Pagamento (Ciclos Pay).

    Contexto Atual: {_unit_label(unit)}

    Dados de Risco Identificados:
{risk_summary}

    Estrutura Normativa (Políticas/Normas/Manuais) Existente:
{doc_summary}

    Tarefa:
    Forneça uma análise estratégica executiva de 3 parágrafos.
    1. Identifique a principal vulnerabilidade com base nos riscos de alto impacto listados.
    2. Analise se a estrutura normativa atual (documentos listados) parece suficiente para mitigar esses riscos ou se há lacunas óbvias (ex: tem risco cibernético mas não tem política de segurança?).
    3. Recomende 3 ações imediatas para a diretoria.

    Formato da resposta:
    - Cada seção começa com uma linha de título iniciada por "###".
    - Pontos-chave ficam em uma linha própria iniciada e terminada por "**".
    - Itens de lista começam com "-".
    Seja profissional e direto.
    """


def generate_strategic_analysis(risks: Iterable[Risk], documents: Iterable[Document],
                                unit: UnitSelector = ALL, model: Optional[str] = None,
                                client=None, api_key: Optional[str] = None) -> str:
    """
    Ask the completion service for an executive risk analysis.

    The collections are narrowed to ``unit`` before the prompt is built.
    Service failures never raise: a fixed Portuguese message is returned
    instead.
    """
    relevant_risks = filter_risks(risks, unit)
    relevant_docs = filter_documents(documents, unit)
    prompt = build_prompt(relevant_risks, relevant_docs, unit)

    try:
        if client is None:
            api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                logger.warning("OPENAI_API_KEY is not set; skipping strategic analysis")
                return ANALYSIS_ERROR_MESSAGE
            client = OpenAI(api_key=api_key)

        response = client.chat.completions.create(
            model=model or DEFAULT_ANALYSIS_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.4,
        )
        text = response.choices[0].message.content
    except Exception as e:
        logger.error("Error calling the analysis service: %s", e)
        return ANALYSIS_ERROR_MESSAGE

    return text or NO_ANALYSIS_MESSAGE


class AnalysisLine(NamedTuple):
    kind: str  # heading | bold | item | paragraph
    text: str


def parse_analysis(text: str) -> List[AnalysisLine]:
    """Split analysis text into renderable lines by their leading marker."""
    lines = []
    for line in text.split("\n"):
        if not line.strip():
            continue
        if line.startswith("###"):
            lines.append(AnalysisLine("heading", line.replace("###", "", 1).strip()))
        elif line.startswith("**"):
            lines.append(AnalysisLine("bold", line.replace("**", "").strip()))
        elif line.startswith("-"):
            lines.append(AnalysisLine("item", line.replace("-", "", 1).strip()))
        else:
            lines.append(AnalysisLine("paragraph", line))
    return lines


class AnalysisRunner:
    """
    Tracks analysis requests with increasing tokens so that only the most
    recently requested result is kept.

    Token issue and result adoption happen under a lock, since the API runs
    concurrent requests on worker threads.
    """

    def __init__(self, analyze: Callable[..., str] = generate_strategic_analysis, **defaults):
        self.analyze = analyze
        self.defaults = defaults
        self.result: Optional[str] = None
        self._latest_token = 0
        self._lock = threading.Lock()

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def begin(self) -> int:
        with self._lock:
            self._latest_token += 1
            return self._latest_token

    def complete(self, token: int, result: str) -> bool:
        with self._lock:
            if token != self._latest_token:
                logger.info("Discarding stale analysis result (token %d, latest %d)", token, self._latest_token)
                return False
            self.result = result
            return True

    def run(self, risks: Iterable[Risk], documents: Iterable[Document],
            unit: UnitSelector = ALL, **kwargs) -> str:
        token = self.begin()
        try:
            options = {**self.defaults, **kwargs}
            text = self.analyze(list(risks), list(documents), unit, **options)
        except Exception:
            logger.exception("Strategic analysis failed")
            text = RUN_ERROR_MESSAGE
        self.complete(token, text)
        return text
