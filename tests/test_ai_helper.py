"""
Tests for ai_helper.py

The completion service is replaced by a fake client exposing
``chat.completions.create``.
"""

import threading
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from grc_dashboard import ai_helper
from grc_dashboard.ai_helper import (
    ANALYSIS_ERROR_MESSAGE,
    NO_ANALYSIS_MESSAGE,
    RUN_ERROR_MESSAGE,
    AnalysisLine,
    AnalysisRunner,
    build_prompt,
    generate_strategic_analysis,
    parse_analysis,
)
from grc_dashboard.models import ALL, Unit


def fake_client(text="### Visão\n**Ponto chave**\n- ação"):
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))]
    )
    return client


def sent_prompt(client):
    _, kwargs = client.chat.completions.create.call_args
    return kwargs["messages"][0]["content"]


# ============================================================================
# PROMPT
# ============================================================================

class TestBuildPrompt:

    def test_embeds_risks_and_documents(self, store):
        prompt = build_prompt(store.risks, store.documents)
        assert "- Fraude em Sinistros (Nível: Large, Prob: 3, Impacto: 4.8)" in prompt
        assert "- Vazamento de Dados LGPD (Nível: High, Prob: 2, Impacto: 5)" in prompt
        assert "- Norma de PLD/FT (Norm, Status: Review)" in prompt
        assert "Visão Geral Consolidada" in prompt

    def test_format_instructions(self, store):
        prompt = build_prompt(store.risks, store.documents)
        assert "3 parágrafos" in prompt
        assert '"###"' in prompt
        assert '"**"' in prompt
        assert '"-"' in prompt

    def test_unit_context(self, store):
        prompt = build_prompt([], [], Unit.CICLOS_PAY)
        assert "Contexto Atual: Ciclos Pay" in prompt


# ============================================================================
# SERVICE CALL
# ============================================================================

class TestGenerateStrategicAnalysis:

    def test_returns_model_text(self, store):
        client = fake_client("### Análise")
        text = generate_strategic_analysis(store.risks, store.documents, ALL, client=client)
        assert text == "### Análise"
        _, kwargs = client.chat.completions.create.call_args
        assert kwargs["model"] == "gpt-4o-mini"

    def test_custom_model(self, store):
        client = fake_client()
        generate_strategic_analysis(store.risks, store.documents, model="gpt-4o", client=client)
        assert client.chat.completions.create.call_args[1]["model"] == "gpt-4o"

    def test_filters_by_unit(self, store):
        client = fake_client()
        generate_strategic_analysis(store.risks, store.documents, Unit.SEGURADORA, client=client)
        prompt = sent_prompt(client)
        assert "Fraude em Sinistros" in prompt
        assert "Vazamento de Dados LGPD" not in prompt
        assert "Manual de Sinistros" in prompt
        assert "Manual de Integração API" not in prompt

    def test_service_error_returns_fixed_message(self, store):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("network down")
        before = [r.to_dict() for r in store.risks], [d.to_dict() for d in store.documents]
        text = generate_strategic_analysis(store.risks, store.documents, client=client)
        assert text == ANALYSIS_ERROR_MESSAGE
        assert ([r.to_dict() for r in store.risks], [d.to_dict() for d in store.documents]) == before

    def test_empty_text(self, store):
        assert generate_strategic_analysis(store.risks, store.documents, client=fake_client("")) == NO_ANALYSIS_MESSAGE

    def test_missing_api_key(self, store, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        openai_cls = MagicMock()
        monkeypatch.setattr(ai_helper, "OpenAI", openai_cls)
        assert generate_strategic_analysis(store.risks, store.documents) == ANALYSIS_ERROR_MESSAGE
        openai_cls.assert_not_called()

    def test_builds_client_from_key(self, store, monkeypatch):
        client = fake_client("ok")
        openai_cls = MagicMock(return_value=client)
        monkeypatch.setattr(ai_helper, "OpenAI", openai_cls)
        assert generate_strategic_analysis(store.risks, store.documents, api_key="sk-test") == "ok"
        openai_cls.assert_called_once_with(api_key="sk-test")


# ============================================================================
# RENDERING CONTRACT
# ============================================================================

class TestParseAnalysis:

    def test_line_prefixes(self):
        text = "### Vulnerabilidade\n**Risco principal** é fraude\n- Revisar política\nTexto livre\n\n"
        assert parse_analysis(text) == [
            AnalysisLine("heading", "Vulnerabilidade"),
            AnalysisLine("bold", "Risco principal é fraude"),
            AnalysisLine("item", "Revisar política"),
            AnalysisLine("paragraph", "Texto livre"),
        ]

    def test_only_leading_markers_count(self):
        assert parse_analysis("a - b ### c") == [AnalysisLine("paragraph", "a - b ### c")]

    def test_item_strips_first_dash_only(self):
        assert parse_analysis("- pré-requisito") == [AnalysisLine("item", "pré-requisito")]

    def test_error_message_is_a_paragraph(self):
        assert parse_analysis(ANALYSIS_ERROR_MESSAGE)[0].kind == "paragraph"


# ============================================================================
# RUNNER
# ============================================================================

class TestAnalysisRunner:

    def test_run_stores_result(self, store):
        runner = AnalysisRunner(lambda risks, docs, unit, **kw: f"{len(risks)} riscos em {unit}")
        assert runner.run(store.risks, store.documents, ALL) == "5 riscos em All"
        assert runner.result == "5 riscos em All"
        assert runner.latest_token == 1

    def test_defaults_are_passed(self):
        seen = {}

        def analyze(risks, docs, unit, **kwargs):
            seen.update(kwargs)
            return "ok"

        runner = AnalysisRunner(analyze, model="gpt-4o-mini", api_key="k")
        runner.run([], [], ALL, model="gpt-4o")
        assert seen == {"model": "gpt-4o", "api_key": "k"}

    def test_stale_result_discarded(self):
        runner = AnalysisRunner()
        first = runner.begin()
        second = runner.begin()
        assert runner.complete(second, "newer") is True
        assert runner.complete(first, "older") is False
        assert runner.result == "newer"

    def test_concurrent_begins_get_unique_tokens(self):
        runner = AnalysisRunner()
        tokens = []

        def worker():
            for _ in range(200):
                tokens.append(runner.begin())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(set(tokens)) == 1600
        assert runner.latest_token == 1600

    def test_slow_earlier_run_does_not_overwrite_later_one(self):
        release = threading.Event()

        def analyze(risks, docs, unit, **kwargs):
            if unit == "slow":
                release.wait(timeout=5)
            return unit

        runner = AnalysisRunner(analyze)
        slow = threading.Thread(target=runner.run, args=([], [], "slow"))
        slow.start()
        while runner.latest_token < 1:
            time.sleep(0.001)
        assert runner.run([], [], "fast") == "fast"
        release.set()
        slow.join()
        assert runner.result == "fast"

    def test_exception_becomes_message(self, store):
        def boom(*args, **kwargs):
            raise RuntimeError("boom")

        runner = AnalysisRunner(boom)
        before = [r.to_dict() for r in store.risks]
        assert runner.run(store.risks, store.documents) == RUN_ERROR_MESSAGE
        assert runner.result == RUN_ERROR_MESSAGE
        assert [r.to_dict() for r in store.risks] == before


@pytest.mark.parametrize("unit,expected", [(ALL, "Visão Geral Consolidada"), (Unit.SEGURADORA, "Seguradora")])
def test_unit_label(unit, expected):
    assert ai_helper._unit_label(unit) == expected
