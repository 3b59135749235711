# Built-in dataset used when nothing has been saved yet (or the saved copy is unreadable).
# Levels and impacts here are placeholders: the store rescores every risk on load.

SEED_DOCUMENTS = [
    # Seguradora
    {
        "id": "1",
        "title": "Política de Subscrição de Riscos",
        "type": "Policy",
        "unit": "Seguradora",
        "status": "Published",
        "last_updated": "2023-10-15",
        "description": "Diretrizes para aceitação de novos riscos de seguros.",
    },
    {
        "id": "2",
        "title": "Manual de Sinistros",
        "type": "Manual",
        "unit": "Seguradora",
        "status": "Published",
        "last_updated": "2023-11-02",
        "description": "Procedimentos operacionais para regulação de sinistros.",
    },
    {
        "id": "3",
        "title": "Norma de PLD/FT",
        "type": "Norm",
        "unit": "Seguradora",
        "status": "Review",
        "last_updated": "2024-01-10",
        "description": "Prevenção à Lavagem de Dinheiro e Financiamento do Terrorismo.",
    },
    # Ciclos Pay
    {
        "id": "4",
        "title": "Política de Segurança Cibernética",
        "type": "Policy",
        "unit": "Ciclos Pay",
        "status": "Published",
        "last_updated": "2023-12-05",
        "description": "Diretrizes de proteção de dados e infraestrutura de pagamentos.",
    },
    {
        "id": "5",
        "title": "Manual de Integração API",
        "type": "Manual",
        "unit": "Ciclos Pay",
        "status": "Published",
        "last_updated": "2024-02-20",
        "description": "Guia técnico para parceiros integrarem ao gateway.",
    },
    {
        "id": "6",
        "title": "Norma de Reconciliação Financeira",
        "type": "Norm",
        "unit": "Ciclos Pay",
        "status": "Draft",
        "last_updated": "2024-03-01",
        "description": "Regras para conciliação diária de transações.",
    },
    {
        "id": "7",
        "title": "Política de Gestão de Liquidez",
        "type": "Policy",
        "unit": "Ciclos Pay",
        "status": "Published",
        "last_updated": "2023-09-20",
        "description": "Controle de fluxo de caixa e reservas obrigatórias.",
    },
]

SEED_RISKS = [
    {
        "id": "r1",
        "code": "OP-001",
        "title": "Fraude em Sinistros",
        "category": "Operational",
        "factor_management": 5,
        "factor_regulation": 4,
        "factor_functionality": 5,
        "factor_data_protection": 5,
        "factor_customer": 5,
        "probability": 3,
        "impact": 5,
        "level": "High",
        "unit": "Seguradora",
        "owner": "Equipe de Fraude",
    },
    {
        "id": "r2",
        "code": "LGPD-02",
        "title": "Vazamento de Dados LGPD",
        "category": "Legal / Regulatory",
        "factor_management": 5,
        "factor_regulation": 5,
        "factor_functionality": 5,
        "factor_data_protection": 5,
        "factor_customer": 5,
        "probability": 2,
        "impact": 5,
        "level": "Critical",
        "unit": "Ciclos Pay",
        "owner": "DPO",
    },
    {
        "id": "r3",
        "code": "TEC-05",
        "title": "Falha no Gateway de Pagamento",
        "category": "Technological",
        "factor_management": 4,
        "factor_regulation": 3,
        "factor_functionality": 5,
        "factor_data_protection": 3,
        "factor_customer": 5,
        "probability": 2,
        "impact": 4,
        "level": "High",
        "unit": "Ciclos Pay",
        "owner": "CTO",
    },
    {
        "id": "r4",
        "code": "FIN-01",
        "title": "Inadimplência de Prêmios",
        "category": "Financial",
        "factor_management": 3,
        "factor_regulation": 2,
        "factor_functionality": 2,
        "factor_data_protection": 1,
        "factor_customer": 2,
        "probability": 4,
        "impact": 2,
        "level": "Moderate",
        "unit": "Seguradora",
        "owner": "CFO",
    },
    {
        "id": "r5",
        "code": "REG-03",
        "title": "Alterações Regulatórias SUSEP",
        "category": "Regulatory",
        "factor_management": 4,
        "factor_regulation": 5,
        "factor_functionality": 3,
        "factor_data_protection": 4,
        "factor_customer": 3,
        "probability": 3,
        "impact": 4,
        "level": "High",
        "unit": "Seguradora",
        "owner": "Compliance",
    },
]
