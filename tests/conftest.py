"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.calculations.clock import fixed_clock
from app.calculations.deal import normalize_deal


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "integration: marks integration tests")


TODAY = date(2025, 1, 15)

# The application's example deal: 10% down, 36 monthly installments, bank
# financing for the 45% balance
FINANCED_RECORD = {
    "date": "2025-01-15",
    "valorTotal": 980000,
    "entradaValor": 98000,
    "entradaParcelas": 1,
    "obraParcelaValor": 12250,
    "duranteObraParcelas": 36,
    "chavesForma": "financiamento",
    "chavesValor": 441000,
    "prazoObraAnos": 3,
    "apreciacao": 18,
    "adrDiaria": 350,
    "ocupacao": 70,
    "custosOperacionais": 30,
    "area": 74,
}

# Cash at delivery with reinforcements and a surcharge at delivery
CASH_RECORD = {
    "date": "2025-01-31",
    "valorTotal": 600000,
    "entradaValor": 60000,
    "entradaParcelas": 1,
    "obraParcelaValor": 10000,
    "duranteObraParcelas": 12,
    "balaoValor": 20000,
    "balaoQuantidade": 2,
    "balaoFrequenciaMeses": 6,
    "chavesForma": "avista",
    "chavesValor": 300000,
    "chavesExtraValor": 30000,
    "chavesExtraQuando": "na_entrega",
    "prazoObraAnos": 1,
    "apreciacao": 10,
}

# Builder installments after delivery, paid from short-stay income
BUILDER_RECORD = {
    "date": "2025-03-10",
    "valorTotal": 500000,
    "entradaValor": 50000,
    "entradaParcelas": 2,
    "obraParcelaValor": 5000,
    "duranteObraParcelas": 24,
    "chavesForma": "posConstrutora",
    "chavesValor": 200000,
    "chavesPosParcelas": 40,
    "chavesExtraValor": 10000,
    "chavesExtraQuando": "pos_chaves",
    "prazoObraAnos": 2,
    "apreciacao": 12,
    "adrDiaria": 300,
    "ocupacao": 60,
    "custosOperacionais": 35,
}


@pytest.fixture
def clock():
    """Clock pinned to a fixed day."""
    return fixed_clock(TODAY)


@pytest.fixture
def financed_deal(clock):
    return normalize_deal(FINANCED_RECORD, clock)


@pytest.fixture
def cash_deal(clock):
    return normalize_deal(CASH_RECORD, clock)


@pytest.fixture
def builder_deal(clock):
    return normalize_deal(BUILDER_RECORD, clock)


@pytest.fixture
def empty_deal(clock):
    """Deal built from an empty record."""
    return normalize_deal({}, clock)
