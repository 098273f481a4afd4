"""
Tests for the return scenarios and IRR helpers.
"""

import math
import pytest

from app.calculations.deal import normalize_deal
from app.calculations.irr import (
    annual_to_monthly_irr,
    calculate_irr,
    calculate_npv,
    monthly_flows,
    monthly_to_annual_irr,
)
from app.calculations.scenarios import (
    SHORT_STAY_MONTHS,
    annualized_tir,
    appreciated_value,
    compute_scenarios,
)
from app.calculations.schedule import build_schedule

from conftest import FINANCED_RECORD


def _scenarios(deal):
    schedule = build_schedule(deal)
    return compute_scenarios(schedule.totals, deal, schedule.events)


class TestIRR:
    """IRR calculation functions."""

    def test_calculate_irr_simple(self):
        """Investment of 100 returning 110 one period later = 10%."""
        assert calculate_irr([-100, 110]) == pytest.approx(0.10, abs=1e-6)

    def test_calculate_irr_requires_sign_change(self):
        with pytest.raises(ValueError):
            calculate_irr([-100, -10])
        with pytest.raises(ValueError):
            calculate_irr([100])

    def test_npv_at_irr_is_zero(self):
        flows = [-1000, -200, -200, 0, 1800]
        rate = calculate_irr(flows)
        assert calculate_npv(flows, rate) == pytest.approx(0, abs=1e-4)

    def test_rate_conversions(self):
        monthly = annual_to_monthly_irr(0.12)
        assert (1 + monthly) ** 12 == pytest.approx(1.12)
        assert monthly_to_annual_irr(monthly) == pytest.approx(0.12)

    def test_monthly_flows(self):
        assert monthly_flows({0: -10.0, 3: 5.0}, 5) == [-10.0, 0.0, 0.0, 5.0, 0.0]

    def test_annualized_tir(self):
        """1000 growing to 1120 in twelve months is 12% a year."""
        assert annualized_tir({0: -1000.0, 12: 1120.0}) == pytest.approx(12, abs=1e-4)

    def test_annualized_tir_without_inflows(self):
        assert annualized_tir({0: -1000.0, 5: -10.0}) == 0
        assert annualized_tir({}) == 0


class TestResaleScenario:
    """Scenario 1: appreciation-only resale."""

    def test_example_deal(self, financed_deal):
        cenario = _scenarios(financed_deal).cenario1
        valor_final = 980000 * 1.18 ** 3
        assert cenario.valor_final == pytest.approx(valor_final)
        assert cenario.valor_final == pytest.approx(1610171.36, abs=0.01)
        assert cenario.lucro == pytest.approx(valor_final - 980000)
        assert cenario.roi == pytest.approx(64.3032, abs=1e-4)
        assert cenario.roas == pytest.approx((valor_final - 980000) / 539000 * 100)
        assert cenario.prazo == 3

    def test_irr_is_positive(self, financed_deal):
        cenario = _scenarios(financed_deal).cenario1
        assert math.isfinite(cenario.tir)
        assert cenario.tir > 0

    def test_zero_price(self, clock):
        deal = normalize_deal({"valorTotal": 0, "entradaValor": 1000, "apreciacao": 10, "prazoObraAnos": 2}, clock)
        cenario = _scenarios(deal).cenario1
        assert cenario.valor_final == 0
        assert cenario.roi == 0
        assert cenario.roas == 0

    def test_zero_client_outlay(self, clock):
        deal = normalize_deal(
            {"valorTotal": 1000, "chavesForma": "financiamento", "chavesValor": 1000, "apreciacao": 10, "prazoObraAnos": 1},
            clock,
        )
        cenario = _scenarios(deal).cenario1
        assert cenario.roi == pytest.approx(10)
        assert cenario.roas == 0

    def test_appreciated_value_clamps(self):
        assert appreciated_value(-100, 10, 2) == 0
        assert appreciated_value(100, -10, 2) == 100
        assert appreciated_value(100, 10, -2) == 100

    def test_appreciated_value_out_of_range(self):
        assert appreciated_value(100, 1e200, 3) == 0
        assert appreciated_value(1e300, 1e5, 100) == 0

    def test_runaway_appreciation_keeps_returns_finite(self, clock):
        deal = normalize_deal(dict(FINANCED_RECORD, apreciacao=1e200, prazoObraAnos=10000), clock)
        cenario = _scenarios(deal).cenario1
        assert cenario.valor_final == 0
        assert cenario.roi == pytest.approx(-100)
        assert cenario.tir == 0


class TestShortStayScenario:
    """Scenario 2: appreciation plus five years of short-stay income."""

    def test_example_deal(self, financed_deal):
        cenario = _scenarios(financed_deal).cenario2
        patrimonio = 980000 * 1.18 ** 3 - 980000
        assert cenario.patrimonio_acrescido == pytest.approx(patrimonio)
        assert cenario.valor_final == pytest.approx(980000 * 1.18 ** 3)
        assert cenario.adr_diaria == 350
        assert cenario.receita_mensal_bruta == pytest.approx(7350)
        assert cenario.aluguel_liquido == pytest.approx(5145)
        assert cenario.renda_acumulada == pytest.approx(5145 * SHORT_STAY_MONTHS)
        assert cenario.renda_acumulada == pytest.approx(308700)
        assert cenario.retorno_total == pytest.approx(patrimonio + 308700)
        assert cenario.roi == pytest.approx((patrimonio + 308700) / 980000 * 100)
        assert cenario.roas == pytest.approx((patrimonio + 308700) / 539000 * 100)
        assert cenario.prazo_total == 8

    def test_irr_is_finite(self, financed_deal, builder_deal):
        for deal in (financed_deal, builder_deal):
            assert math.isfinite(_scenarios(deal).cenario2.tir)

    def test_full_costs_mean_no_income(self, clock):
        deal = normalize_deal({"adrDiaria": 500, "ocupacao": 80, "custosOperacionais": 100}, clock)
        cenario = _scenarios(deal).cenario2
        assert cenario.receita_mensal_bruta == pytest.approx(12000)
        assert cenario.aluguel_liquido == 0
        assert cenario.renda_acumulada == 0


class TestScenarioInvariants:
    """Zero guards and reproducibility."""

    def test_all_zero_input(self, empty_deal):
        scenarios = _scenarios(empty_deal)
        for value in (
            scenarios.cenario1.roi,
            scenarios.cenario1.roas,
            scenarios.cenario1.tir,
            scenarios.cenario2.roi,
            scenarios.cenario2.roas,
            scenarios.cenario2.tir,
        ):
            assert value == 0
        assert scenarios.cenario2.prazo_total == 5

    def test_events_are_optional(self, cash_deal):
        schedule = build_schedule(cash_deal)
        assert compute_scenarios(schedule.totals, cash_deal) == compute_scenarios(
            schedule.totals, cash_deal, schedule.events
        )
