"""
Return Scenarios

Two forward-looking projections of a deal:

1. Resale - the property appreciates during construction and is sold
2. Short stay - same appreciation, plus five years of short-term rental
   income after delivery

ROI is measured against the full price; ROAS against the client's own
outlay (excludes the bank and short-stay portions).
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from app.calculations import irr
from app.calculations.deal import Deal
from app.calculations.schedule import ScheduleEvent, Totals, build_schedule

logger = logging.getLogger(__name__)

SHORT_STAY_YEARS = 5
SHORT_STAY_MONTHS = SHORT_STAY_YEARS * 12
DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class ResaleScenario:
    """Scenario 1: appreciation-only resale."""

    valor_final: float
    lucro: float
    roi: float
    roas: float
    tir: float  # Annualized IRR, percent
    prazo: float  # Years


@dataclass(frozen=True)
class ShortStayScenario:
    """Scenario 2: appreciation plus short-stay rental income."""

    valor_final: float
    patrimonio_acrescido: float
    adr_diaria: float
    receita_mensal_bruta: float
    aluguel_liquido: float
    renda_acumulada: float
    retorno_total: float
    roi: float
    roas: float
    tir: float
    prazo_total: float


@dataclass(frozen=True)
class Scenarios:
    cenario1: ResaleScenario
    cenario2: ShortStayScenario


def _ratio_percent(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    ratio = numerator / denominator * 100
    return ratio if math.isfinite(ratio) else 0.0


def appreciated_value(valor_total: float, apreciacao: float, anos: float) -> float:
    """
    Price compounded yearly at the appreciation rate (percent).

    Returns 0 when the compounded value is beyond the float range.
    """
    try:
        valor = max(0.0, valor_total) * (1 + max(0.0, apreciacao) / 100) ** max(0.0, anos)
    except OverflowError:
        valor = math.inf
    if not math.isfinite(valor):
        logger.debug(f"Appreciation of {apreciacao}% over {anos} years is out of range")
        return 0.0
    return valor


def _outflows_by_month(events: Sequence[ScheduleEvent]) -> Dict[int, float]:
    outflows: Dict[int, float] = {}
    for event in events:
        outflows[event.mes] = outflows.get(event.mes, 0.0) - event.valor
    return outflows


def annualized_tir(amounts_by_month: Dict[int, float]) -> float:
    """
    Annualized IRR, in percent, of flows keyed by month offset.

    Returns 0 when the flows have no IRR (no sign change, no convergence).
    """
    if not amounts_by_month:
        return 0.0
    flows = irr.monthly_flows(amounts_by_month, max(amounts_by_month) + 1)
    try:
        monthly = irr.calculate_irr(flows)
        annual = irr.monthly_to_annual_irr(monthly) * 100
    except (ValueError, ZeroDivisionError, OverflowError) as e:
        logger.debug(f"IRR not available: {e}")
        return 0.0
    return annual if math.isfinite(annual) else 0.0


def compute_resale(totals: Totals, deal: Deal, events: Sequence[ScheduleEvent]) -> ResaleScenario:
    """Scenario 1: sell the property at the end of the construction term."""
    valor_total = totals.valor_total
    valor_final = appreciated_value(valor_total, deal.apreciacao, deal.prazo_obra_anos)
    lucro = valor_final - valor_total

    ultimo_mes = max((e.mes for e in events), default=0)
    mes_venda = max(deal.mes_entrega, ultimo_mes) + 1
    fluxos = _outflows_by_month(events)
    fluxos[mes_venda] = fluxos.get(mes_venda, 0.0) + valor_final

    return ResaleScenario(
        valor_final=valor_final,
        lucro=lucro,
        roi=_ratio_percent(lucro, valor_total),
        roas=_ratio_percent(lucro, totals.total_cliente),
        tir=annualized_tir(fluxos),
        prazo=deal.prazo_obra_anos,
    )


def compute_short_stay(totals: Totals, deal: Deal, events: Sequence[ScheduleEvent]) -> ShortStayScenario:
    """Scenario 2: hold for five years of short-stay operation after delivery."""
    valor_total = totals.valor_total
    valor_final = appreciated_value(valor_total, deal.apreciacao, deal.prazo_obra_anos)
    patrimonio_acrescido = valor_final - valor_total

    receita_mensal_bruta = deal.adr_diaria * (deal.ocupacao / 100) * DAYS_PER_MONTH
    aluguel_liquido = receita_mensal_bruta * (1 - deal.custos_operacionais / 100)
    renda_acumulada = aluguel_liquido * SHORT_STAY_MONTHS
    retorno_total = patrimonio_acrescido + renda_acumulada

    # Rent from the month after delivery; the property is valued at the end
    fluxos = _outflows_by_month(events)
    entrega = deal.mes_entrega
    for mes in range(entrega + 1, entrega + SHORT_STAY_MONTHS + 1):
        fluxos[mes] = fluxos.get(mes, 0.0) + aluguel_liquido
    ultimo_mes = max(fluxos)
    fluxos[ultimo_mes] = fluxos[ultimo_mes] + valor_final

    return ShortStayScenario(
        valor_final=valor_final,
        patrimonio_acrescido=patrimonio_acrescido,
        adr_diaria=deal.adr_diaria,
        receita_mensal_bruta=receita_mensal_bruta,
        aluguel_liquido=aluguel_liquido,
        renda_acumulada=renda_acumulada,
        retorno_total=retorno_total,
        roi=_ratio_percent(retorno_total, valor_total),
        roas=_ratio_percent(retorno_total, totals.total_cliente),
        tir=annualized_tir(fluxos),
        prazo_total=deal.prazo_obra_anos + SHORT_STAY_YEARS,
    )


def compute_scenarios(
    totals: Totals,
    deal: Deal,
    events: Optional[Sequence[ScheduleEvent]] = None,
) -> Scenarios:
    """
    Compute both return scenarios.

    Args:
        totals: Totals from the schedule builder
        deal: Normalized deal
        events: Schedule events for the IRR cash flows; rebuilt from the deal
            when omitted

    Returns:
        Scenarios with the resale and short-stay projections
    """
    if events is None:
        events = build_schedule(deal).events

    return Scenarios(
        cenario1=compute_resale(totals, deal, events),
        cenario2=compute_short_stay(totals, deal, events),
    )
