"""
Proposal Pipeline

Runs the four calculation stages in order for a deal. Results are cached per
identical Deal; every record is frozen, so cached and fresh runs are
indistinguishable.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from typing import Tuple

from app.calculations.clock import Clock, system_clock
from app.calculations.comparatives import ComparativoResult, compare_investments
from app.calculations.deal import Deal
from app.calculations.flow import FlowSummary, summarize_flow
from app.calculations.scenarios import Scenarios, compute_scenarios
from app.calculations.schedule import ScheduleEvent, Totals, build_schedule
from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class ProposalResult:
    """Everything derived from a deal."""

    deal: Deal
    events: Tuple[ScheduleEvent, ...]
    totals: Totals
    fluxo: FlowSummary
    cenarios: Scenarios
    comparativos: Tuple[ComparativoResult, ...]


@dataclass(frozen=True)
class Proposal:
    """A calculated proposal plus its clock-dependent footer data."""

    result: ProposalResult
    ano_referencia: int  # Copyright year in the proposal footer
    validade: date


@lru_cache(maxsize=settings.calculation_cache_size)
def calculate_proposal(deal: Deal) -> ProposalResult:
    """Calculate schedule, flow, scenarios and comparatives for a deal (cached)."""
    schedule = build_schedule(deal)
    fluxo = summarize_flow(schedule.totals, deal)
    cenarios = compute_scenarios(schedule.totals, deal, schedule.events)
    comparativos = compare_investments(deal.comparativos, schedule.events, deal.prazo_obra_anos)

    logger.info(
        f"Calculated proposal: valor_total={deal.valor_total:.2f} "
        f"events={len(schedule.events)} comparativos={len(comparativos)}"
    )

    return ProposalResult(
        deal=deal,
        events=schedule.events,
        totals=schedule.totals,
        fluxo=fluxo,
        cenarios=cenarios,
        comparativos=comparativos,
    )


def build_proposal(deal: Deal, clock: Clock = system_clock) -> Proposal:
    """
    Calculate a deal and stamp the proposal footer data.

    Args:
        deal: Normalized deal
        clock: Provider of today's date (footer year)

    Returns:
        Proposal valid for the configured number of days from the deal date
    """
    return Proposal(
        result=calculate_proposal(deal),
        ano_referencia=clock().year,
        validade=deal.data_base + timedelta(days=settings.proposal_validity_days),
    )
