"""
Investment Comparatives

Re-values each of the client's own payments at an alternative annual rate,
compounded monthly up to a common horizon, so the deal can be put side by
side with other instruments.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from app.calculations.deal import MAX_PRAZO_OBRA_ANOS, Comparativo, round_half_up
from app.calculations.irr import annual_to_monthly_irr
from app.calculations.schedule import ScheduleEvent, add_months, client_events, months_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparativoResult:
    """Projection of the client's outflows invested in one instrument."""

    id: str
    nome: str
    descricao: str
    highlight: bool
    taxa_anual: float
    taxa_mensal: float  # Effective monthly rate, percent
    aporte_total: float
    valor_projetado: float
    ganho: float
    roi: float
    prazo_meses: int


def compare_investments(
    comparativos: Sequence[Comparativo],
    events: Sequence[ScheduleEvent],
    prazo_obra_anos: float,
) -> Tuple[ComparativoResult, ...]:
    """
    Project the client's outflows under each comparative rate.

    The horizon is the construction term counted from the first client
    payment, pushed out to the last client payment when that comes later.

    Args:
        comparativos: Instruments to compare; untouched placeholder rows are skipped
        events: Schedule events (only client-paid ones are used)
        prazo_obra_anos: Construction term in years

    Returns:
        One result per non-placeholder instrument, in input order; empty when
        the client pays nothing
    """
    pagamentos = sorted(client_events(events), key=lambda e: e.data)
    aporte_total = math.fsum(e.valor for e in pagamentos)
    if not pagamentos or aporte_total <= 0:
        return ()

    base_date = pagamentos[0].data
    meses_obra = round_half_up(min(max(0.0, prazo_obra_anos), MAX_PRAZO_OBRA_ANOS) * 12)
    horizon_date = max(add_months(base_date, meses_obra), pagamentos[-1].data)
    prazo_meses = months_between(base_date, horizon_date)

    valores = np.array([e.valor for e in pagamentos], dtype=float)
    meses_restantes = np.array(
        [max(0, months_between(e.data, horizon_date)) for e in pagamentos], dtype=float
    )

    results = []
    for comparativo in comparativos:
        if comparativo.is_placeholder:
            continue

        taxa_mensal = annual_to_monthly_irr(max(0.0, comparativo.taxa_anual) / 100)
        with np.errstate(over="ignore", invalid="ignore"):
            valor_projetado = float(np.sum(valores * np.power(1 + taxa_mensal, meses_restantes)))
        if not math.isfinite(valor_projetado):
            logger.debug(f"Projection of {comparativo.nome!r} at {comparativo.taxa_anual}% is out of range")
            valor_projetado = 0.0
        ganho = valor_projetado - aporte_total
        roi = ganho / aporte_total * 100

        results.append(
            ComparativoResult(
                id=comparativo.id,
                nome=comparativo.nome,
                descricao=comparativo.descricao,
                highlight=comparativo.highlight,
                taxa_anual=comparativo.taxa_anual,
                taxa_mensal=taxa_mensal * 100,
                aporte_total=aporte_total,
                valor_projetado=valor_projetado,
                ganho=ganho,
                roi=roi if math.isfinite(roi) else 0.0,
                prazo_meses=prazo_meses,
            )
        )

    logger.debug(f"Compared {len(results)} instruments over {prazo_meses} months")
    return tuple(results)
