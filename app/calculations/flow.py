"""
Flow Summary

Groups the schedule totals into payer-facing line items. Each item is a
percentage of the base its payer belongs to:

- client-paid items: total paid by the client
- short-stay item: total paid from rental income
- financing item: everything covered (client + short stay + bank)
"""

import math
from dataclasses import dataclass
from typing import Tuple

from app.calculations.deal import AVista, Deal, ExtraQuando, PosConstrutora
from app.calculations.schedule import Totals

BASE_CLIENTE = "cliente"
BASE_SHORT_STAY = "short_stay"
BASE_TOTAL = "total"


@dataclass(frozen=True)
class FlowItem:
    """One line of the flow summary."""

    chave: str
    rotulo: str
    valor: float
    detalhe: str
    percentual: float
    base: str


@dataclass(frozen=True)
class FlowSummary:
    """Line items plus overall coverage figures."""

    itens: Tuple[FlowItem, ...]
    total_cliente: float
    total_short_stay: float
    total_financiado: float
    total_geral: float
    total_coberto: float
    saldo_a_compor: float


def _share(part: float, base: float) -> float:
    if base <= 0:
        return 0.0
    share = part / base * 100
    return share if math.isfinite(share) else 0.0


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def summarize_flow(totals: Totals, deal: Deal) -> FlowSummary:
    """
    Summarize who pays what.

    Args:
        totals: Totals from the schedule builder
        deal: Normalized deal, for installment counts in the sub-labels

    Returns:
        FlowSummary with only the nonzero line items, in payment order
    """
    chaves = deal.chaves
    extra = getattr(chaves, "extra", None)
    extra_entrega = extra.valor if extra is not None and extra.quando == ExtraQuando.na_entrega else 0.0

    total_geral = totals.total_cliente + totals.total_short_stay + totals.total_financiado
    itens = []

    def add(chave: str, rotulo: str, valor: float, detalhe: str, base: str):
        if valor == 0:
            return
        denominador = {
            BASE_CLIENTE: totals.total_cliente,
            BASE_SHORT_STAY: totals.total_short_stay,
            BASE_TOTAL: total_geral,
        }[base]
        itens.append(FlowItem(chave, rotulo, valor, detalhe, _share(valor, denominador), base))

    if deal.entrada_parcelas == 1:
        detalhe_entrada = "Ato"
    else:
        detalhe_entrada = _plural(deal.entrada_parcelas, "parcela", "parcelas")
    add("entrada", "Entrada", totals.total_entrada, detalhe_entrada, BASE_CLIENTE)

    add(
        "obra",
        "Durante a obra",
        totals.total_obra,
        _plural(deal.durante_obra_parcelas, "parcela mensal", "parcelas mensais"),
        BASE_CLIENTE,
    )

    add(
        "reforcos",
        "Reforços",
        totals.total_reforcos,
        f"{_plural(deal.balao_quantidade, 'reforço', 'reforços')} a cada "
        f"{_plural(deal.balao_frequencia_meses, 'mês', 'meses')}",
        BASE_CLIENTE,
    )

    if isinstance(chaves, AVista):
        add("chaves", "Chaves", totals.total_chaves, "À vista na entrega", BASE_CLIENTE)

    add("chaves_extra", "Parcela extra", extra_entrega, "Na entrega das chaves", BASE_CLIENTE)

    if isinstance(chaves, PosConstrutora):
        detalhe = _plural(chaves.parcelas, "parcela pós-chaves", "parcelas pós-chaves")
    else:
        detalhe = "Parcela extra pós-chaves"
    if extra is not None and extra.quando == ExtraQuando.pos_chaves and isinstance(chaves, PosConstrutora):
        detalhe += " + parcela extra"
    add("short_stay", "Quitação via short stay", totals.total_short_stay, detalhe, BASE_SHORT_STAY)

    add("financiamento", "Financiamento bancário", totals.total_financiado, "Saldo na entrega das chaves", BASE_TOTAL)

    return FlowSummary(
        itens=tuple(itens),
        total_cliente=totals.total_cliente,
        total_short_stay=totals.total_short_stay,
        total_financiado=totals.total_financiado,
        total_geral=total_geral,
        total_coberto=totals.total_coberto,
        saldo_a_compor=totals.saldo_a_compor,
    )
