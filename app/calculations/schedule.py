"""
Payment Schedule

Builds the dated list of payments of a deal and the aggregate totals by payer.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, List, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from app.calculations.deal import AVista, Deal, ExtraQuando, Financiamento, PosConstrutora

logger = logging.getLogger(__name__)

RESPONSAVEL_CLIENTE = "cliente"
RESPONSAVEL_INQUILINO = "inquilino"  # paid from short-stay rental income


@dataclass(frozen=True)
class ScheduleEvent:
    """A single dated payment."""

    tipo: str
    data: date
    valor: float
    responsavel: str
    mes: int  # Month offset from the deal's anchor date
    acumulado: float = 0.0
    percentual: float = 0.0


@dataclass(frozen=True)
class Totals:
    """Aggregate sums of a deal's payment flow."""

    valor_total: float
    total_entrada: float
    total_obra: float
    total_reforcos: float
    total_chaves: float  # Cash balance paid by the client at delivery
    total_pos_chaves: float  # Builder installments after delivery
    total_chaves_extra: float
    total_financiado: float
    total_cliente: float
    total_short_stay: float
    total_fluxo_sem_fin: float
    total_ate_chaves: float
    total_coberto: float
    saldo_a_compor: float  # Negative means surplus
    preco_m2: float
    entrada_percent: float
    obra_percent: float


@dataclass(frozen=True)
class Schedule:
    """Sorted payment events and their totals."""

    events: Tuple[ScheduleEvent, ...]
    totals: Totals


def add_months(start_date: date, months: int) -> date:
    """Shift a date by whole months, clamping to the end of shorter months."""
    return start_date + relativedelta(months=months)


def months_between(start_date: date, end_date: date) -> int:
    """Whole calendar months from start_date to end_date (may be negative)."""
    return (end_date.year - start_date.year) * 12 + (end_date.month - start_date.month)


def reforco_month(deal: Deal, index: int) -> int:
    """
    Month offset of the index-th (0-based) reinforcement.

    Never later than the last construction installment, so a frequency too
    long for the construction term bunches the remaining reinforcements there.
    """
    last_obra = max(deal.durante_obra_parcelas - 1, 0)
    return deal.entrada_parcelas + min(last_obra, index * deal.balao_frequencia_meses)


def _ratio(part: float, base: float) -> float:
    """part / base, or 0 when the base is empty or the quotient overflows."""
    if base <= 0:
        return 0.0
    ratio = part / base
    return ratio if math.isfinite(ratio) else 0.0


def _percent_of(part: float, base: float) -> float:
    return _ratio(part, base) * 100


def split_installments(total: float, count: int) -> List[float]:
    """
    Split an amount into equal installments.

    The last installment takes the rounding remainder, so the installments
    add back up to the amount.
    """
    if count <= 1:
        return [total]
    parcelas = [total / count] * (count - 1)
    parcelas.append(total - math.fsum(parcelas))
    return parcelas


def _installments(deal: Deal) -> Dict[str, List[float]]:
    """Installment amounts of each component, keyed by component."""
    chaves = deal.chaves
    componentes = {
        "entrada": split_installments(deal.entrada_valor, deal.entrada_parcelas),
        "obra": [deal.obra_parcela_valor] * deal.durante_obra_parcelas,
        "reforcos": [],
        "chaves": [],
        "pos_chaves": [],
        "extra_entrega": [],
        "extra_pos_chaves": [],
    }
    if deal.balao_quantidade > 0 and deal.balao_valor > 0:
        componentes["reforcos"] = [deal.balao_valor] * deal.balao_quantidade
    if isinstance(chaves, AVista) and chaves.valor > 0:
        componentes["chaves"] = [chaves.valor]
    if isinstance(chaves, PosConstrutora) and chaves.valor > 0:
        componentes["pos_chaves"] = split_installments(chaves.valor, chaves.parcelas)

    extra = getattr(chaves, "extra", None)
    if extra is not None and extra.valor > 0:
        if extra.quando == ExtraQuando.pos_chaves:
            componentes["extra_pos_chaves"] = [extra.valor]
        else:
            componentes["extra_entrega"] = [extra.valor]
    return componentes


def calculate_totals(deal: Deal) -> Totals:
    """
    Calculate the aggregate totals straight from the deal.

    Independent of the event list; build_schedule() relies on both paths
    agreeing. Sums use math.fsum, so they do not depend on payment order.
    """
    componentes = _installments(deal)
    chaves = deal.chaves

    total_entrada = math.fsum(componentes["entrada"])
    total_obra = math.fsum(componentes["obra"])
    total_reforcos = math.fsum(componentes["reforcos"])
    total_chaves = math.fsum(componentes["chaves"])
    total_pos_chaves = math.fsum(componentes["pos_chaves"])
    total_financiado = chaves.valor if isinstance(chaves, Financiamento) else 0.0

    ate_chaves = componentes["entrada"] + componentes["obra"] + componentes["reforcos"]
    cliente = ate_chaves + componentes["chaves"] + componentes["extra_entrega"]
    extras = componentes["extra_entrega"] + componentes["extra_pos_chaves"]
    short_stay = componentes["pos_chaves"] + componentes["extra_pos_chaves"]

    total_cliente = math.fsum(cliente)
    total_short_stay = math.fsum(short_stay)
    total_coberto = math.fsum(cliente + short_stay + [total_financiado])

    return Totals(
        valor_total=deal.valor_total,
        total_entrada=total_entrada,
        total_obra=total_obra,
        total_reforcos=total_reforcos,
        total_chaves=total_chaves,
        total_pos_chaves=total_pos_chaves,
        total_chaves_extra=math.fsum(extras),
        total_financiado=total_financiado,
        total_cliente=total_cliente,
        total_short_stay=total_short_stay,
        total_fluxo_sem_fin=math.fsum(cliente + short_stay),
        total_ate_chaves=math.fsum(ate_chaves),
        total_coberto=total_coberto,
        saldo_a_compor=deal.valor_total - total_coberto,
        preco_m2=_ratio(deal.valor_total, deal.area),
        entrada_percent=_percent_of(total_entrada, deal.valor_total),
        obra_percent=_percent_of(total_obra, deal.valor_total),
    )


def _emit_events(deal: Deal) -> List[ScheduleEvent]:
    """Emit the payment events in rule order (not date order)."""
    anchor = deal.data_base
    events = []

    def emit(tipo: str, mes: int, valor: float, responsavel: str = RESPONSAVEL_CLIENTE):
        events.append(ScheduleEvent(tipo, add_months(anchor, mes), valor, responsavel, mes))

    # === DOWN PAYMENT ===
    n_entrada = deal.entrada_parcelas
    for i, parcela in enumerate(split_installments(deal.entrada_valor, n_entrada)):
        tipo = "Entrada (ato)" if n_entrada == 1 else f"Entrada {i + 1}/{n_entrada}"
        emit(tipo, i, parcela)

    # === CONSTRUCTION ===
    n_obra = deal.durante_obra_parcelas
    for i in range(n_obra):
        emit(f"Obra {i + 1}/{n_obra}", n_entrada + i, deal.obra_parcela_valor)

    # === REINFORCEMENTS ===
    n_reforcos = deal.balao_quantidade
    if n_reforcos > 0 and deal.balao_valor > 0:
        for i in range(n_reforcos):
            emit(f"Reforço {i + 1}/{n_reforcos}", reforco_month(deal, i), deal.balao_valor)

    # === DELIVERY BALANCE ===
    chaves = deal.chaves
    entrega = deal.mes_entrega

    if isinstance(chaves, AVista) and chaves.valor > 0:
        emit("Chaves (à vista)", entrega, chaves.valor)

    if isinstance(chaves, PosConstrutora) and chaves.valor > 0:
        parcelas = split_installments(chaves.valor, chaves.parcelas)
        for i, parcela in enumerate(parcelas, start=1):
            emit(f"Pós-chaves {i}/{chaves.parcelas}", entrega + i, parcela, RESPONSAVEL_INQUILINO)

    # Financing emits nothing: the bank pays the balance at delivery

    extra = getattr(chaves, "extra", None)
    if extra is not None and extra.valor > 0:
        if extra.quando == ExtraQuando.pos_chaves:
            emit("Parcela extra (pós-chaves)", entrega + 1, extra.valor, RESPONSAVEL_INQUILINO)
        else:
            emit("Parcela extra (entrega)", entrega, extra.valor)

    return events


def accumulate(events: Sequence[ScheduleEvent], total: float) -> Tuple[ScheduleEvent, ...]:
    """
    Stable-sort events by date and attach running totals.

    Running totals use math.fsum, so the last one equals the fsum-based
    totals exactly whatever the date order.
    """
    valores = []
    result = []
    for event in sorted(events, key=lambda e: e.data):
        valores.append(event.valor)
        acumulado = math.fsum(valores)
        result.append(
            replace(event, acumulado=acumulado, percentual=_percent_of(acumulado, total))
        )
    return tuple(result)


def build_schedule(deal: Deal) -> Schedule:
    """
    Build the chronological payment schedule of a deal.

    Args:
        deal: Normalized deal

    Returns:
        Schedule with events sorted by date (ties keep emission order) and
        totals calculated independently of the events
    """
    totals = calculate_totals(deal)
    events = accumulate(_emit_events(deal), totals.total_fluxo_sem_fin)

    logger.debug(
        f"Built schedule: {len(events)} events, cliente={totals.total_cliente:.2f} "
        f"short_stay={totals.total_short_stay:.2f} financiado={totals.total_financiado:.2f}"
    )

    return Schedule(events=events, totals=totals)


def client_events(events: Sequence[ScheduleEvent]) -> List[ScheduleEvent]:
    """Events paid directly by the client."""
    return [e for e in events if e.responsavel == RESPONSAVEL_CLIENTE]
