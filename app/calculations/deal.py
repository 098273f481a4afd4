"""
Deal Inputs

Immutable, clamped representation of the consultant's deal parameters.
Every calculation stage receives a Deal built once by normalize_deal().
"""

import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Mapping, Optional, Tuple, Union

from app.calculations.clock import Clock, system_clock

logger = logging.getLogger(__name__)

# Upper bounds keeping every derived date and amount representable
MAX_AMOUNT = 1e15
MAX_PARCELAS = 1200  # 100 years of monthly installments
MAX_PRAZO_OBRA_ANOS = 100
MAX_DATA_BASE = date(2999, 12, 31)

TRUE_STRINGS = {"true", "1", "yes", "sim", "on"}


class ChavesForma(str, enum.Enum):
    """How the delivery balance is settled."""
    financiamento = "financiamento"
    avista = "avista"
    pos_construtora = "posConstrutora"


class ExtraQuando(str, enum.Enum):
    """Timing of the optional surcharge installment."""
    na_entrega = "na_entrega"
    pos_chaves = "pos_chaves"


class OverrideState(str, enum.Enum):
    """Origin of a value that may be auto-suggested."""
    unset = "unset"
    auto = "auto"
    user_overridden = "user_overridden"


@dataclass(frozen=True)
class Overridable:
    """A field that follows an automatic suggestion until the user types one."""

    state: OverrideState = OverrideState.unset
    value: Optional[int] = None

    @property
    def resolved(self) -> int:
        return self.value if self.value is not None else 0


def suggest_obra_parcelas(campo: Overridable, prazo_obra_anos: float) -> Overridable:
    """
    Apply the construction-term suggestion to the installment count.

    One installment per month of construction, unless the user picked a
    count of their own. A zero term leaves the field as it is.
    """
    if campo.state == OverrideState.user_overridden:
        return campo
    if prazo_obra_anos <= 0:
        return campo
    return Overridable(OverrideState.auto, round_half_up(prazo_obra_anos * 12))


@dataclass(frozen=True)
class ChavesExtra:
    """Surcharge installment attached to a non-financed delivery balance."""

    valor: float
    quando: ExtraQuando = ExtraQuando.na_entrega


@dataclass(frozen=True)
class Financiamento:
    """Balance financed by a bank; a flat pass-through amount."""

    forma: ClassVar[ChavesForma] = ChavesForma.financiamento
    valor: float = 0.0


@dataclass(frozen=True)
class AVista:
    """Balance paid in cash by the client at delivery."""

    forma: ClassVar[ChavesForma] = ChavesForma.avista
    valor: float = 0.0
    extra: Optional[ChavesExtra] = None


@dataclass(frozen=True)
class PosConstrutora:
    """Balance paid to the builder in installments after delivery."""

    forma: ClassVar[ChavesForma] = ChavesForma.pos_construtora
    valor: float = 0.0
    parcelas: int = 1
    extra: Optional[ChavesExtra] = None


Chaves = Union[Financiamento, AVista, PosConstrutora]


@dataclass(frozen=True)
class Comparativo:
    """An alternative investment compared against the client's outflows."""

    id: str
    nome: str = ""
    taxa_anual: float = 0.0
    descricao: str = ""
    highlight: bool = False

    @property
    def is_placeholder(self) -> bool:
        """An untouched row: no name, no description, zero rate."""
        return not self.nome and not self.descricao and self.taxa_anual == 0


@dataclass(frozen=True)
class Deal:
    """Normalized deal parameters. All amounts >= 0, all counts integral."""

    data_base: date
    valor_total: float = 0.0
    entrada_valor: float = 0.0
    entrada_parcelas: int = 1
    obra_parcela_valor: float = 0.0
    obra_parcelas: Overridable = field(default_factory=Overridable)
    balao_valor: float = 0.0
    balao_quantidade: int = 0
    balao_frequencia_meses: int = 1
    chaves: Chaves = field(default_factory=Financiamento)
    prazo_obra_anos: float = 0.0
    apreciacao: float = 0.0
    adr_diaria: float = 0.0
    ocupacao: float = 0.0
    custos_operacionais: float = 0.0
    area: float = 0.0
    comparativos: Tuple[Comparativo, ...] = ()

    @property
    def durante_obra_parcelas(self) -> int:
        return self.obra_parcelas.resolved

    @property
    def mes_entrega(self) -> int:
        """Month offset of the delivery of the keys."""
        return self.entrada_parcelas + self.durante_obra_parcelas


# Example deal used by the "Exemplo" button of the proposal form
SAMPLE_RECORD = {
    "valorTotal": 980000,
    "entradaValor": 98000,
    "entradaParcelas": 1,
    "obraParcelaValor": 12250,
    "duranteObraParcelas": 36,
    "balaoValor": 0,
    "balaoQuantidade": 0,
    "balaoFrequenciaMeses": 6,
    "chavesForma": "financiamento",
    "chavesValor": 441000,
    "chavesPosParcelas": 0,
    "chavesExtraValor": 0,
    "chavesExtraQuando": "na_entrega",
    "prazoObraAnos": 3,
    "apreciacao": 18,
    "adrDiaria": 350,
    "ocupacao": 70,
    "custosOperacionais": 30,
    "area": 74,
    "comparativos": [
        {"id": "1", "nome": "CDI", "taxaAnual": 10.5, "descricao": "Renda fixa pós-fixada", "highlight": False},
        {"id": "2", "nome": "Poupança", "taxaAnual": 6.17, "descricao": "Caderneta de poupança", "highlight": False},
        {"id": "3", "nome": "", "taxaAnual": 0, "descricao": "", "highlight": False},
    ],
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _to_number(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _amount(value: Any, cap: float = MAX_AMOUNT) -> float:
    """Non-negative finite amount, bounded above."""
    return min(cap, max(0.0, _to_number(value)))


def _percent(value: Any, cap: Optional[float] = None) -> float:
    number = _amount(value)
    if cap is not None:
        number = min(cap, number)
    return number


def _count(value: Any, minimum: int = 0, maximum: int = MAX_PARCELAS) -> int:
    """Whole, non-negative count between minimum and maximum."""
    return max(minimum, min(maximum, int(math.floor(_amount(value)))))


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def _parse_date(value: Any, clock: Clock) -> date:
    return min(MAX_DATA_BASE, _read_date(value, clock))


def _read_date(value: Any, clock: Clock) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            logger.debug(f"Unparseable deal date {value!r}, using clock")
    return clock()


def _parse_obra_parcelas(record: Mapping[str, Any], prazo_obra_anos: float) -> Overridable:
    raw = record.get("duranteObraParcelas")
    origem = record.get("duranteObraParcelasOrigem")
    if raw is None or raw == "":
        campo = Overridable()
    elif origem == "auto":
        campo = Overridable(OverrideState.auto, _count(raw))
    elif _count(raw) == 0 and origem != "usuario":
        # An empty count only sticks when the user typed it
        campo = Overridable()
    else:
        campo = Overridable(OverrideState.user_overridden, _count(raw))
    return suggest_obra_parcelas(campo, prazo_obra_anos)


def _parse_chaves(record: Mapping[str, Any]) -> Chaves:
    valor = _amount(record.get("chavesValor"))
    try:
        forma = ChavesForma(record.get("chavesForma") or ChavesForma.financiamento)
    except ValueError:
        logger.debug(f"Unknown chavesForma {record.get('chavesForma')!r}, treating as financing")
        forma = ChavesForma.financiamento

    if forma == ChavesForma.financiamento:
        return Financiamento(valor=valor)

    extra = None
    extra_valor = _amount(record.get("chavesExtraValor"))
    if extra_valor > 0:
        try:
            quando = ExtraQuando(record.get("chavesExtraQuando") or ExtraQuando.na_entrega)
        except ValueError:
            quando = ExtraQuando.na_entrega
        extra = ChavesExtra(valor=extra_valor, quando=quando)

    if forma == ChavesForma.avista:
        return AVista(valor=valor, extra=extra)
    return PosConstrutora(
        valor=valor,
        parcelas=_count(record.get("chavesPosParcelas"), minimum=1),
        extra=extra,
    )


def _parse_comparativos(raw: Any) -> Tuple[Comparativo, ...]:
    if not raw:
        return ()
    comparativos = []
    for position, item in enumerate(raw, start=1):
        if not isinstance(item, Mapping):
            continue
        comparativos.append(
            Comparativo(
                id=_text(item.get("id")) or str(position),
                nome=_text(item.get("nome")),
                taxa_anual=_amount(item.get("taxaAnual")),
                descricao=_text(item.get("descricao")),
                highlight=_flag(item.get("highlight", False)),
            )
        )
    return tuple(comparativos)


def normalize_deal(record: Mapping[str, Any], clock: Clock = system_clock) -> Deal:
    """
    Build a Deal from a flat DealInput record.

    Never raises: invalid or non-finite numbers become 0, negatives are
    floored to 0, counts are floored to integers with their minimums, and an
    unparseable date falls back to the clock. Amounts, counts, the
    construction term and the date are capped so that every month offset the
    schedule derives stays a valid date.

    Args:
        record: Mapping with the camelCase DealInput keys
        clock: Provider of today's date

    Returns:
        Frozen, hashable Deal
    """
    prazo_obra_anos = _amount(record.get("prazoObraAnos"), cap=MAX_PRAZO_OBRA_ANOS)

    return Deal(
        data_base=_parse_date(record.get("date"), clock),
        valor_total=_amount(record.get("valorTotal")),
        entrada_valor=_amount(record.get("entradaValor")),
        entrada_parcelas=_count(record.get("entradaParcelas"), minimum=1),
        obra_parcela_valor=_amount(record.get("obraParcelaValor")),
        obra_parcelas=_parse_obra_parcelas(record, prazo_obra_anos),
        balao_valor=_amount(record.get("balaoValor")),
        balao_quantidade=_count(record.get("balaoQuantidade")),
        balao_frequencia_meses=_count(record.get("balaoFrequenciaMeses"), minimum=1),
        chaves=_parse_chaves(record),
        prazo_obra_anos=prazo_obra_anos,
        apreciacao=_percent(record.get("apreciacao")),
        adr_diaria=_amount(record.get("adrDiaria")),
        ocupacao=_percent(record.get("ocupacao"), cap=100.0),
        custos_operacionais=_percent(record.get("custosOperacionais"), cap=100.0),
        area=_amount(record.get("area")),
        comparativos=_parse_comparativos(record.get("comparativos")),
    )
