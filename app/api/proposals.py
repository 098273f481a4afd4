"""
Proposal calculation API endpoints.

These endpoints accept a flat deal record and return calculated results.
Used by the proposal form for real-time updates.
"""

from dataclasses import asdict
from typing import List, Optional, Union

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.calculations import comparatives, schedule
from app.calculations.deal import Deal, SAMPLE_RECORD, normalize_deal
from app.calculations.proposal import build_proposal

router = APIRouter()


class ComparativoInput(BaseModel):
    """An alternative investment row."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[Union[str, int]] = None
    nome: Optional[str] = ""
    taxa_anual: Optional[float] = 0.0
    descricao: Optional[str] = ""
    highlight: bool = False


class DealInput(BaseModel):
    """Flat deal record as produced by the proposal form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Price
    valor_total: Optional[float] = None
    area: Optional[float] = None

    # Down payment
    entrada_valor: Optional[float] = None
    entrada_parcelas: Optional[float] = None

    # Construction
    obra_parcela_valor: Optional[float] = None
    durante_obra_parcelas: Optional[float] = None
    durante_obra_parcelas_origem: Optional[str] = None  # "auto" | "usuario"

    # Reinforcements
    balao_valor: Optional[float] = None
    balao_quantidade: Optional[float] = None
    balao_frequencia_meses: Optional[float] = None

    # Delivery balance
    chaves_forma: str = "financiamento"
    chaves_valor: Optional[float] = None
    chaves_pos_parcelas: Optional[float] = None
    chaves_extra_valor: Optional[float] = None
    chaves_extra_quando: Optional[str] = None

    # Timing and short stay
    prazo_obra_anos: Optional[float] = None
    apreciacao: Optional[float] = None
    adr_diaria: Optional[float] = None
    ocupacao: Optional[float] = None
    custos_operacionais: Optional[float] = None
    data_base: Optional[str] = Field(default=None, alias="date")

    comparativos: List[ComparativoInput] = []

    def to_deal(self) -> Deal:
        """Normalize into the calculation engine's Deal."""
        return normalize_deal(self.model_dump(by_alias=True))


class ProposalResponse(BaseModel):
    """Full proposal calculation."""

    deal: dict
    schedule: List[dict]
    totals: dict
    flow: dict
    scenarios: dict
    comparatives: List[dict]
    meta: dict


class ScheduleResponse(BaseModel):
    """Payment schedule with totals."""

    schedule: List[dict]
    totals: dict


class ComparativesResponse(BaseModel):
    """Investment comparatives."""

    comparatives: List[dict]


def _deal_payload(deal: Deal) -> dict:
    payload = asdict(deal)
    payload["durante_obra_parcelas"] = deal.durante_obra_parcelas
    payload["mes_entrega"] = deal.mes_entrega
    payload["chaves"]["forma"] = deal.chaves.forma.value
    return payload


@router.post("/calculate", response_model=ProposalResponse)
async def calculate_proposal(inputs: DealInput):
    """Calculate schedule, flow summary, scenarios and comparatives."""
    deal = inputs.to_deal()
    proposal = build_proposal(deal)
    result = proposal.result

    return ProposalResponse(
        deal=_deal_payload(deal),
        schedule=[asdict(e) for e in result.events],
        totals=asdict(result.totals),
        flow=asdict(result.fluxo),
        scenarios=asdict(result.cenarios),
        comparatives=[asdict(c) for c in result.comparativos],
        meta={
            "ano_referencia": proposal.ano_referencia,
            "validade": proposal.validade,
        },
    )


@router.post("/schedule", response_model=ScheduleResponse)
async def calculate_schedule(inputs: DealInput):
    """Generate the payment schedule only."""
    result = schedule.build_schedule(inputs.to_deal())

    return ScheduleResponse(
        schedule=[asdict(e) for e in result.events],
        totals=asdict(result.totals),
    )


@router.post("/comparatives", response_model=ComparativesResponse)
async def calculate_comparatives(inputs: DealInput):
    """Compare the client's outflows against alternative investments."""
    deal = inputs.to_deal()
    events = schedule.build_schedule(deal).events
    results = comparatives.compare_investments(deal.comparativos, events, deal.prazo_obra_anos)

    return ComparativesResponse(comparatives=[asdict(c) for c in results])


@router.get("/sample")
async def sample_deal():
    """Example deal record for the proposal form."""
    return SAMPLE_RECORD
