"""
Print the calculated sample proposal.
Handy for checking the engine without the form.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.calculations.deal import SAMPLE_RECORD, normalize_deal
from app.calculations.proposal import build_proposal


def main():
    deal = normalize_deal(SAMPLE_RECORD)
    proposal = build_proposal(deal)
    result = proposal.result
    totals = result.totals

    print(f"Proposta de {deal.data_base.isoformat()} (válida até {proposal.validade.isoformat()})")
    print(f"Valor total: {totals.valor_total:,.2f}  ({totals.preco_m2:,.2f}/m²)")

    print("\nCronograma:")
    for event in result.events:
        print(
            f"  {event.data.isoformat()}  {event.tipo:<28} {event.valor:>14,.2f}"
            f"  {event.acumulado:>14,.2f}  {event.percentual:6.2f}%  [{event.responsavel}]"
        )

    print("\nResumo do fluxo:")
    for item in result.fluxo.itens:
        print(f"  {item.rotulo:<26} {item.valor:>14,.2f}  {item.percentual:6.2f}%  {item.detalhe}")
    print(f"  Saldo a compor: {result.fluxo.saldo_a_compor:,.2f}")

    c1 = result.cenarios.cenario1
    c2 = result.cenarios.cenario2
    print("\nCenário 1 (revenda):")
    print(f"  Valor final {c1.valor_final:,.2f}  lucro {c1.lucro:,.2f}  ROI {c1.roi:.2f}%  ROAS {c1.roas:.2f}%  TIR {c1.tir:.2f}% a.a.")
    print("Cenário 2 (short stay):")
    print(f"  Aluguel líquido {c2.aluguel_liquido:,.2f}/mês  retorno {c2.retorno_total:,.2f}  ROI {c2.roi:.2f}%  ROAS {c2.roas:.2f}%  TIR {c2.tir:.2f}% a.a.")

    if result.comparativos:
        print("\nComparativos:")
        for comp in result.comparativos:
            print(f"  {comp.nome:<12} {comp.taxa_anual:6.2f}% a.a.  projetado {comp.valor_projetado:,.2f}  ganho {comp.ganho:,.2f}  ({comp.prazo_meses} meses)")

    print(f"\n© {proposal.ano_referencia} Alvo BR")


if __name__ == "__main__":
    main()
