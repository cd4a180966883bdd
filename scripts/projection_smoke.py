from __future__ import annotations

from finproj.tools.projection_tools import (
    tool_allocate_surplus, tool_compare_debt_strategies, tool_compare_savings_strategies,
    tool_project_collections, tool_project_debts, tool_project_savings,
)
from finproj.utils.money import round_currency


def main():
    debts = [
        {"id": "visa", "tipo": "credit_card", "monto": 6000, "monto_actual": 4500,
         "tasa_interes": 22.9, "pagos_minimos": 135, "fecha_vencimiento": "2026-11-05T00:00:00.000Z"},
        {"id": "car", "tipo": "car_loan", "monto": 18000, "monto_actual": 9200,
         "tasa_interes": 6.5, "pagos_minimos": 310},
        {"id": "personal", "tipo": "personal_loan", "monto": 3000, "monto_actual": 1200,
         "tasa_interes": 11.0, "pagos_minimos": 60},
    ]
    dp = tool_project_debts({"debts": debts, "extra_payment": "200", "strategy": "avalanche"})
    print("Avalanche months:", dp["months_to_pay_off"], "payoff:", dp["payoff_date"])
    print("Avalanche interest:", round_currency(dp["total_interest"]))

    cmp = tool_compare_debt_strategies({"debts": debts, "extra_payment": "200"})
    for proj, saved in zip(cmp["projections"], cmp["savings_vs_minimum"]):
        print("Strategy:", proj["strategy"], proj["months_to_pay_off"], "months,",
              "saves", round_currency(saved["interest_saved"]), "interest")

    receivables = [{"id": "loan-to-ana", "tipo": "personal_loan", "monto_actual": 800, "pagos_minimos": 100}]
    col = tool_project_collections({"debts": receivables, "strategy": "conservative"})
    print("Collection months:", col["months_to_collect"], "expected:", round_currency(col["expected_collection"]))

    sp = tool_project_savings({
        "initialAmount": 1000,
        "monthlyContribution": 200,
        "years": 10,
        "strategy": "moderate",
        "targetAmount": 50000,
    })
    print("Future value:", round_currency(sp["future_value"]), "years to target:", sp["years_to_target"],
          "months to target:", sp["months_to_target"])

    slider = tool_project_savings({"initialAmount": 1000, "monthlyContribution": 200, "years": 10, "annualRatePercent": 7.5})
    print("Custom 7.5%:", round_currency(slider["future_value"]))

    for s in tool_compare_savings_strategies({"initial_amount": 1000, "monthly_contribution": 200, "years": 10})["projections"]:
        print("Savings strategy:", s["strategy"], round_currency(s["future_value"]))

    eff = tool_allocate_surplus({
        "budget": {"id": "b1", "category": "groceries", "amount": 500},
        "spent": 380,
        "strategy": {"type": "redistribute", "redistributionTargets": [
            {"categoryId": "fun", "percentage": 60},
            {"categoryId": "emergency", "percentage": 40},
        ]},
    })
    for tx in eff["transactions"]:
        print("Move", round_currency(tx["amount"]), "to", tx["category_id"])


if __name__ == "__main__":
    main()
