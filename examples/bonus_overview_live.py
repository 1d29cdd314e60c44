"""Example: Chain-wide bonus overview from the live database

Fetches one year of bonus facts through PostgREST and prints the chain totals
and the per-salon overview.

Prerequisites:
- Set BONUS_STORE_URL, BONUS_STORE_KEY environment variables
- Set BONUS_GROWTH_SUPPLIER_ID to the supplier that pays the growth bonus
"""

import logging

from salon_bonus import BonusConfig, PostgrestStore, get_chain_totals, get_salon_bonus_overview

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

store = PostgrestStore.from_env()
config = BonusConfig.from_env()

year = 2024  # MODIFY AS NEEDED

totals = get_chain_totals(store, config, year)
if not totals.ok:
    raise SystemExit(f"Chain totals failed ({totals.error_kind}): {totals.error}")

t = totals.value
print(f"Chain totals {year}")
print("-" * 60)
print(f"Turnover:            {t.total_turnover:>14,.0f}")
print(f"Loyalty bonus:       {t.loyalty_bonus:>14,.0f}")
print(f"Growth bonus:        {t.growth_bonus:>14,.0f}")
print(f"Total bonus:         {t.total_bonus:>14,.0f}")
print(f"Previous year:       {t.previous_year_turnover:>14,.0f}\n")

overview = get_salon_bonus_overview(store, config, year)
rows = sorted(overview.unwrap(), key=lambda r: r.total_bonus, reverse=True)

print(f"Top salons by total bonus ({len(rows)} salons)")
print("-" * 60)
for row in rows[:20]:
    print(f"{row.salon_name:<30} {row.turnover:>12,.0f} {row.total_bonus:>12,.0f}")

if overview.integrity_warnings:
    print(f"\n{len(overview.integrity_warnings)} fact(s) where brand details do not add up")
if overview.quarantined:
    print(f"{len(overview.quarantined)} record(s) quarantined")
