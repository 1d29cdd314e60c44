"""Example: Salon detail view on an in-memory store

Builds a small MemoryStore with two years of facts and a baseline override,
then prints the growth bonus and the brand breakdown for one salon. No
database needed.
"""

import logging

from salon_bonus import ALL_SUPPLIERS, BonusConfig, MemoryStore, get_salon_detail

logging.basicConfig(level=logging.INFO)


def fact(salon_id, supplier_id, period, total, loyalty, details):
    return {
        "salon_id": salon_id,
        "supplier_id": supplier_id,
        "period": period,
        "total_turnover": total,
        "loyalty_bonus_amount": loyalty,
        "calculation_details": {"details": details},
    }


store = MemoryStore(
    facts=[
        fact("s-1", "loreal", "2024-01", 60_000, 3_000, [
            {"brand": "Majirel", "turnover": 35_000, "loyalty": 1_750, "product_group": "kjemi"},
            {"brand": "Kerastase", "turnover": 25_000, "loyalty": 1_250, "product_group": "produkt"},
        ]),
        fact("s-1", "loreal", "2024-02", 45_000, 2_250, [
            {"brand": "Majirel", "turnover": 45_000, "loyalty": 2_250, "product_group": "kjemi"},
        ]),
        fact("s-1", "loreal", "2023-05", 90_000, 4_500, [
            {"brand": "Majirel", "turnover": 60_000, "loyalty": 3_000, "product_group": "kjemi"},
            {"brand": "Kerastase", "turnover": 30_000, "loyalty": 1_500, "product_group": "produkt"},
        ]),
        fact("s-1", "wella", "2024-01", 12_000, 600, [
            {"brand": "Koleston", "turnover": 12_000, "loyalty": 600, "product_group": "kjemi"},
        ]),
    ],
    overrides=[
        {"salon_id": "s-1", "supplier_id": "loreal", "year": 2023,
         "override_turnover": 100_000, "reason": "Kjede-overtakelse i mai"},
    ],
    salons=[{"id": "s-1", "name": "Salong Sentrum"}],
    suppliers=[{"id": "loreal", "name": "L'Oréal"}, {"id": "wella", "name": "Wella"}],
)
config = BonusConfig(growth_supplier_id="loreal")

detail = get_salon_detail(store, config, "s-1", 2024).unwrap()

print(f"{detail.salon_name} {detail.year}")
print("-" * 60)
g = detail.growth
print(f"Growth supplier turnover: {g.current_turnover:,.0f} vs {g.prev_turnover:,.0f}"
      f" (calculated {g.calculated_prev_turnover:,.0f}, override: {g.override_reason})")
print(f"Growth {g.growth_percent:.1f}% -> tier {g.tier}, bonus {g.bonus_amount:,.0f}")
for target in detail.growth_targets:
    print(f"  tier {target.tier}: {target.amount_needed:,.0f} more for {target.potential_bonus:,.0f}")

print(f"\nBrand breakdown (correction factor {detail.correction_factor:.3f})")
for b in detail.breakdown:
    print(f"{b.brand:<12} {b.total:>10,.0f} kjemi bonus {b.kjemi_bonus:>8,.0f}"
          f" produkt bonus {b.produkt_bonus:>8,.0f} trend {b.trend_percent:+.1f}%")

all_brands = get_salon_detail(store, config, "s-1", 2024, supplier_id=ALL_SUPPLIERS).unwrap()
print(f"\nAll suppliers: {[b.brand for b in all_brands.breakdown]}")
