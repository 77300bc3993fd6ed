"""Example: Daily Sales Recap and pivots for one store

This example fetches one day of LingaPOS data, prints the recap figures and
a category pivot, and writes the full workbook:
1. Fetch every collection concurrently (one consistent snapshot)
2. Ingest into a ReportBatch
3. Aggregate: recap, pivot, void log, staff metrics
4. Export to Excel

Prerequisites:
- Set LINGA_API_KEY (and optionally LINGA_BASE, LINGA_TZ)
- Create stores.json mapping store names to Linga store ids
"""

from datetime import date

from linga_core import LingaClient, LingaSettings, load_batch
from linga_core.config import load_store_map, resolve_store
from linga_core.export import export_batch
from linga_core.reports import Dimension, filter_voids, pivot, recap_for_batch, staff_metrics

settings = LingaSettings.from_env()
stores = load_store_map("stores.json")
store_id, store_name = resolve_store(stores, name="Common Grounds DIFC")  # MODIFY AS NEEDED

day = date(2024, 1, 5)  # MODIFY AS NEEDED

print(f"Fetching {store_name} for {day}...")
batch = load_batch(LingaClient(settings), store_id, day, day, tz=settings.timezone)
print(f"  {len(batch.tickets)} tickets, {len(batch.order_lines)} order lines")

# Daily Sales Recap against the manager's target
recap = recap_for_batch(batch, operational_target=12000)
print(f"\nNet sales: {recap.net_total:,.2f} (variance {recap.variance_pct:.1f}%)")
for name, seg in recap.segments.items():
    print(f"  {name:<10} {seg.revenue:>10,.2f}  covers {seg.covers}")

# Top categories by gross
print("\nTop categories:")
for row in pivot(batch, Dimension.CATEGORY)[:5]:
    print(f"  {row.key:<20} {row.value:>10,.2f}  x{row.count}")

print(f"\nVoids: {len(filter_voids(batch.order_lines, batch.employees))}")
for staff in staff_metrics(batch.tickets, batch.employees):
    print(f"  {staff.name:<15} {staff.net_sales:>10,.2f}  {staff.covers} covers")

paths = export_batch(
    batch,
    f"Linga_Analytics_{store_name}.xlsx",
    store_name=store_name,
    recap=recap,
    dimensions=[Dimension.CATEGORY, Dimension.HOUR],
)
print(f"\n[OK] Wrote {paths[0]}")
