#!/usr/bin/env python3
"""
Display all events produced by one ingestion run.

Feed URLs come from the environment / .env (EVENTS_CSV_URL, VENUES_CSV_URL, ...).
"""

import asyncio

from citycal.configs.settings import configure_logging
from citycal.ingestion.orchestrator import load_orchestrator_from_config
from citycal.schemas.event import format_instant

configure_logging()

orchestrator = load_orchestrator_from_config()
result = asyncio.run(orchestrator.run())

print("\n" + "=" * 90)
print("📊 ALL EVENTS FROM THE CONFIGURED FEEDS")
print("=" * 90)

for name, feed in result.feed_results.items():
    print(f"  {name:18s} {feed.status.value:16s} {len(feed.rows):5d} rows  {feed.duration_seconds:.2f}s")

if result.events:
    print(f"\n✅ Total Events: {len(result.events)}\n")

    for i, event in enumerate(result.events, 1):
        print(f"{i:3d}. {event.title}")
        end = f" → {format_instant(event.end)}" if event.end else ""
        print(f"    Date: {format_instant(event.start)}{end}")
        print(f"    Venue: {event.venue_name or '-'} [{event.venue_key or 'no venue'}]")
        print(f"    Status: {event.status}")
        if event.category or event.tags:
            print(f"    Category: {event.category or '-'}  Tags: {', '.join(event.tags) or '-'}")
        print()

if result.quarantined:
    print(f"⚠️  Quarantined rows: {len(result.quarantined)}")
    print("    " + ", ".join(f"{reason}: {count}" for reason, count in result.quarantined_by_reason.items()))
    for row in result.quarantined[:20]:
        print(f"    [{row.feed_name}] {row.reason.value}: {row.detail}")

print("=" * 90)
print(f"✅ Run Status: {result.status.value}")
print(f"⏱️  Duration: {result.duration_seconds:.2f}s")
print(
    f"📈 Rows: {result.rows_fetched} fetched, {result.rows_normalized} normalized, "
    f"{result.events_after_dedup} after dedup, {result.events_after_cap} after cap"
)
print(f"🏷️  Venues: {len(result.venues)} loaded, {result.venues_unresolved} events unmatched")
print(f"🎤 Promoters: {len(result.promoters)} active")
print("=" * 90)
