"""Print study progress for every pool from the local database.

Usage:
    python3 scripts/pool_report.py                 # All domains
    python3 scripts/pool_report.py --domain alphabet
"""
import argparse
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from flashcards.config import settings
from flashcards.database import SessionLocal
from flashcards.services.attempt_store import aggregate_by_item, overall_totals
from flashcards.services.catalog import DOMAINS, PoolFilter, load_catalog
from flashcards.services.confidence import summarize
from flashcards.services.errors import EmptyPool
from flashcards.services.phase import determine_phase


def _print_pool(db, catalog, pool: PoolFilter):
    ids = [item.id for item in catalog.list_items(pool)]
    stats = aggregate_by_item(db, ids)
    summary = summarize(ids, stats)
    totals = overall_totals(db, ids)
    label = f"{pool.domain}/{pool.section}" if pool.section else pool.domain
    print(
        f"  {label:<32} {determine_phase(ids, stats).value:<9} "
        f"seen {summary.seen_count}/{summary.total} ({summary.seen_percentage}%)  "
        f"weak {summary.weak}  learning {summary.learning}  "
        f"strong {summary.strong}  mastered {summary.mastered}  "
        f"answers {totals.correct}/{totals.total}"
    )


def _print_domain(db, catalog, domain: str):
    catalog.domain_items(domain)
    if not DOMAINS[domain].requires_section:
        _print_pool(db, catalog, PoolFilter(domain))
    for section in catalog.sections(domain):
        _print_pool(db, catalog, PoolFilter(domain, section))


def main():
    parser = argparse.ArgumentParser(description="Per-pool study progress")
    parser.add_argument("--domain", choices=sorted(DOMAINS), help="Only this domain")
    args = parser.parse_args()

    catalog = load_catalog(settings.data_dir)
    db = SessionLocal()
    try:
        domains = [args.domain] if args.domain else list(DOMAINS)
        for domain in domains:
            print("=" * 60)
            print(domain.upper())
            print("=" * 60)
            try:
                _print_domain(db, catalog, domain)
            except EmptyPool:
                print("  no items")

        totals = overall_totals(db)
        print(f"\nAll answers: {totals.correct}/{totals.total} correct ({totals.accuracy:.0%})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
