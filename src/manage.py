"""Stock ledger management CLI.

Schema management plus the reconciliation jobs, meant to be run on a schedule
(cron, Kubernetes CronJob) against one tenant at a time.

Usage:
    python src/manage.py setup-db                  # Create all tables
    python src/manage.py drop-db                   # Drop all tables
    python src/manage.py reconcile --tenant T      # Repair cache from store
    python src/manage.py summary --tenant T        # Reconcile and report totals
    python src/manage.py rebuild-cache --tenant T  # Overwrite cache from store
    python src/manage.py purge-orphans --tenant T  # Drop cache entries with no record
    python src/manage.py validate --tenant T       # Report integrity issues
"""

import argparse
import sys


def _domain():
    from stockledger.domain import stockledger

    stockledger.init()
    return stockledger


def setup_database():
    from stockledger.utils.db import setup_db

    domain = _domain()
    print("Creating stockledger database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from stockledger.utils.db import drop_db

    domain = _domain()
    print("Dropping stockledger database schema...")
    drop_db(domain)
    print("Done.")


def reconcile(tenant_id):
    """Reconcile every record of the tenant. Returns the number of problem records."""
    from stockledger.reconciliation.checker import InventoryReconciliationService

    problems = 0
    with _domain().domain_context():
        for result in InventoryReconciliationService().reconcile_all(tenant_id):
            if result.is_problem:
                problems += 1
                print(
                    f"  {result.product_id}: store={result.store_available} "
                    f"cache={result.cache_available} issues={result.issues}"
                )
    print(f"Reconciled tenant {tenant_id}: {problems} problem record(s).")
    return problems


def summary(tenant_id):
    from stockledger.reconciliation.checker import InventoryReconciliationService

    with _domain().domain_context():
        result = InventoryReconciliationService().summarize(tenant_id)

    print(f"Tenant {tenant_id} reconciled at {result.reconciled_at.isoformat()}")
    print(f"  checked:             {result.total_checked}")
    print(f"  cache matches:       {result.cache_matches}")
    print(f"  cache mismatches:    {result.cache_mismatches}")
    print(f"  records with issues: {result.records_with_issues}")
    return len(result.problem_records)


def rebuild_cache(tenant_id):
    from stockledger.reconciliation.checker import InventoryReconciliationService

    with _domain().domain_context():
        rebuilt = InventoryReconciliationService().rebuild_all_cache(tenant_id)
    print(f"Rebuilt {rebuilt} cache entr{'y' if rebuilt == 1 else 'ies'} for tenant {tenant_id}.")
    return 0


def purge_orphans(tenant_id):
    from stockledger.reconciliation.checker import InventoryReconciliationService

    with _domain().domain_context():
        removed = InventoryReconciliationService().purge_orphans(tenant_id)
    print(f"Removed {removed} orphaned cache entr{'y' if removed == 1 else 'ies'} for tenant {tenant_id}.")
    return 0


def validate(tenant_id):
    """Print integrity issues. Returns the number of CRITICAL issues."""
    from stockledger.reconciliation.checker import InventoryReconciliationService
    from stockledger.reconciliation.results import Severity

    critical = 0
    with _domain().domain_context():
        for issue in InventoryReconciliationService().validate(tenant_id):
            if issue.severity is Severity.CRITICAL:
                critical += 1
            print(f"  [{issue.severity.value}] {issue.product_id} {issue.issue_type.value}: {issue.description}")
    print(f"Validated tenant {tenant_id}: {critical} critical issue(s).")
    return critical


_TENANT_COMMANDS = {
    "reconcile": (reconcile, "Repair the availability cache from the store"),
    "summary": (summary, "Reconcile and print totals"),
    "rebuild-cache": (rebuild_cache, "Overwrite every cache entry from the store"),
    "purge-orphans": (purge_orphans, "Remove cache entries whose record no longer exists"),
    "validate": (validate, "Report integrity issues and stock warnings"),
}


def main(argv=None):
    parser = argparse.ArgumentParser(description="Stock ledger management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    for name, (_, help_text) in _TENANT_COMMANDS.items():
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument("--tenant", required=True, help="Tenant to operate on")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command in _TENANT_COMMANDS:
        from stockledger.utils.logging import add_context, clear_context

        handler, _ = _TENANT_COMMANDS[args.command]
        add_context(tenant_id=args.tenant, job=args.command)
        try:
            failures = handler(args.tenant)
        finally:
            clear_context()
        # Non-zero exit lets the scheduler alert on problems
        sys.exit(1 if failures else 0)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
