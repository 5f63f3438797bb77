#!/usr/bin/env python3
"""
Database Management Commands for Drayage Ops

Usage:
    python database_commands.py --help
    python database_commands.py status
    python database_commands.py init
    python database_commands.py seed --reset
    python database_commands.py create-missing-containers
    python database_commands.py validate
"""

import os
import sys
import argparse
import logging
from datetime import datetime

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def setup_app_context():
    """Setup Flask application context for database operations."""
    # Set a temporary SESSION_SECRET for CLI operations if not set
    if not os.environ.get('SESSION_SECRET'):
        os.environ['SESSION_SECRET'] = 'cli_temp_secret_not_for_production'

    from app import create_app
    app = create_app()
    return app.app_context()

def table_counts():
    """Row count for every mapped table"""
    from sqlalchemy import inspect, text
    from app import db

    existing = set(inspect(db.engine).get_table_names())
    counts = {}
    for table in db.metadata.sorted_tables:
        if table.name in existing:
            counts[table.name] = db.session.execute(
                text(f'SELECT COUNT(*) FROM {table.name}')).scalar()
        else:
            counts[table.name] = None
    return counts

def cmd_status(args):
    """Display connection health and per-table row counts."""
    with setup_app_context():
        from services.transaction_helper import TransactionHelper
        from app import db

        print("=" * 60)
        print("DATABASE STATUS REPORT")
        print("=" * 60)

        conn_success, warnings = TransactionHelper.check_connection()
        print(f"Connection Status: {'HEALTHY' if conn_success else 'FAILED'}")
        for warning in warnings:
            print(f"  {warning}")

        if not conn_success:
            sys.exit(1)

        print(f"Engine: {db.engine.dialect.name}")
        print("\nTable Statistics:")
        for table, count in table_counts().items():
            print(f"  {table}: {'missing' if count is None else f'{count} records'}")

        print(f"\nReport Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

def cmd_init(args):
    """Create any missing tables."""
    with setup_app_context():
        from app import db
        import models  # noqa: F401
        db.create_all()
        print(f"Tables ready: {', '.join(table.name for table in db.metadata.sorted_tables)}")

def cmd_seed(args):
    """Load demo data."""
    with setup_app_context():
        from seed_data import seed_database, DEMO_PASSWORD

        counts = seed_database(reset=args.reset)
        print("Seed completed:")
        for entity, count in counts.items():
            print(f"  {entity}: {count}")
        print(f"Demo users share the password: {DEMO_PASSWORD}")

def cmd_create_missing_containers(args):
    """Register containers declared on delivery orders but missing from the containers table."""
    with setup_app_context():
        from services import ContainerService

        result = ContainerService().create_missing_containers()
        for row in result['results']:
            print(f"  {row['containerNumber']} ({row['orderNumber']}): {row['status']} - {row['reason']}")
        summary = result['summary']
        print(f"Total: {summary['total']}, created: {summary['created']}, skipped: {summary['skipped']}")

def cmd_validate(args):
    """Validate environment configuration."""
    from utils.config_validator import check_production_readiness

    result = check_production_readiness()
    if result['issues']:
        print(f"Configuration validation found {len(result['issues'])} issues:")
        for i, issue in enumerate(result['issues'], 1):
            print(f"  {i}. {issue}")
        for recommendation in result['recommendations']:
            print(f"  -> {recommendation}")
        sys.exit(1)
    print("Configuration validation passed - no issues found")

def main():
    """Main command line interface."""
    parser = argparse.ArgumentParser(
        description="Database Management Commands for Drayage Ops",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('status', help='Display database status')
    subparsers.add_parser('init', help='Create database tables')

    seed_parser = subparsers.add_parser('seed', help='Load demo data')
    seed_parser.add_argument('--reset', action='store_true',
                             help='Delete existing data before seeding')

    subparsers.add_parser('create-missing-containers',
                          help='Create containers referenced by delivery orders')
    subparsers.add_parser('validate', help='Validate environment configuration')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        'status': cmd_status,
        'init': cmd_init,
        'seed': cmd_seed,
        'create-missing-containers': cmd_create_missing_containers,
        'validate': cmd_validate,
    }

    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"Unexpected error: {str(e)}")
        sys.exit(1)

if __name__ == "__main__":
    main()
