"""Main entry point for TirePoint Search."""

import argparse
import json
import sys
from datetime import datetime

from loguru import logger

from .search.handler import SearchHandler
from .search.pricing import PriceFormatter
from .storage.database import Database
from .storage.seed import load_catalog
from .utils.config import get_config
from .utils.logger import setup_logging


def _open_handler() -> SearchHandler:
    config = get_config()
    db = Database(config.database.url, echo=config.database.echo)
    return SearchHandler(
        db,
        config.search,
        price_formatter=PriceFormatter(config.commerce.model_dump()),
    )


def run_api():
    """Run the FastAPI server."""
    import uvicorn

    from .api.main import create_app

    config = get_config()
    setup_logging()

    logger.info("=" * 80)
    logger.info("TirePoint Search API - Starting")
    logger.info("=" * 80)

    uvicorn.run(
        create_app(config),
        host=config.api.host,
        port=config.api.port,
        log_level="info",
        log_config=None,
    )


def run_seed(path: str):
    """Load a YAML catalog into the database.

    Args:
        path: Catalog file
    """
    config = get_config()
    setup_logging()

    db = Database(config.database.url, echo=config.database.echo)
    counts = load_catalog(db, path, config.search)
    print(f"Loaded {counts['vehicles']} vehicles and {counts['tires']} tires")


def run_search(make: str, model: str = "", year: str = ""):
    """Look up tires from the command line."""
    setup_logging(log_file="")

    handler = _open_handler()
    tires = handler.get_tire_results(make, model, year)
    print(json.dumps([tire.model_dump() for tire in tires], indent=2))


def show_searches(limit: int):
    """Print the most recent logged searches."""
    setup_logging(log_file="")

    handler = _open_handler()
    for record in handler.search_log.recent(limit):
        when = datetime.fromtimestamp(record.timestamp).strftime("%Y-%m-%d %H:%M:%S")
        vehicle = " / ".join(part for part in (record.make, record.model, record.year) if part)
        print(f"{when}  {record.user_ip or '-':<15}  {vehicle}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="TirePoint vehicle search")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("api", help="Run the API server")

    seed_parser = subparsers.add_parser("seed", help="Load a YAML vehicle/tire catalog")
    seed_parser.add_argument("path", help="Catalog file")

    search_parser = subparsers.add_parser("search", help="Find tires for a vehicle")
    search_parser.add_argument("make")
    search_parser.add_argument("model", nargs="?", default="")
    search_parser.add_argument("year", nargs="?", default="")

    log_parser = subparsers.add_parser("searches", help="Show recent searches")
    log_parser.add_argument("--limit", type=int, default=20)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "api":
            run_api()
        elif args.command == "seed":
            run_seed(args.path)
        elif args.command == "search":
            run_search(args.make, args.model, args.year)
        elif args.command == "searches":
            show_searches(args.limit)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.exception(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
