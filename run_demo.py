#!/usr/bin/env python3
"""
Customer Analysis Demo - CLI Runner

Usage:
    python run_demo.py --product 0            # Prepare offers for one product
    python run_demo.py --all                  # Prepare offers for every product
    python run_demo.py --all --policy continue
    python run_demo.py --all --metrics        # Also serve /metrics on METRICS_PORT
"""
import argparse
import sys
from pathlib import Path

# Add current directory to path
sys.path.insert(0, str(Path(__file__).parent))

from config import settings
from infrastructure.logging import configure_logging
from infrastructure.metrics import get_metrics_collector
from infrastructure.storage import OfferStore
from infrastructure.notifications import NewsletterChannel
from analysis.workflow import create_customer_analysis, run_offer_preparation, run_all_products


def print_result(result: dict):
    print(f"\n{'='*60}")
    print(f"  PRODUCT {result['product_id']}")
    print(f"{'='*60}")
    if not result["success"]:
        print(f"   Error: {result['error']}")
        return
    print(f"   Customers found:  {result['customers_found']}")
    print(f"   Offers persisted: {result['offers_persisted']}")
    print(f"   Offers scheduled: {result['offers_scheduled']}")
    if result["offers_failed"]:
        print(f"   Offers failed:    {result['offers_failed']}")


def print_schedule(channel: NewsletterChannel):
    schedule = channel.get_schedule()
    if not schedule:
        return
    print(f"\nNEWSLETTER SCHEDULE ({len(schedule)} entries)")
    print("-" * 60)
    for entry in schedule:
        print(f"  {entry.recipient:<22} every {entry.interval_days}d  {entry.subject}")


def main():
    parser = argparse.ArgumentParser(description="Customer Analysis Demo")
    parser.add_argument("--product", type=int, help="Product id to prepare offers for")
    parser.add_argument("--all", action="store_true", help="Prepare offers for every product")
    parser.add_argument("--policy", choices=["abort", "continue"], help="Persistence failure policy")
    parser.add_argument("--engines", help="Comma separated engine order")
    parser.add_argument("--console-logs", action="store_true", help="Human readable logs")
    parser.add_argument("--metrics", action="store_true", help="Serve Prometheus metrics on METRICS_PORT")

    args = parser.parse_args()

    configure_logging(
        log_level=settings.LOG_LEVEL,
        json_format=not args.console_logs and settings.LOG_FORMAT == "json",
        log_file=settings.LOG_FILE,
    )

    if args.metrics:
        get_metrics_collector(settings.METRICS_ENABLED).start_metrics_server(settings.METRICS_PORT)

    storage = OfferStore()
    channel = NewsletterChannel(
        interval_days=settings.NEWSLETTER_INTERVAL_DAYS,
        webhook_url=settings.NEWSLETTER_WEBHOOK,
    )
    analysis = create_customer_analysis(
        engine_order=args.engines.split(",") if args.engines else None,
        failure_policy=args.policy,
        storage=storage,
        news_list=channel,
    )

    if args.all:
        for result in run_all_products(analysis):
            print_result(result)
    elif args.product is not None:
        print_result(run_offer_preparation(args.product, analysis))
    else:
        parser.print_help()
        print()
        print("Running example for product 0...")
        print_result(run_offer_preparation(0, analysis))

    print_schedule(channel)


if __name__ == "__main__":
    main()
