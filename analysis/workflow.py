"""
Customer Analysis Workflow

Wires CustomerAnalysis to its production collaborators using the values
in config.settings:

  ENGINE_ORDER -> engines (each wrapped with retry) ->
  OfferStore -> NewsletterChannel -> AlertingErrorHandler

Pipeline per product:
  Load Product → Engine 1 → (fail) → Engine 2 → ... → Offers →
  Persist → Schedule
"""
from typing import Dict, Any, Optional, List

from config import settings
from infrastructure.error_reporting import AlertingErrorHandler
from infrastructure.logging import get_logger, set_correlation_id
from infrastructure.metrics import get_metrics_collector
from infrastructure.notifications import NewsletterChannel
from infrastructure.retry import RetryConfig, RetryingEngine
from infrastructure.storage import OfferStore
from tools.data_tools import get_all_products

from .customer_analysis import CustomerAnalysis, OfferFailurePolicy
from .engines import build_engines
from .exceptions import StorageError

logger = get_logger(__name__)


def create_customer_analysis(
    engine_order: Optional[List[str]] = None,
    failure_policy: Optional[str] = None,
    storage: Optional[OfferStore] = None,
    news_list: Optional[NewsletterChannel] = None,
    error_handler: Optional[AlertingErrorHandler] = None,
    retry: bool = True,
) -> CustomerAnalysis:
    """Build a CustomerAnalysis from settings, overriding any collaborator."""
    engines = build_engines(
        engine_order or settings.ENGINE_ORDER,
        min_purchases=settings.MIN_CATEGORY_PURCHASES,
        affinity=settings.SEGMENT_AFFINITY,
    )
    if retry:
        config = RetryConfig(
            max_attempts=settings.ENGINE_RETRY_MAX_ATTEMPTS,
            min_wait_seconds=settings.ENGINE_RETRY_MIN_WAIT,
            max_wait_seconds=settings.ENGINE_RETRY_MAX_WAIT,
        )
        engines = [RetryingEngine(engine, config) for engine in engines]

    return CustomerAnalysis(
        engines,
        storage or OfferStore(),
        news_list or NewsletterChannel(
            interval_days=settings.NEWSLETTER_INTERVAL_DAYS,
            webhook_url=settings.NEWSLETTER_WEBHOOK,
        ),
        error_handler or AlertingErrorHandler(
            slack_webhook=settings.ALERT_SLACK_WEBHOOK,
            cooldown_seconds=settings.ALERT_COOLDOWN_SECONDS,
        ),
        failure_policy=OfferFailurePolicy(failure_policy or settings.OFFER_FAILURE_POLICY),
        metrics=get_metrics_collector(settings.METRICS_ENABLED),
    )


def run_offer_preparation(product_id: int, analysis: Optional[CustomerAnalysis] = None) -> Dict[str, Any]:
    """
    Prepare offers for one product and return a summary dict.

    Storage failures are reported in the summary instead of raised, since
    this is the outer edge of the application.
    """
    set_correlation_id()
    analysis = analysis or create_customer_analysis()

    try:
        result = analysis.prepare_offers_for_product(product_id)
    except StorageError as e:
        logger.error("offer_preparation_failed", product_id=product_id, error=str(e))
        return {"product_id": product_id, "success": False, "error": str(e)}

    return {
        "product_id": product_id,
        "success": True,
        "customers_found": result.customers_found,
        "offers_persisted": result.offers_persisted,
        "offers_scheduled": result.offers_scheduled,
        "offers_failed": result.offers_failed,
    }


def run_all_products(analysis: Optional[CustomerAnalysis] = None) -> List[Dict[str, Any]]:
    """Prepare offers for every product in the catalog, sharing one analysis."""
    analysis = analysis or create_customer_analysis()
    return [run_offer_preparation(p["id"], analysis) for p in get_all_products()]
