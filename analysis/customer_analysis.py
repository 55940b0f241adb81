"""
Customer Analysis: find interested customers and turn them into offers

CustomerAnalysis owns an ordered, immutable list of analytical engines.

find_interesting_customers:
    Engines are tried in order with the same product. The first engine that
    answers wins, even with an empty list. A failing engine is handed to the
    error handler (the original exception, unwrapped) and the next engine is
    tried. If every engine fails the lookup returns an empty list.

prepare_offers_for_product:
    Load product -> find customers -> for each customer, in engine order:
    build offer -> persist -> schedule on the news list.
    An offer is scheduled only after it was persisted. Product lookup and
    persistence failures are not routed to the error handler.
"""
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from infrastructure.logging import get_logger, LogContext
from infrastructure.metrics import MetricsCollector, metrics as default_metrics

from .entities import Customer, Product, create_offer
from .exceptions import PersistenceError
from .interfaces import AnalyticalEngine, ErrorHandler, NewsList, Storage
from .outcome import AnalysisOutcome, run_engine

logger = get_logger(__name__)


class OfferFailurePolicy(str, Enum):
    """What happens to the remaining offers when persisting one fails."""
    ABORT = "abort"
    CONTINUE = "continue"


@dataclass(frozen=True)
class OfferPreparation:
    """Counts for one prepare_offers_for_product call."""
    product_id: object
    customers_found: int
    offers_persisted: int
    offers_scheduled: int
    offers_failed: int = 0


class CustomerAnalysis:
    """
    Orchestrates analytical engines and offer dispatch for a product.

    Args:
        engines: Engines in the order they should be tried
        storage: Entity store used to load products and persist offers
        news_list: Channel that announces persisted offers
        error_handler: Receives every engine failure
        failure_policy: Handling of persistence failures (default: abort)
        metrics: Metrics collector (default: the shared one)
    """

    def __init__(
        self,
        engines: Sequence[AnalyticalEngine],
        storage: Storage,
        news_list: NewsList,
        error_handler: ErrorHandler,
        failure_policy: OfferFailurePolicy = OfferFailurePolicy.ABORT,
        metrics: MetricsCollector = None,
    ):
        self.engines = tuple(engines)
        self.storage = storage
        self.news_list = news_list
        self.error_handler = error_handler
        self.failure_policy = OfferFailurePolicy(failure_policy)
        self.metrics = metrics or default_metrics

        if not self.engines:
            logger.warning("no_engines_configured")

    def find_interesting_customers(self, product: Product) -> List[Customer]:
        """
        Customers interested in ``product`` according to the first engine
        that answers. Never raises engine failures.
        """
        for engine in self.engines:
            outcome = run_engine(engine, product)

            if outcome.succeeded:
                self._record_success(outcome)
                return outcome.customers

            self._record_failure(outcome)
            self._report(outcome)

        logger.error(
            "all_engines_failed",
            product_id=getattr(product, "id", None),
            engines_tried=len(self.engines),
        )
        self.metrics.record_lookup(found=False)
        return []

    def prepare_offers_for_product(self, product_id) -> OfferPreparation:
        """
        Create, persist and schedule an offer for every interested customer.

        Raises:
            Whatever storage.find raises when the product cannot be loaded,
            and PersistenceError under the ABORT policy.
        """
        start_time = time.time()

        with LogContext(product_id=product_id):
            product = self.storage.find(Product, product_id)
            customers = self.find_interesting_customers(product)

            persisted = scheduled = failed = 0
            for customer in customers:
                offer = create_offer(product, customer)

                try:
                    self.storage.persist(offer)
                except PersistenceError as e:
                    failed += 1
                    self.metrics.record_offer("failed")
                    self._on_persist_failure(customer, e)
                    continue
                persisted += 1
                self.metrics.record_offer("persisted")

                self.news_list.send_periodically(offer)
                scheduled += 1
                self.metrics.record_offer("scheduled")

            logger.info(
                "prepare_offers_completed",
                customers_found=len(customers),
                offers_persisted=persisted,
                offers_scheduled=scheduled,
                offers_failed=failed,
            )

        self.metrics.record_prepare_duration(start_time)
        return OfferPreparation(
            product_id=product_id,
            customers_found=len(customers),
            offers_persisted=persisted,
            offers_scheduled=scheduled,
            offers_failed=failed,
        )

    prepare_offer_for_product = prepare_offers_for_product

    def _on_persist_failure(self, customer: Customer, error: PersistenceError) -> None:
        """Single decision point for persistence failures."""
        if self.failure_policy is OfferFailurePolicy.ABORT:
            logger.error(
                "offer_persist_aborted",
                customer_id=getattr(customer, "id", None),
                error=str(error),
            )
            raise error

        logger.warning(
            "offer_persist_skipped",
            customer_id=getattr(customer, "id", None),
            error=str(error),
        )

    def _report(self, outcome: AnalysisOutcome) -> None:
        """Hand an engine failure to the error handler; a broken handler never stops the lookup."""
        try:
            self.error_handler.handle(outcome.error)
        except Exception as e:
            logger.error(
                "error_handler_failed",
                engine=outcome.engine_name,
                reported_error_type=type(outcome.error).__name__,
                error=str(e),
                error_type=type(e).__name__,
            )

    def _record_success(self, outcome: AnalysisOutcome) -> None:
        logger.info(
            "engine_succeeded",
            engine=outcome.engine_name,
            customers=len(outcome.customers),
        )
        self.metrics.record_engine_success(outcome.engine_name, outcome.duration_seconds)
        self.metrics.record_lookup(found=True, customer_count=len(outcome.customers))

    def _record_failure(self, outcome: AnalysisOutcome) -> None:
        logger.warning(
            "engine_failed",
            engine=outcome.engine_name,
            error=str(outcome.error),
            error_type=type(outcome.error).__name__,
        )
        self.metrics.record_engine_failure(outcome.engine_name, outcome.duration_seconds)
