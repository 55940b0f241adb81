"""
CustomerAnalysis Unit Tests

Tests engine fallback and offer dispatch in isolation.
Every collaborator is a mock, so call counts and call order can be asserted.

Run with: pytest tests/test_customer_analysis.py -v
"""
import pytest
import sys
from pathlib import Path
from unittest.mock import Mock

sys.path.insert(0, str(Path(__file__).parent.parent))

from structlog.testing import capture_logs

from analysis.customer_analysis import CustomerAnalysis, OfferFailurePolicy, OfferPreparation
from analysis.entities import Customer, Offer, Product, create_offer
from analysis.exceptions import (
    CantUnderstandError,
    EntityNotFoundError,
    GeneralAnalysisError,
    PersistenceError,
)
from analysis.interfaces import AnalyticalEngine, ErrorHandler, NewsList, Storage
from infrastructure.metrics import MetricsCollector


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def product():
    return Product(id=0, name="Trail Runner GTX", category="outdoor", tags=("running",))


@pytest.fixture
def customer():
    return Customer(id=100, name="Alice Novak", email="alice@example.com")


@pytest.fixture
def storage(product):
    storage = Mock(spec=Storage)
    storage.find.return_value = product
    return storage


@pytest.fixture
def news_list():
    return Mock(spec=NewsList)


@pytest.fixture
def error_handler():
    return Mock(spec=ErrorHandler)


@pytest.fixture
def make_analysis(storage, news_list, error_handler):
    """Factory fixture: build a CustomerAnalysis around the shared mocks"""
    def _make(engines, failure_policy=OfferFailurePolicy.ABORT):
        return CustomerAnalysis(
            engines,
            storage,
            news_list,
            error_handler,
            failure_policy=failure_policy,
            metrics=MetricsCollector(enabled=False),
        )
    return _make


def engine_returning(customers):
    engine = Mock(spec=AnalyticalEngine)
    engine.interesting_customers.return_value = customers
    return engine


def engine_raising(error):
    engine = Mock(spec=AnalyticalEngine)
    engine.interesting_customers.side_effect = error
    return engine


# =============================================================================
# FIND INTERESTING CUSTOMERS
# =============================================================================

class TestFindInterestingCustomers:
    """Engine fallback, failure isolation and early return"""

    def test_error_handler_invoked_when_engine_throws(self, make_analysis, error_handler, product):
        """The original exception reaches the handler and is not re-raised"""
        error = CantUnderstandError("no category")
        engine = engine_raising(error)
        analysis = make_analysis([engine])

        result = analysis.find_interesting_customers(product)

        assert result == []
        engine.interesting_customers.assert_called_once_with(product)
        error_handler.handle.assert_called_once()
        assert error_handler.handle.call_args.args[0] is error

    def test_subsequent_engines_tried_if_one_fails(self, make_analysis, error_handler, product, customer):
        """A failing engine hands the same product to the next engine"""
        failing = engine_raising(CantUnderstandError())
        good = engine_returning([customer])
        analysis = make_analysis([failing, good])

        result = analysis.find_interesting_customers(product)

        assert result == [customer]
        failing.interesting_customers.assert_called_once_with(product)
        good.interesting_customers.assert_called_once_with(product)
        assert error_handler.handle.call_count == 1

    def test_no_more_engines_tried_after_one_succeeds(self, make_analysis, error_handler, product, customer):
        """First successful engine wins"""
        first = engine_returning([customer])
        second = engine_returning([])
        analysis = make_analysis([first, second])

        result = analysis.find_interesting_customers(product)

        assert result == [customer]
        first.interesting_customers.assert_called_once_with(product)
        second.interesting_customers.assert_not_called()
        error_handler.handle.assert_not_called()

    def test_empty_result_counts_as_success(self, make_analysis, product, customer):
        """An empty answer stops the lookup just like a non-empty one"""
        first = engine_returning([])
        second = engine_returning([customer])
        analysis = make_analysis([first, second])

        assert analysis.find_interesting_customers(product) == []
        second.interesting_customers.assert_not_called()

    def test_all_engines_fail_returns_empty_without_raising(self, make_analysis, error_handler, product):
        """Every engine is tried once and every failure is reported in order"""
        errors = [CantUnderstandError("a"), GeneralAnalysisError("b"), RuntimeError("c")]
        engines = [engine_raising(e) for e in errors]
        analysis = make_analysis(engines)

        result = analysis.find_interesting_customers(product)

        assert result == []
        for engine in engines:
            engine.interesting_customers.assert_called_once_with(product)
        reported = [c.args[0] for c in error_handler.handle.call_args_list]
        assert len(reported) == 3
        assert all(r is e for r, e in zip(reported, errors))

    def test_unexpected_exception_is_isolated(self, make_analysis, error_handler, product, customer):
        """Failures outside the AnalysisError hierarchy are handled the same way"""
        error = ZeroDivisionError("bug in engine")
        analysis = make_analysis([engine_raising(error), engine_returning([customer])])

        assert analysis.find_interesting_customers(product) == [customer]
        assert error_handler.handle.call_args.args[0] is error

    def test_lazy_result_failing_mid_read_is_isolated(self, make_analysis, error_handler, product, customer):
        """A generator that raises while it is read counts as an engine failure"""
        error = CantUnderstandError("lost the thread")

        def partial_answer(p):
            yield Customer(id=1)
            raise error

        lazy = Mock(spec=AnalyticalEngine)
        lazy.interesting_customers.side_effect = partial_answer
        analysis = make_analysis([lazy, engine_returning([customer])])

        result = analysis.find_interesting_customers(product)

        assert result == [customer]
        assert error_handler.handle.call_args.args[0] is error

    def test_lazy_result_is_returned_as_list(self, make_analysis, product, customer):
        analysis = make_analysis([engine_returning(iter([customer]))])

        assert analysis.find_interesting_customers(product) == [customer]

    def test_non_iterable_result_is_a_failure(self, make_analysis, error_handler, product, customer):
        analysis = make_analysis([engine_returning(42), engine_returning([customer])])

        assert analysis.find_interesting_customers(product) == [customer]
        assert isinstance(error_handler.handle.call_args.args[0], TypeError)

    def test_raising_error_handler_does_not_stop_lookup(self, make_analysis, error_handler, product, customer):
        """The next engine still runs when reporting a failure blows up"""
        error_handler.handle.side_effect = RuntimeError("reporter down")
        good = engine_returning([customer])
        analysis = make_analysis([engine_raising(CantUnderstandError()), good])

        with capture_logs() as logs:
            result = analysis.find_interesting_customers(product)

        assert result == [customer]
        good.interesting_customers.assert_called_once_with(product)
        failed = [entry for entry in logs if entry["event"] == "error_handler_failed"]
        assert failed[0]["error"] == "reporter down"
        assert failed[0]["reported_error_type"] == "CantUnderstandError"

    def test_raising_error_handler_when_all_engines_fail(self, make_analysis, error_handler, product):
        error_handler.handle.side_effect = RuntimeError("reporter down")
        engines = [engine_raising(CantUnderstandError()), engine_raising(GeneralAnalysisError())]
        analysis = make_analysis(engines)

        assert analysis.find_interesting_customers(product) == []
        assert error_handler.handle.call_count == 2

    @pytest.mark.parametrize("failures", [0, 1, 2, 3])
    def test_engines_up_to_first_success_invoked_once_in_order(
        self, make_analysis, error_handler, product, customer, failures
    ):
        """Engines 1..k+1 run exactly once, in order; later engines never run"""
        calls = []

        def failing(index):
            engine = Mock(spec=AnalyticalEngine)

            def _raise(p):
                calls.append(index)
                raise CantUnderstandError(f"engine {index}")
            engine.interesting_customers.side_effect = _raise
            return engine

        def succeeding(index):
            engine = Mock(spec=AnalyticalEngine)

            def _answer(p):
                calls.append(index)
                return [customer]
            engine.interesting_customers.side_effect = _answer
            return engine

        engines = [failing(i) for i in range(failures)] + [succeeding(failures), succeeding(failures + 1)]
        analysis = make_analysis(engines)

        assert analysis.find_interesting_customers(product) == [customer]
        assert calls == list(range(failures + 1))
        assert error_handler.handle.call_count == failures

    def test_no_engines_finds_no_customers(self, make_analysis, error_handler, product):
        analysis = make_analysis([])

        assert analysis.find_interesting_customers(product) == []
        error_handler.handle.assert_not_called()

    def test_engine_list_fixed_at_construction(self, make_analysis, product, customer):
        """Mutating the list passed in does not change the lookup"""
        engines = [engine_returning([customer])]
        analysis = make_analysis(engines)
        extra = engine_returning([])
        engines.insert(0, extra)

        assert analysis.find_interesting_customers(product) == [customer]
        extra.interesting_customers.assert_not_called()
        assert len(analysis.engines) == 1

    def test_exhausted_lookup_is_logged(self, make_analysis, product):
        analysis = make_analysis([engine_raising(CantUnderstandError())])

        with capture_logs() as logs:
            analysis.find_interesting_customers(product)

        events = [entry["event"] for entry in logs]
        assert "engine_failed" in events
        assert "all_engines_failed" in events


# =============================================================================
# PREPARE OFFERS FOR PRODUCT
# =============================================================================

class TestPrepareOffersForProduct:
    """Offer creation, persist-before-notify ordering and failure handling"""

    def test_offer_is_persisted_before_added_to_news_list(self, make_analysis, storage, news_list, product, customer):
        """persist(offer) happens before send_periodically(offer) for the same offer"""
        calls = []
        storage.persist.side_effect = lambda offer: calls.append(("persist", offer))
        news_list.send_periodically.side_effect = lambda offer: calls.append(("notify", offer))
        analysis = make_analysis([engine_returning([customer])])

        analysis.prepare_offer_for_product(0)

        storage.find.assert_called_once_with(Product, 0)
        assert [name for name, _ in calls] == ["persist", "notify"]
        persisted, notified = calls[0][1], calls[1][1]
        assert persisted is notified
        assert persisted.product is product
        assert persisted.customer is customer

    def test_offer_contains_product_and_customer(self, make_analysis, storage, product):
        """One offer per customer, pairing the product with each customer in engine order"""
        first = Customer(id=1, name="One")
        second = Customer(id=2, name="Two")
        analysis = make_analysis([engine_returning([first, second])])

        analysis.prepare_offers_for_product(0)

        assert storage.persist.call_count == 2
        offers = [c.args[0] for c in storage.persist.call_args_list]
        assert all(isinstance(o, Offer) for o in offers)
        assert [o.get_customer() for o in offers] == [first, second]
        assert all(o.get_product() is product for o in offers)
        assert offers[0].id != offers[1].id

    def test_persist_precedes_notify_for_every_offer(self, make_analysis, storage, news_list):
        """Ordering holds per offer, not just in aggregate"""
        customers = [Customer(id=i) for i in range(3)]
        calls = []
        storage.persist.side_effect = lambda offer: calls.append(("persist", offer.customer.id))
        news_list.send_periodically.side_effect = lambda offer: calls.append(("notify", offer.customer.id))
        analysis = make_analysis([engine_returning(customers)])

        analysis.prepare_offers_for_product(0)

        assert calls == [
            ("persist", 0), ("notify", 0),
            ("persist", 1), ("notify", 1),
            ("persist", 2), ("notify", 2),
        ]

    def test_returns_preparation_summary(self, make_analysis):
        analysis = make_analysis([engine_returning([Customer(id=1), Customer(id=2)])])

        result = analysis.prepare_offers_for_product(0)

        assert result == OfferPreparation(
            product_id=0,
            customers_found=2,
            offers_persisted=2,
            offers_scheduled=2,
            offers_failed=0,
        )

    def test_product_lookup_failure_propagates(self, make_analysis, storage, news_list, error_handler):
        """A missing product is the caller's problem, not the error handler's"""
        storage.find.side_effect = EntityNotFoundError(Product, 42)
        engine = engine_returning([Customer(id=1)])
        analysis = make_analysis([engine])

        with pytest.raises(EntityNotFoundError):
            analysis.prepare_offers_for_product(42)

        engine.interesting_customers.assert_not_called()
        storage.persist.assert_not_called()
        news_list.send_periodically.assert_not_called()
        error_handler.handle.assert_not_called()

    def test_persist_failure_aborts_by_default(self, make_analysis, storage, news_list, error_handler):
        """A failed offer is never announced and the remaining offers are not attempted"""
        error = PersistenceError("disk full")
        storage.persist.side_effect = error
        analysis = make_analysis([engine_returning([Customer(id=1), Customer(id=2)])])

        with pytest.raises(PersistenceError) as exc_info:
            analysis.prepare_offers_for_product(0)

        assert exc_info.value is error
        assert storage.persist.call_count == 1
        news_list.send_periodically.assert_not_called()
        error_handler.handle.assert_not_called()

    def test_persist_failure_skips_offer_with_continue_policy(self, make_analysis, storage, news_list):
        """Under CONTINUE the failed offer is skipped and the rest are dispatched"""
        storage.persist.side_effect = [PersistenceError("timeout"), None]
        first, second = Customer(id=1), Customer(id=2)
        analysis = make_analysis(
            [engine_returning([first, second])],
            failure_policy=OfferFailurePolicy.CONTINUE,
        )

        result = analysis.prepare_offers_for_product(0)

        assert storage.persist.call_count == 2
        news_list.send_periodically.assert_called_once()
        assert news_list.send_periodically.call_args.args[0].customer == second
        assert result.offers_persisted == 1
        assert result.offers_scheduled == 1
        assert result.offers_failed == 1

    def test_failure_policy_accepts_setting_string(self, storage, news_list, error_handler):
        analysis = CustomerAnalysis([], storage, news_list, error_handler, failure_policy="continue")
        assert analysis.failure_policy is OfferFailurePolicy.CONTINUE

    def test_no_customers_creates_no_offers(self, make_analysis, storage, news_list, error_handler):
        analysis = make_analysis([engine_raising(CantUnderstandError())])

        result = analysis.prepare_offers_for_product(0)

        storage.persist.assert_not_called()
        news_list.send_periodically.assert_not_called()
        assert error_handler.handle.call_count == 1
        assert result.customers_found == 0


# =============================================================================
# OFFER FACTORY
# =============================================================================

class TestCreateOffer:
    """create_offer is pure construction"""

    def test_sets_product_and_customer(self, product, customer):
        offer = create_offer(product, customer)

        assert offer.product is product
        assert offer.customer is customer

    def test_each_offer_is_new(self, product, customer):
        assert create_offer(product, customer).id != create_offer(product, customer).id

    def test_entities_compare_by_id(self):
        assert Product(id=1, name="a") == Product(id=1, name="b")
        assert Customer(id=5, segment="x") == Customer(id=5, segment="y")
        assert len({Customer(id=5), Customer(id=5, name="dup")}) == 1
