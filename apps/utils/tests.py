# apps/utils/tests.py
import json
import logging
from unittest.mock import MagicMock

from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase
from rest_framework.exceptions import NotFound

from .exceptions import (
    BusinessLogicException,
    InsufficientStock,
    ServiceUnavailable,
    custom_exception_handler,
)
from .logging import JSONFormatter
from .resilience import CircuitBreaker
from .utils import generate_order_number


class CircuitBreakerTests(TestCase):
    def setUp(self):
        cache.clear()
        self.breaker = CircuitBreaker("test-service", failure_threshold=2, recovery_timeout=60)

    def test_opens_after_threshold(self):
        failing = self.breaker(MagicMock(side_effect=ConnectionError("down")))

        for _ in range(2):
            with self.assertRaises(ConnectionError):
                failing()

        self.assertTrue(self.breaker.is_open)
        with self.assertRaises(BusinessLogicException) as ctx:
            failing()
        self.assertEqual(ctx.exception.code, "circuit_open")

    def test_success_passes_through(self):
        wrapped = self.breaker(lambda x: x * 2)
        self.assertEqual(wrapped(21), 42)
        self.assertFalse(self.breaker.is_open)

    def test_reset_closes_circuit(self):
        self.breaker.record_failure()
        self.breaker.record_failure()
        self.assertTrue(self.breaker.is_open)

        self.breaker.reset()
        self.assertFalse(self.breaker.is_open)


class JSONFormatterTests(TestCase):
    def _record(self, msg, args=None, **extra):
        record = logging.LogRecord("apps.test", logging.INFO, __file__, 10, msg, args, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_scrubs_sensitive_keys(self):
        record = self._record({"email": "a@example.com", "access_token": "abc", "nested": {"password": "x"}})
        payload = json.loads(JSONFormatter().format(record))

        self.assertIn("***REDACTED***", payload["msg"])
        self.assertNotIn("abc", payload["msg"])
        self.assertIn("a@example.com", payload["msg"])

    def test_carries_context_attributes(self):
        record = self._record("Order %s completed", ("R123456789",), order_number="R123456789")
        payload = json.loads(JSONFormatter().format(record))

        self.assertEqual(payload["msg"], "Order R123456789 completed")
        self.assertEqual(payload["order_number"], "R123456789")
        self.assertEqual(payload["lvl"], "INFO")


class ExceptionHandlerTests(TestCase):
    def test_business_logic_exception_is_400(self):
        response = custom_exception_handler(BusinessLogicException("Order already completed.", code="order_completed"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {"error": "Order already completed.", "code": "order_completed"})

    def test_insufficient_stock_is_409(self):
        response = custom_exception_handler(InsufficientStock("Out of stock", variant_ids=["v1"]), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["code"], "insufficient_stock")

    def test_service_unavailable_is_503(self):
        response = custom_exception_handler(ServiceUnavailable("Catalog down"), {})
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["code"], "circuit_open")

    def test_django_validation_error_is_400(self):
        response = custom_exception_handler(DjangoValidationError("Bad quantity"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"], ["Bad quantity"])

    def test_drf_exceptions_pass_through(self):
        response = custom_exception_handler(NotFound(), {})
        self.assertEqual(response.status_code, 404)

    def test_unhandled_is_500(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = custom_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["code"], "server_error")


class UtilsTests(TestCase):
    def test_order_number_format(self):
        number = generate_order_number()
        self.assertEqual(len(number), 10)
        self.assertTrue(number.startswith("R"))
        self.assertTrue(number[1:].isdigit())


class HealthTests(TestCase):
    def setUp(self):
        cache.clear()

    def test_health_check(self):
        response = self.client.get("/api/v1/utils/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["components"]["db"], "ok")
        self.assertEqual(response.json()["components"]["stock_sync"], "ok")

    def test_tripped_stock_sync_is_reported_but_healthy(self):
        from apps.inventory.services import catalog_breaker

        cache.set(catalog_breaker.cache_key_open, "OPEN", timeout=60)
        response = self.client.get("/api/v1/utils/health/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["components"]["stock_sync"], "open")

    def test_server_info(self):
        response = self.client.get("/api/v1/utils/info/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["app_name"], "FoodHub")
        self.assertEqual(response.json()["open_order_cycles"], 0)
