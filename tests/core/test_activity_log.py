import json
import logging
from unittest import mock

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.test import RequestFactory

from core.activity import client_ip, log_activity
from core.logging import JSONFormatter
from core.models import ActivityLog


@pytest.mark.django_db
class TestLogActivity:
    def test_records_entry(self, admin_user):
        entry = log_activity(admin_user, "CREATE", "sales", "INV-1", {"a": 1}, "127.0.0.1")

        assert entry.pk is not None
        assert entry.actor == admin_user
        assert entry.details == {"a": 1}

    def test_anonymous_actor_is_not_stored(self):
        entry = log_activity(AnonymousUser(), "IMPORT", "sales")
        assert entry.actor is None
        assert entry.entity_id == ""

    def test_failure_is_swallowed(self, admin_user):
        with mock.patch.object(ActivityLog.objects, "create", side_effect=DatabaseError("down")), \
                mock.patch("core.activity.logger") as logger:
            assert log_activity(admin_user, "DELETE", "sales", "INV-1") is None
        logger.warning.assert_called_once()


class TestClientIp:
    def test_forwarded_for_wins(self):
        request = RequestFactory().get("/", HTTP_X_FORWARDED_FOR="203.0.113.5, 10.0.0.1")
        assert client_ip(request) == "203.0.113.5"

    def test_remote_addr(self):
        assert client_ip(RequestFactory().get("/")) == "127.0.0.1"

    def test_no_request(self):
        assert client_ip(None) is None


class TestJSONFormatter:
    def test_formats_extras(self):
        record = logging.LogRecord("salesdash", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.invoice_id = "INV-1"

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "salesdash"
        assert payload["invoice_id"] == "INV-1"
