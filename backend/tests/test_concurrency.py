# Overview: Pytest coverage for the unit-of-work retry helper and document numbers.

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError
from stockmate.models import DocumentSequence
from stockmate.services.concurrency import run_with_retry
from stockmate.services.document_service import next_document_number
from stockmate.validation import ValidationError


class TestRunWithRetry:

    def test_retries_lock_contention_then_succeeds(self, db_session):
        calls = []

        def op():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("UPDATE product_warehouses", {}, Exception("database is locked"))
            return "done"

        assert run_with_retry(op, attempts=3, backoff_base=0) == "done"
        assert len(calls) == 3

    def test_stale_row_exhausts_attempts(self, db_session):
        calls = []

        def op():
            calls.append(1)
            raise StaleDataError("version mismatch")

        with pytest.raises(StaleDataError):
            run_with_retry(op, attempts=2, backoff_base=0)
        assert len(calls) == 2

    def test_business_errors_are_not_retried(self, db_session):
        calls = []

        def op():
            calls.append(1)
            raise ValidationError("Insufficient quantity")

        with pytest.raises(ValidationError):
            run_with_retry(op, attempts=5, backoff_base=0)
        assert len(calls) == 1

    def test_attempts_default_from_config(self, app, db_session):
        calls = []

        def op():
            calls.append(1)
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            run_with_retry(op, backoff_base=0)
        assert len(calls) == app.config["LEDGER_WRITE_ATTEMPTS"]


class TestDocumentNumbers:

    def test_counter_created_on_first_use(self, db_session):
        assert next_document_number(document_type="INVOICE", prefix="INV") == "INV-000001"
        assert next_document_number(document_type="INVOICE", prefix="INV") == "INV-000002"
        assert next_document_number(document_type="REFUND", prefix="RF") == "RF-000001"
        db_session.commit()

        seq = db_session.query(DocumentSequence).filter_by(document_type="INVOICE").one()
        assert seq.next_number == 3

    def test_rollback_releases_number(self, db_session):
        next_document_number(document_type="INVOICE", prefix="INV")
        db_session.rollback()

        assert next_document_number(document_type="INVOICE", prefix="INV") == "INV-000001"
        db_session.rollback()
