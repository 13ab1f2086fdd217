"""
Tests for settling tickets against the database.
"""
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from haulsettle.core.exceptions import (
    DuplicateTicketError, NoApplicableRateError, SettlementStoreError, TicketInputError
)
from haulsettle.db.repository import SettlementRepository
from haulsettle.models import RateScope, RateType, SequenceCounter, SettlementItem, WeeklySummary
from haulsettle.services.settlement_service import settle_ticket
from haulsettle.services.summary_service import recompute_weekly_summary

ORG_ID = "org-1"


def test_driver_rate_settlement(db, repo, sequences, config, make_rate, make_ticket):
    rate = make_rate(RateScope.DRIVER, "D1", rate_value="15.00", rate_name="D1 haul rate")

    result = settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)

    item = result.item
    assert item.amount == Decimal("150.00")
    assert item.quantity == Decimal("10")
    assert item.rate_id == rate.id
    assert item.rate_name == "D1 haul rate"
    assert item.rate_type == RateType.PER_TON
    assert item.settlement_number == "STL-000001"
    assert item.week_end_date == date(2024, 6, 7)

    assert result.summary.total_amount == Decimal("150.00")
    assert result.summary.item_count == 1


def test_same_ticket_twice_is_rejected(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1")
    settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)

    with pytest.raises(DuplicateTicketError):
        settle_ticket(make_ticket(load_id="L-2"), ORG_ID, repo, sequences, config)

    assert db.query(SettlementItem).filter_by(driver_id="D1", ticket_number="T-100").count() == 1
    summary = db.query(WeeklySummary).filter_by(driver_id="D1").one()
    assert summary.item_count == 1
    assert summary.total_amount == Decimal("150.00")


def test_same_ticket_number_for_another_driver_is_allowed(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DEFAULT, rate_value="12.00")
    settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)
    result = settle_ticket(make_ticket(driver_id="D2"), ORG_ID, repo, sequences, config)

    assert result.item.amount == Decimal("120.00")
    assert result.item.settlement_number == "STL-000002"


def test_concurrent_insert_loses_to_unique_constraint(db, sequences, config, make_rate, make_ticket):
    """A request that passed the existence check before the other committed still fails as duplicate."""

    class StaleRepository(SettlementRepository):
        def exists(self, driver_id, ticket_number):
            return False

    repo = StaleRepository(db)
    make_rate(RateScope.DRIVER, "D1")
    settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)

    with pytest.raises(DuplicateTicketError):
        settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)

    assert db.query(SettlementItem).count() == 1
    assert db.query(SequenceCounter).one().value == 1


def test_no_applicable_rate(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D9")
    make_rate(RateScope.MATERIAL, "Gravel")

    with pytest.raises(NoApplicableRateError):
        settle_ticket(make_ticket(material_type="Sand"), ORG_ID, repo, sequences, config)

    assert db.query(SettlementItem).count() == 0
    assert db.query(WeeklySummary).count() == 0


def test_rates_from_other_organizations_are_ignored(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DEFAULT, organization_id="org-2")

    with pytest.raises(NoApplicableRateError):
        settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)


def test_material_rate_when_no_driver_rate(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DEFAULT, rate_value="9.00")
    make_rate(RateScope.CUSTOMER, "C1", rate_value="11.00")
    material = make_rate(RateScope.MATERIAL, "Gravel", rate_value="13.25")

    result = settle_ticket(
        make_ticket(material_type="Gravel", customer_id="C1"), ORG_ID, repo, sequences, config
    )
    assert result.item.rate_id == material.id
    assert result.item.amount == Decimal("132.50")


def test_newest_driver_rate_wins(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1", rate_value="15.00", created_at=datetime(2024, 1, 1))
    newest = make_rate(RateScope.DRIVER, "D1", rate_value="16.00", created_at=datetime(2024, 4, 1))

    result = settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)
    assert result.item.rate_id == newest.id
    assert result.item.amount == Decimal("160.00")


def test_rates_outside_effective_period_are_skipped(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1", rate_value="20.00", effective_end=date(2024, 5, 31))
    make_rate(RateScope.DRIVER, "D1", rate_value="25.00", effective_start=date(2024, 7, 1))
    current = make_rate(RateScope.DEFAULT, rate_value="10.00", effective_start=date(2024, 1, 1))

    result = settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)
    assert result.item.rate_id == current.id


def test_per_load_rate_pays_one_load(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1", rate_value="85.00", rate_type=RateType.PER_LOAD)

    result = settle_ticket(make_ticket(net_quantity=None), ORG_ID, repo, sequences, config)
    assert result.item.quantity == Decimal("1")
    assert result.item.amount == Decimal("85.00")


def test_per_hour_rate_requires_hours(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1", rate_value="40.00", rate_type=RateType.PER_HOUR)

    with pytest.raises(TicketInputError):
        settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)

    result = settle_ticket(make_ticket(hours=Decimal("7.5")), ORG_ID, repo, sequences, config)
    assert result.item.amount == Decimal("300.00")


def test_missing_required_fields_never_reach_the_store(config, make_ticket):
    repo = MagicMock()
    sequences = MagicMock()

    with pytest.raises(TicketInputError) as exc_info:
        settle_ticket(make_ticket(load_id="", ticket_number=""), ORG_ID, repo, sequences, config)

    assert "load_id" in exc_info.value.message
    assert "ticket_number" in exc_info.value.message
    repo.find.assert_not_called()
    repo.insert.assert_not_called()
    sequences.next_value.assert_not_called()


def test_store_failure_leaves_no_partial_state(db, sequences, config, make_rate, make_ticket):
    class FailingSummaryRepository(SettlementRepository):
        def upsert(self, summary):
            raise SettlementStoreError("database unavailable")

    make_rate(RateScope.DRIVER, "D1")

    with pytest.raises(SettlementStoreError) as exc_info:
        settle_ticket(make_ticket(), ORG_ID, FailingSummaryRepository(db), sequences, config)

    assert exc_info.value.retryable
    assert db.query(SettlementItem).count() == 0
    assert db.query(WeeklySummary).count() == 0
    assert db.query(SequenceCounter).count() == 0

    # Retrying once the store is back settles the ticket exactly once
    result = settle_ticket(make_ticket(), ORG_ID, SettlementRepository(db), sequences, config)
    assert result.item.settlement_number == "STL-000001"


def test_weekly_summary_totals_and_idempotence(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1", rate_value="12.345")
    settle_ticket(make_ticket(ticket_number="T-1", net_quantity=Decimal("10")), ORG_ID, repo, sequences, config)
    settle_ticket(
        make_ticket(ticket_number="T-2", net_quantity=Decimal("3.5"), ticket_date=date(2024, 6, 7)),
        ORG_ID, repo, sequences, config
    )
    # Next week
    settle_ticket(
        make_ticket(ticket_number="T-3", ticket_date=date(2024, 6, 8)), ORG_ID, repo, sequences, config
    )

    first = recompute_weekly_summary(ORG_ID, "D1", date(2024, 6, 7), repo)
    repo.commit()
    first_totals = (first.total_quantity, first.total_amount, first.item_count)

    second = recompute_weekly_summary(ORG_ID, "D1", date(2024, 6, 7), repo)
    repo.commit()

    # 123.45 + 43.21 (43.2075)
    assert first_totals == (Decimal("13.5"), Decimal("166.66"), 2)
    assert (second.total_quantity, second.total_amount, second.item_count) == first_totals
    assert db.query(WeeklySummary).filter_by(driver_id="D1").count() == 2


def test_summary_for_empty_week_is_zero(db, repo):
    summary = recompute_weekly_summary(ORG_ID, "D1", date(2024, 6, 7), repo)
    assert summary.item_count == 0
    assert summary.total_amount == Decimal("0.00")


def test_summary_ignores_other_organizations(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1")
    settle_ticket(make_ticket(), ORG_ID, repo, sequences, config)

    other = recompute_weekly_summary("org-2", "D1", date(2024, 6, 7), repo)
    repo.commit()

    assert other.organization_id == "org-2"
    assert other.item_count == 0
    assert other.total_amount == Decimal("0.00")
    own = repo.get_summary(ORG_ID, "D1", date(2024, 6, 7))
    assert own.organization_id == ORG_ID
    assert own.item_count == 1
    assert own.total_amount == Decimal("150.00")


def test_summary_row_is_locked_before_items_are_read(db, make_rate, sequences, config, make_ticket):
    calls = []

    class RecordingRepository(SettlementRepository):
        def get_summary(self, organization_id, driver_id, week_end_date, for_update=False):
            calls.append(("get_summary", for_update))
            return super().get_summary(organization_id, driver_id, week_end_date, for_update=for_update)

        def items_for_week(self, organization_id, driver_id, week_end_date):
            calls.append(("items_for_week", None))
            return super().items_for_week(organization_id, driver_id, week_end_date)

    make_rate(RateScope.DRIVER, "D1")
    settle_ticket(make_ticket(), ORG_ID, RecordingRepository(db), sequences, config)

    assert calls[:2] == [("get_summary", True), ("items_for_week", None)]


def test_find_filters_rates_by_effective_date(db, repo, make_rate):
    expired = make_rate(RateScope.DRIVER, "D1", effective_end=date(2024, 5, 31))
    future = make_rate(RateScope.DRIVER, "D1", effective_start=date(2024, 7, 1))
    open_ended = make_rate(RateScope.DEFAULT)
    bounded = make_rate(
        RateScope.MATERIAL, "Gravel", effective_start=date(2024, 6, 5), effective_end=date(2024, 6, 5)
    )

    on_day = repo.find(ORG_ID, "D1", material_type="Gravel", on_date=date(2024, 6, 5))
    assert {rate.id for rate in on_day} == {open_ended.id, bounded.id}

    any_day = repo.find(ORG_ID, "D1", material_type="Gravel")
    assert {rate.id for rate in any_day} == {expired.id, future.id, open_ended.id, bounded.id}


def test_quantity_is_rounded_before_amount(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1", rate_value="100.00")

    result = settle_ticket(make_ticket(net_quantity=Decimal("1.0005")), ORG_ID, repo, sequences, config)

    db.expire_all()
    stored = db.query(SettlementItem).one()
    assert stored.quantity == Decimal("1.001")
    assert stored.amount == Decimal("100.10")
    assert stored.quantity * stored.rate_value == stored.amount
    assert result.summary.total_quantity == Decimal("1.001")


def test_quantity_rounding_to_zero_is_missing(db, repo, sequences, config, make_rate, make_ticket):
    make_rate(RateScope.DRIVER, "D1")

    with pytest.raises(TicketInputError):
        settle_ticket(make_ticket(net_quantity=Decimal("0.0004")), ORG_ID, repo, sequences, config)
    assert db.query(SettlementItem).count() == 0
