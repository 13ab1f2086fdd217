"""
Persistence interface used by the settlement core.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy import or_, and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from haulsettle.core.exceptions import DuplicateTicketError, SettlementStoreError
from haulsettle.models.pay_rate import PayRate, RateScope
from haulsettle.models.settlement import SettlementItem, WeeklySummary


class SettlementRepository:
    """
    Thin wrapper over a SQLAlchemy session.

    Writes are flushed but not committed; the caller owns the transaction
    and calls ``commit`` or ``rollback`` once per settlement.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(
        self,
        organization_id: str,
        driver_id: str,
        material_type: Optional[str] = None,
        customer_id: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> List[PayRate]:
        """
        Return org rates whose scope matches the driver, material, customer
        or is the default. With ``on_date``, only rates in effect that day.
        """
        scope_filters = [
            and_(PayRate.scope_type == RateScope.DRIVER, PayRate.scope_value == driver_id),
            PayRate.scope_type == RateScope.DEFAULT,
        ]
        if material_type:
            scope_filters.append(
                and_(PayRate.scope_type == RateScope.MATERIAL, PayRate.scope_value == material_type)
            )
        if customer_id:
            scope_filters.append(
                and_(PayRate.scope_type == RateScope.CUSTOMER, PayRate.scope_value == customer_id)
            )

        query = self.db.query(PayRate).filter(
            PayRate.organization_id == organization_id,
            or_(*scope_filters)
        )
        if on_date is not None:
            query = query.filter(
                or_(PayRate.effective_start.is_(None), PayRate.effective_start <= on_date),
                or_(PayRate.effective_end.is_(None), PayRate.effective_end >= on_date)
            )

        try:
            return query.all()
        except SQLAlchemyError as e:
            raise SettlementStoreError(f"Failed to load pay rates: {e}") from e

    def exists(self, driver_id: str, ticket_number: str) -> bool:
        try:
            return self.db.query(SettlementItem.id).filter(
                SettlementItem.driver_id == driver_id,
                SettlementItem.ticket_number == ticket_number
            ).first() is not None
        except SQLAlchemyError as e:
            raise SettlementStoreError(f"Failed to check for existing settlement: {e}") from e

    def insert(self, item: SettlementItem) -> SettlementItem:
        """
        Add and flush a settlement item.

        The unique constraint on (driver_id, ticket_number) decides races:
        the losing insert rolls back and surfaces as a duplicate.
        """
        self.db.add(item)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if "uq_settlement_driver_ticket" in str(e.orig) or _is_driver_ticket_violation(e):
                raise DuplicateTicketError(item.driver_id, item.ticket_number) from e
            raise SettlementStoreError(f"Settlement item rejected by the database: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SettlementStoreError(f"Failed to insert settlement item: {e}") from e
        return item

    def items_for_week(self, organization_id: str, driver_id: str, week_end_date: date) -> List[SettlementItem]:
        try:
            return self.db.query(SettlementItem).filter(
                SettlementItem.organization_id == organization_id,
                SettlementItem.driver_id == driver_id,
                SettlementItem.week_end_date == week_end_date
            ).order_by(SettlementItem.id.asc()).all()
        except SQLAlchemyError as e:
            raise SettlementStoreError(f"Failed to load settlement items: {e}") from e

    def get_summary(
        self,
        organization_id: str,
        driver_id: str,
        week_end_date: date,
        for_update: bool = False
    ) -> Optional[WeeklySummary]:
        """
        Fetch a summary row. ``for_update`` locks it until the transaction
        ends so concurrent recomputes for the same week run one at a time.
        """
        query = self.db.query(WeeklySummary).filter(
            WeeklySummary.organization_id == organization_id,
            WeeklySummary.driver_id == driver_id,
            WeeklySummary.week_end_date == week_end_date
        )
        if for_update:
            query = query.with_for_update()
        try:
            return query.first()
        except SQLAlchemyError as e:
            raise SettlementStoreError(f"Failed to load weekly summary: {e}") from e

    def upsert(self, summary: WeeklySummary) -> WeeklySummary:
        """Insert the summary or overwrite the totals of the existing row for the same organization."""
        try:
            existing = self.get_summary(summary.organization_id, summary.driver_id, summary.week_end_date)
            if existing:
                existing.total_quantity = summary.total_quantity
                existing.total_amount = summary.total_amount
                existing.item_count = summary.item_count
                summary = existing
            else:
                self.db.add(summary)
            self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SettlementStoreError(f"Failed to save weekly summary: {e}") from e
        return summary

    def commit(self):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise SettlementStoreError(f"Failed to commit settlement: {e}") from e

    def rollback(self):
        self.db.rollback()


def _is_driver_ticket_violation(error: IntegrityError) -> bool:
    # SQLite reports the columns rather than the constraint name
    message = str(error.orig)
    return "settlement_items.driver_id" in message and "settlement_items.ticket_number" in message
