"""
Unit of Work Pattern

Manages database transactions and ensures that domain events
are published only after successful transaction commit.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from django.db import transaction

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work pattern"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction"""
        pass

    @abstractmethod
    def rollback(self):
        """Rollback the transaction"""
        pass

    @abstractmethod
    def add_event(self, event: DomainEvent):
        """Queue an event for publication after commit"""
        pass


class DjangoUnitOfWork(AbstractUnitOfWork):
    """
    Django implementation of Unit of Work

    Wraps ``transaction.atomic()`` and publishes the collected domain events
    through ``transaction.on_commit`` so that nothing (confirmation emails in
    particular) leaves the process for a booking that was rolled back.

    Usage:
        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.create(...)
            update_slot_booking(...)
            uow.add_event(BookingConfirmed(aggregate_id=booking.pk))

            if nothing_worth_keeping:
                uow.rollback()   # discard everything, leave the block normally
        # Events are published after commit
    """

    def __init__(self):
        self._events: List[DomainEvent] = []
        self._transaction = None
        self._rolled_back = False

    def __enter__(self):
        """Start database transaction"""
        self._transaction = transaction.atomic()
        self._transaction.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Complete or rollback transaction"""
        try:
            if exc_type is None and not self._rolled_back:
                self.commit()
            elif exc_type is not None:
                self.rollback()
        finally:
            if self._transaction:
                self._transaction.__exit__(exc_type, exc_val, exc_tb)

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    def commit(self):
        """
        Commit changes and publish events

        Events are published using Django's transaction.on_commit()
        to ensure they're only sent after database commit succeeds.
        """
        logger.debug(f"Committing transaction with {len(self._events)} events")

        events = self._events.copy()
        self._events.clear()

        if events:
            transaction.on_commit(lambda: self._publish_events(events))

    def rollback(self):
        """Mark the atomic block for rollback and discard events"""
        if self._events:
            logger.warning(f"Rolling back transaction, discarding {len(self._events)} events")
        self._events.clear()
        self._rolled_back = True
        if self._transaction is not None:
            transaction.set_rollback(True)

    def add_event(self, event: DomainEvent):
        self._events.append(event)
        logger.debug(f"Collected {event.__class__.__name__} for aggregate {event.aggregate_id}")

    def _publish_events(self, events: List[DomainEvent]):
        """
        Publish collected events to message bus

        Called after successful transaction commit.
        """
        from shared.application.message_bus import message_bus

        logger.info(f"Publishing {len(events)} domain events after commit")

        try:
            message_bus.publish_events(events)
        except Exception as e:
            # Runs after commit; never raises into the request
            logger.error(f"Error publishing events: {e}", exc_info=True)
