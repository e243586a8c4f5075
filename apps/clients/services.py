"""
Service layer for client writes and payment status reconciliation.
Handles business logic and database transactions for clients.
"""
import logging
from dataclasses import dataclass

from django.db import DatabaseError, IntegrityError
from django.db.models import CharField, Prefetch
from django.db.models.functions import Cast
from django.utils import timezone

from apps.core.exceptions import (
    DuplicateDniError,
    InvalidAssociationError,
    NotFoundError,
    WriteFailedError,
    is_foreign_key_violation,
    is_unique_violation,
)
from apps.groups.models import Group
from apps.locations.models import Location
from .models import Client, ClientGroup, ClientLocation
from .payment_status import classify, to_utc_date

logger = logging.getLogger(__name__)

CLIENT_NOT_FOUND = 'Alumno no encontrado'

EDITABLE_FIELDS = (
    'name', 'surname', 'dni', 'phone', 'birth_date',
    'payment_date', 'method_of_payment', 'address',
)


class ClientSyncService:
    """
    Writes a client row together with its location and group links.

    Every write runs in a single transaction on the injected store: either the
    client row and both association sets are stored exactly as requested, or
    nothing changes.
    """

    def __init__(self, store, clock=timezone.now):
        self.store = store
        self.clock = clock

    def queryset(self):
        return self.store.objects(Client).prefetch_related(
            Prefetch('locations', queryset=self.store.objects(Location).order_by('name')),
            Prefetch('groups', queryset=self.store.objects(Group).order_by('name')),
        )

    def get_client(self, client_id):
        try:
            return self.queryset().get(pk=client_id)
        except Client.DoesNotExist:
            raise NotFoundError(CLIENT_NOT_FOUND)

    def sync_client(self, client_id, attributes, location_ids=(), group_ids=()):
        """
        Create (client_id=None) or fully update a client and replace its
        association sets with exactly `location_ids` and `group_ids`.

        Returns the stored Client with its associations prefetched.

        Raises:
            NotFoundError: client_id does not exist
            DuplicateDniError: another client owns the DNI
            InvalidAssociationError: an id in either set does not exist
            WriteFailedError: any other store failure (nothing was written)
        """
        location_ids = set(location_ids)
        group_ids = set(group_ids)

        try:
            with self.store.atomic():
                client = self._write_client(client_id, attributes)
                self._replace_links(
                    client, ClientLocation, 'location', Location, location_ids, 'location_ids'
                )
                self._replace_links(
                    client, ClientGroup, 'group', Group, group_ids, 'group_ids'
                )
        except IntegrityError as exc:
            if is_unique_violation(exc, 'dni'):
                raise DuplicateDniError()
            logger.exception(f"Integrity error while saving client {client_id or '(new)'}")
            raise WriteFailedError()
        except DatabaseError:
            logger.exception(f"Database error while saving client {client_id or '(new)'}")
            raise WriteFailedError()

        return self.get_client(client.pk)

    def set_active(self, client_id, is_active):
        """Soft-delete (False) or restore (True) a client"""
        updated = self.store.objects(Client).filter(pk=client_id).update(
            is_active=is_active, updated_at=self.clock()
        )
        if not updated:
            raise NotFoundError(CLIENT_NOT_FOUND)
        logger.info(f"Client {client_id} is_active set to {is_active}")
        return self.get_client(client_id)

    def record_payment(self, client_id, last_payment):
        """Store the most recent payment and refresh the cached status"""
        with self.store.atomic():
            try:
                client = self.store.objects(Client).get(pk=client_id)
            except Client.DoesNotExist:
                raise NotFoundError(CLIENT_NOT_FOUND)
            client.last_payment = last_payment
            fields = ['last_payment', 'updated_at']
            if client.payment_date:
                client.payment_status = classify(client.payment_date, last_payment, self.clock())
                fields.append('payment_status')
            client.save(using=self.store.alias, update_fields=fields)
        return self.get_client(client_id)

    def _write_client(self, client_id, attributes):
        values = {field: attributes[field] for field in EDITABLE_FIELDS if field in attributes}

        if client_id is None:
            client = Client(is_active=True, **values)
        else:
            try:
                client = self.store.objects(Client).get(pk=client_id)
            except Client.DoesNotExist:
                raise NotFoundError(CLIENT_NOT_FOUND)
            for field, value in values.items():
                setattr(client, field, value)

        if client.payment_date:
            client.payment_status = classify(client.payment_date, client.last_payment, self.clock())
        client.save(using=self.store.alias)
        return client

    def _replace_links(self, client, link_model, target_field, target_model, desired_ids, field_name):
        """Delete every existing link of the client, then insert exactly `desired_ids`"""
        if desired_ids:
            existing = set(
                self.store.objects(target_model)
                .filter(pk__in=desired_ids)
                .values_list('pk', flat=True)
            )
            missing = desired_ids - existing
            if missing:
                raise InvalidAssociationError(field_name, missing)

        links = self.store.objects(link_model)
        links.filter(client=client).delete()
        try:
            links.bulk_create([
                link_model(client=client, **{f'{target_field}_id': pk})
                for pk in sorted(desired_ids)
            ])
            if desired_ids:
                # FKs are deferred; check now so a violation is tied to this set
                self.store.connection.check_constraints(table_names=[link_model._meta.db_table])
        except IntegrityError as exc:
            if is_foreign_key_violation(exc):
                # An id was deleted between the existence check and the insert
                raise InvalidAssociationError(field_name) from exc
            raise


@dataclass(frozen=True)
class ReconcileResult:
    checked: int = 0
    updated: int = 0
    failed: int = 0

    def as_dict(self):
        return {'checked': self.checked, 'updated': self.updated, 'failed': self.failed}


class PaymentStatusReconciler:
    """
    Re-derives the cached payment_status of every client with a scheduled
    payment date and writes it back only where it differs.

    A failure on one client is logged and counted; the run continues.
    """

    def __init__(self, store, clock=timezone.now):
        self.store = store
        self.clock = clock

    def reconcile_all(self, dry_run=False):
        now = self.clock()
        checked = updated = failed = 0

        # Dates are read as text and parsed per row, so one malformed value
        # fails that client instead of the whole query.
        rows = list(
            self.store.objects(Client)
            .filter(payment_date__isnull=False)
            .order_by('pk')
            .values_list(
                'pk',
                Cast('payment_date', output_field=CharField()),
                Cast('last_payment', output_field=CharField()),
                'payment_status',
            )
        )

        for pk, raw_payment_date, raw_last_payment, stored_status in rows:
            checked += 1
            try:
                status = classify(
                    to_utc_date(raw_payment_date), to_utc_date(raw_last_payment), now
                )
                if status == stored_status:
                    continue
                if not dry_run:
                    with self.store.atomic():
                        self.store.objects(Client).filter(pk=pk).update(payment_status=status)
                logger.debug(f"Client {pk}: payment_status {stored_status} -> {status}")
                updated += 1
            except Exception:
                logger.exception(f"Could not reconcile payment status for client {pk}")
                failed += 1

        result = ReconcileResult(checked=checked, updated=updated, failed=failed)
        logger.info(
            f"Payment status reconciliation{' (dry run)' if dry_run else ''}: "
            f"{checked} checked, {updated} updated, {failed} failed"
        )
        return result
