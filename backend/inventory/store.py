"""
Persistence for the reconciliation workflows.

``InventoryStore`` is the only place the workflows touch the ORM. It is built
once by the inventory app config and handed to ``ReconciliationService``.
"""
import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, DatabaseError, IntegrityError, OperationalError, transaction
from django.utils import timezone

from backend.boms.models import Bom, BomItem, Job
from backend.catalog.models import Category
from backend.containers.models import Container, ContainerItem
from backend.core.cache_signals import suspend_cache_signals
from backend.locations.models import ShelfLocation

from .exceptions import ConflictError, InventoryError, NotFoundError, StoreUnavailableError
from .rules import BomItemState, BomSnapshot, LocationSnapshot, normalize_description

logger = logging.getLogger('backend.inventory')

BOM_ITEM_FIELDS = [
    'description', 'match_key', 'order_bom_quantity', 'design_bom_quantity',
    'on_hand_quantity', 'shipped_quantity', 'shelf_locations', 'last_updated',
]
JOB_FIELDS = ('job_name', 'project_manager', 'primary_field_leader')


class InventoryStore:
    """ORM-backed store with retrying atomic transactions"""

    def __init__(self, using=DEFAULT_DB_ALIAS, max_attempts=None):
        self.using = using
        self.max_attempts = max_attempts or getattr(settings, 'INVENTORY_TRANSACTION_MAX_ATTEMPTS', 5)

    def run_transaction(self, fn, *args, **kwargs):
        """
        Run ``fn(*args, **kwargs)`` inside one atomic block and return its result.

        Lock timeouts, deadlocks and serialization failures surface as
        OperationalError; integrity races (two writers inserting the same
        unique row) as IntegrityError. Both are retried with a fresh
        transaction up to ``max_attempts`` times before a ConflictError.
        Workflow errors propagate untouched.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                with transaction.atomic(using=self.using):
                    return fn(*args, **kwargs)
            except InventoryError:
                raise
            except (OperationalError, IntegrityError) as e:
                if attempt >= self.max_attempts:
                    logger.error(f"Transaction {getattr(fn, '__name__', fn)} gave up after {attempt} attempts: {e}")
                    raise ConflictError() from e
                logger.warning(f"Transaction {getattr(fn, '__name__', fn)} conflicted (attempt {attempt}/{self.max_attempts}): {e}")
            except DatabaseError as e:
                logger.error(f"Database error in {getattr(fn, '__name__', fn)}: {e}", exc_info=True)
                raise StoreUnavailableError(str(e)) from e

    # ---- BOMs ----

    def find_bom_for_job(self, job_number, for_update=False):
        """First BOM of the job by creation time, or None"""
        queryset = Bom.objects.using(self.using).filter(job_number=job_number).order_by('created_at', 'id')
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.first()

    def get_bom(self, bom_id, for_update=False):
        queryset = Bom.objects.using(self.using)
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=bom_id)
        except Bom.DoesNotExist:
            raise NotFoundError(f"BOM {bom_id} not found.")

    def bom_items(self, bom):
        return list(BomItem.objects.using(self.using).filter(bom=bom).order_by('id'))

    def save_bom_items(self, items, states):
        """Write ``states`` back onto the matching BomItem rows (same order); returns rows written"""
        changed = []
        for item, state in zip(items, states):
            if item.to_state() == state:
                continue
            item.apply_state(state)
            changed.append(item)
        if changed:
            BomItem.objects.using(self.using).bulk_update(changed, BOM_ITEM_FIELDS)
        return len(changed)

    def replace_bom_items(self, bom, states):
        """Swap the BOM's rows for ``states``; callers invalidate the dashboard cache once afterwards"""
        rows = []
        for state in states:
            item = BomItem(bom=bom)
            item.apply_state(state)
            rows.append(item)
        with suspend_cache_signals():
            BomItem.objects.using(self.using).filter(bom=bom).delete()
            return BomItem.objects.using(self.using).bulk_create(rows)

    def create_bom(self, job, bom_type, states, work_category=None):
        bom = Bom.objects.using(self.using).create(
            job=job,
            job_number=job.job_number,
            job_name=job.job_name,
            project_manager=job.project_manager,
            primary_field_leader=job.primary_field_leader,
            work_category=work_category or job.work_category,
            type=bom_type,
        )
        self.replace_bom_items(bom, states)
        return bom

    def update_bom_header(self, bom, job, work_category=None):
        bom.job = job
        bom.job_number = job.job_number
        bom.job_name = job.job_name
        bom.project_manager = job.project_manager
        bom.primary_field_leader = job.primary_field_leader
        if work_category is not None:
            bom.work_category = work_category
        bom.save(using=self.using)
        return bom

    def delete_bom(self, bom):
        with suspend_cache_signals():
            bom.delete(using=self.using)

    def bom_snapshots(self):
        """Snapshots of every BOM holding stock; items without stock cannot occupy a shelf"""
        rows = (
            BomItem.objects.using(self.using)
            .filter(on_hand_quantity__gt=0)
            .values_list('bom_id', 'bom__job_number', 'description', 'on_hand_quantity', 'shelf_locations')
            .order_by('bom_id', 'id')
        )
        grouped = {}
        for bom_id, job_number, description, on_hand, shelves in rows:
            _, items = grouped.setdefault(bom_id, (job_number, []))
            items.append(BomItemState(
                description=description, on_hand_quantity=on_hand, shelf_locations=tuple(shelves or ()),
            ))
        return [
            BomSnapshot(bom_id=bom_id, job_number=job_number, items=tuple(items))
            for bom_id, (job_number, items) in grouped.items()
        ]

    # ---- jobs ----

    def upsert_job(self, job_number, work_category=None, **fields):
        """
        Create the job or merge into the existing one.

        Non-empty values in ``fields`` overwrite; empty or missing ones keep
        what is stored. ``work_category`` overwrites only when given.
        """
        job_number = normalize_description(job_number)
        job, created = Job.objects.using(self.using).select_for_update().get_or_create(
            job_number=job_number,
            defaults={
                **{name: (fields.get(name) or '').strip() for name in JOB_FIELDS},
                'work_category': work_category,
            },
        )
        if created:
            return job
        changed = []
        for name in JOB_FIELDS:
            value = (fields.get(name) or '').strip()
            if value and value != getattr(job, name):
                setattr(job, name, value)
                changed.append(name)
        if work_category is not None and job.work_category_id != work_category.pk:
            job.work_category = work_category
            changed.append('work_category')
        if changed:
            job.save(using=self.using, update_fields=changed + ['updated_at'])
        return job

    # ---- containers ----

    def get_container(self, container_id, for_update=False):
        queryset = Container.objects.using(self.using)
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=container_id)
        except Container.DoesNotExist:
            raise NotFoundError(f"Container {container_id} not found.")

    def container_lines(self, container):
        return list(ContainerItem.objects.using(self.using).filter(container=container).order_by('id'))

    def create_container(self, entry, job_number='', job_name='', work_category=None, received_by=None, receipt_date=None):
        container = Container.objects.using(self.using).create(
            job_number=job_number or '',
            job_name=job_name or '',
            work_category=work_category,
            container_type=entry.container_type,
            shelf_location=entry.shelf_location or None,
            receipt_date=receipt_date or timezone.now(),
            notes=entry.notes or '',
            image_url=entry.image_url or '',
            received_by=received_by if received_by is not None and received_by.is_authenticated else None,
        )
        ContainerItem.objects.using(self.using).bulk_create([
            ContainerItem(container=container, description=normalize_description(line.description), quantity=line.quantity)
            for line in entry.items
        ])
        return container

    def set_container_shelf(self, container, shelf_location):
        container.shelf_location = shelf_location or None
        container.save(using=self.using, update_fields=['shelf_location'])
        return container

    def containers_on_shelf(self, job_number, shelf_location, exclude_id=None):
        queryset = Container.objects.using(self.using).filter(
            job_number=job_number, shelf_location=shelf_location,
        ).prefetch_related('items')
        if exclude_id is not None:
            queryset = queryset.exclude(pk=exclude_id)
        return list(queryset)

    # ---- reference data ----

    def get_category(self, category_id):
        try:
            return Category.objects.using(self.using).get(pk=category_id)
        except (Category.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Work category {category_id} not found.")

    def locations(self):
        return [
            LocationSnapshot(name=name, id=pk)
            for pk, name in ShelfLocation.objects.using(self.using).order_by('name').values_list('pk', 'name')
        ]

    def lock_locations(self, names):
        """Lock the named shelf rows in name order; returns the names that exist"""
        return list(
            ShelfLocation.objects.using(self.using)
            .select_for_update()
            .filter(name__in=list(names))
            .order_by('name')
            .values_list('name', flat=True)
        )

    def location_names(self):
        return set(ShelfLocation.objects.using(self.using).values_list('name', flat=True))

    def create_locations(self, names):
        """Insert the names not stored yet; returns (created, skipped) name lists"""
        existing = self.location_names()
        created, skipped = [], []
        for name in names:
            if name in existing:
                skipped.append(name)
                continue
            existing.add(name)
            created.append(name)
        ShelfLocation.objects.using(self.using).bulk_create([ShelfLocation(name=name) for name in created])
        return created, skipped
