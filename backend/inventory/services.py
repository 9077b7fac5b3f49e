"""
Inventory reconciliation workflows.

Each public method of ``ReconciliationService`` validates its input, runs one
store transaction that reads the current documents, applies the pure rules of
``backend.inventory.rules`` and writes the results, then records an audit
entry once the transaction has committed.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from django.apps import apps
from django.utils import timezone

from backend.core.cache_utils import invalidate_dashboard_cache
from backend.core.utils import create_audit_log

from . import rules
from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger('backend.inventory')


@dataclass(frozen=True)
class ReceiptResult:
    container_ids: tuple
    updated_bom_id: Optional[int] = None


@dataclass(frozen=True)
class ShipmentResult:
    updated_bom_id: int
    job_number: str = ''
    overshipped: dict = field(default_factory=dict)


@dataclass(frozen=True)
class MoveResult:
    container_id: int
    from_location: Optional[str]
    to_location: Optional[str]
    updated_bom_id: Optional[int] = None


@dataclass(frozen=True)
class LocationImportResult:
    created: tuple
    skipped: tuple


def _clean(value):
    return (value or '').strip()


class ReconciliationService:

    def __init__(self, store, clock=timezone.now):
        self.store = store
        self.clock = clock

    # ---- receipt ----

    def receive_containers(self, job_number, containers, job_name='', work_category_id=None,
                           user=None, request=None):
        """
        Create ``containers`` and credit their contents to the job's BOM.

        When the job has no BOM the containers are still created and
        ``updated_bom_id`` is None.
        """
        job_number = _clean(job_number)
        self._validate_containers(containers)
        received = rules.aggregate_containers(containers)
        shelves = rules.shelves_by_description(containers)

        result = self.store.run_transaction(
            self._receive, job_number, _clean(job_name), work_category_id, containers, received, shelves, user,
        )

        logger.info(
            f"Received {len(result.container_ids)} container(s) for job {job_number or '(none)'}; "
            f"BOM updated: {result.updated_bom_id or 'no'}"
        )
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='stock_receive',
            model_name='Container',
            object_id=result.container_ids[0],
            object_reference=job_number or None,
            changes={
                'container_ids': list(result.container_ids),
                'bom_id': result.updated_bom_id,
                'received': received,
            },
        )
        return result

    def _validate_containers(self, containers):
        if not containers:
            raise ValidationError('At least one container is required.')
        for index, container in enumerate(containers, start=1):
            if not _clean(container.container_type):
                raise ValidationError(f"Container {index} needs a container type.")
            if not container.items:
                raise ValidationError(f"Container {index} needs at least one item.")
            for line in container.items:
                if not rules.normalize_description(line.description):
                    raise ValidationError(f"Container {index} has an item without a description.")
                if not isinstance(line.quantity, int) or isinstance(line.quantity, bool) or line.quantity < 1:
                    raise ValidationError(
                        f"Quantity for '{line.description}' in container {index} must be a positive whole number."
                    )

    def _check_receipt_shelves(self, containers):
        """
        Every chosen shelf must exist and be free for this batch.

        Runs after the BOM lock; the chosen shelf rows are locked before
        occupancy is read.
        """
        chosen = [container.shelf_location or None for container in containers]
        if not any(chosen):
            return
        names = set(self.store.lock_locations({shelf for shelf in chosen if shelf}))
        locations = self.store.locations()
        snapshots = self.store.bom_snapshots()
        for index, shelf in enumerate(chosen):
            if not shelf:
                continue
            if shelf not in names:
                raise NotFoundError(f"Shelf location '{shelf}' does not exist.")
            others = chosen[:index] + chosen[index + 1:]
            eligible = {location.name for location in rules.eligible_shelves(locations, snapshots, others)}
            if shelf not in eligible:
                if shelf in others:
                    raise ValidationError(f"Shelf location '{shelf}' was picked for more than one container.")
                raise ValidationError(f"Shelf location '{shelf}' is already occupied.")

    def _receive(self, job_number, job_name, work_category_id, containers, received, shelves, user):
        now = self.clock()
        bom = self.store.find_bom_for_job(job_number, for_update=True) if job_number else None
        self._check_receipt_shelves(containers)

        work_category = self.store.get_category(work_category_id) if work_category_id else None
        if bom is not None:
            job_name = job_name or bom.job_name
            work_category = work_category or bom.work_category

        container_ids = tuple(
            self.store.create_container(
                container,
                job_number=job_number,
                job_name=job_name,
                work_category=work_category,
                received_by=user,
                receipt_date=now,
            ).pk
            for container in containers
        )

        if bom is None:
            if job_number:
                logger.warning(f"No BOM found for job {job_number}; containers stored without reconciliation")
            return ReceiptResult(container_ids=container_ids)

        items = self.store.bom_items(bom)
        states = [item.to_state() for item in items]
        unmatched = rules.unmatched_keys(states, received)
        if unmatched:
            logger.warning(f"Job {job_number}: {len(unmatched)} received description(s) not on BOM {bom.pk}: {unmatched}")
        updated = rules.apply_receipt(states, received, now, shelves)
        rules.validate_quantities(updated)
        self.store.save_bom_items(items, updated)
        return ReceiptResult(container_ids=container_ids, updated_bom_id=bom.pk)

    # ---- shipment ----

    def ship_container(self, container_id, user=None, request=None):
        """Deduct a container's contents from the job's BOM on-hand and add them to shipped"""
        result = self.store.run_transaction(self._ship, container_id)

        for description, excess in result.overshipped.items():
            logger.warning(
                f"Container {container_id} shipped {excess} more '{description}' than on hand "
                f"for job {result.job_number}; on-hand clamped at 0"
            )
        logger.info(f"Shipped container {container_id} against BOM {result.updated_bom_id} (job {result.job_number})")
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='stock_ship',
            model_name='Container',
            object_id=container_id,
            object_reference=result.job_number,
            changes={'bom_id': result.updated_bom_id, 'overshipped': result.overshipped},
        )
        return result

    def _ship(self, container_id):
        container = self.store.get_container(container_id, for_update=True)
        job_number = _clean(container.job_number)
        if not job_number:
            raise ValidationError('This container has no job associated with it, so it cannot be shipped.')

        bom = self.store.find_bom_for_job(job_number, for_update=True)
        if bom is None:
            raise NotFoundError(f"No BOM found for job {job_number}.")

        lines = [rules.ItemLine(line.description, line.quantity) for line in self.store.container_lines(container)]
        shipped = rules.aggregate_quantities(lines)
        items = self.store.bom_items(bom)
        states = [item.to_state() for item in items]
        overshipped = rules.find_overshipments(states, shipped)
        updated = rules.apply_shipment(states, shipped, self.clock())
        rules.validate_quantities(updated)
        self.store.save_bom_items(items, updated)
        return ShipmentResult(updated_bom_id=bom.pk, job_number=job_number, overshipped=overshipped)

    # ---- BOM import / edit / delete ----

    def import_bom(self, parsed, bom_type, review_confirmed, work_category_id=None, user=None, request=None):
        """
        Persist a reviewed BOM.

        ``parsed`` carries ``job`` (a mapping with job_number, job_name,
        project_manager, primary_field_leader) and ``items`` (ItemLines).
        Nothing is written unless ``review_confirmed`` is true.
        """
        if not review_confirmed:
            raise ValidationError('Review the parsed BOM and confirm it before importing.')
        if bom_type not in rules.BOM_TYPES:
            raise ValidationError(f"BOM type must be one of: {', '.join(rules.BOM_TYPES)}.")
        job = dict(parsed.job)
        job_number = rules.normalize_description(job.get('job_number'))
        if not job_number:
            raise ValidationError('Job number is required.')
        states = rules.build_bom_items(parsed.items, bom_type, self.clock())

        bom = self.store.run_transaction(self._import, job_number, job, bom_type, states, work_category_id)

        logger.info(f"Imported {bom_type} BOM {bom.pk} for job {job_number} with {len(states)} item(s)")
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='bom_import',
            model_name='Bom',
            object_id=bom.pk,
            object_name=bom.job_name,
            object_reference=job_number,
            changes={'type': bom_type, 'item_count': len(states)},
        )
        return bom

    def _import(self, job_number, job, bom_type, states, work_category_id):
        work_category = self.store.get_category(work_category_id) if work_category_id else None
        job_record = self.store.upsert_job(
            job_number,
            work_category=work_category,
            job_name=job.get('job_name'),
            project_manager=job.get('project_manager'),
            primary_field_leader=job.get('primary_field_leader'),
        )
        return self.store.create_bom(job_record, bom_type, states, work_category=work_category)

    def update_bom(self, bom_id, job, lines, work_category_id=None, user=None, request=None):
        """Replace a BOM's job info and item list, keeping stock already reconciled"""
        job = dict(job or {})
        bom = self.store.run_transaction(self._update_bom, bom_id, job, lines, work_category_id)

        logger.info(f"BOM {bom_id} updated for job {bom.job_number}")
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='update',
            model_name='Bom',
            object_id=bom_id,
            object_name=bom.job_name,
            object_reference=bom.job_number,
            changes={'item_count': len(lines)},
        )
        return bom

    def _update_bom(self, bom_id, job, lines, work_category_id):
        bom = self.store.get_bom(bom_id, for_update=True)
        job_number = rules.normalize_description(job.get('job_number')) or bom.job_number
        states = rules.rebuild_bom_items(
            [item.to_state() for item in self.store.bom_items(bom)], lines, bom.type, self.clock(),
        )
        rules.validate_quantities(states)
        work_category = self.store.get_category(work_category_id) if work_category_id else None
        job_record = self.store.upsert_job(
            job_number,
            work_category=work_category,
            job_name=job.get('job_name'),
            project_manager=job.get('project_manager'),
            primary_field_leader=job.get('primary_field_leader'),
        )
        self.store.update_bom_header(bom, job_record, work_category=work_category)
        self.store.replace_bom_items(bom, states)
        return bom

    def delete_bom(self, bom_id, user=None, request=None):
        bom = self.store.run_transaction(self._delete_bom, bom_id)
        logger.info(f"BOM {bom_id} (job {bom.job_number}) deleted")
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='delete',
            model_name='Bom',
            object_id=bom_id,
            object_name=bom.job_name,
            object_reference=bom.job_number,
        )

    def _delete_bom(self, bom_id):
        bom = self.store.get_bom(bom_id, for_update=True)
        self.store.delete_bom(bom)
        return bom

    # ---- shelves ----

    def eligible_shelves_for(self, in_flight_selections=(), current_selection=None):
        """Shelves a form entry may pick, given what the other entries picked"""
        return self.store.run_transaction(self._eligible, tuple(in_flight_selections), current_selection)

    def _eligible(self, in_flight_selections, current_selection):
        return rules.eligible_shelves(
            self.store.locations(), self.store.bom_snapshots(), in_flight_selections, current_selection,
        )

    def move_container(self, container_id, new_location_name, user=None, request=None):
        """Put a container on another shelf (or none) and re-point its BOM items"""
        new_location = _clean(new_location_name) or None
        result = self.store.run_transaction(self._move, container_id, new_location)

        if result.from_location == result.to_location:
            return result
        logger.info(
            f"Container {container_id} moved from {result.from_location or 'Not Shelved'} "
            f"to {result.to_location or 'Not Shelved'}"
        )
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='container_move',
            model_name='Container',
            object_id=container_id,
            changes={
                'from': result.from_location,
                'to': result.to_location,
                'bom_id': result.updated_bom_id,
            },
        )
        return result

    def _move(self, container_id, new_location):
        container = self.store.get_container(container_id, for_update=True)
        old_location = container.shelf_location or None
        if new_location == old_location:
            return MoveResult(container.pk, old_location, new_location)

        job_number = _clean(container.job_number)
        bom = self.store.find_bom_for_job(job_number, for_update=True) if job_number else None

        if new_location:
            if not self.store.lock_locations([new_location]):
                raise NotFoundError(f"Shelf location '{new_location}' does not exist.")
            locations = self.store.locations()
            eligible = rules.eligible_shelves(locations, self.store.bom_snapshots(), current_selection=old_location)
            if new_location not in {location.name for location in eligible}:
                raise ValidationError(f"Shelf location '{new_location}' is already occupied.")

        self.store.set_container_shelf(container, new_location)
        if bom is None:
            return MoveResult(container.pk, old_location, new_location)

        moved_keys = {rules.description_key(line.description) for line in self.store.container_lines(container)}
        retained_keys = set()
        if old_location:
            for other in self.store.containers_on_shelf(job_number, old_location, exclude_id=container.pk):
                retained_keys.update(rules.description_key(line.description) for line in other.items.all())

        items = self.store.bom_items(bom)
        updated = rules.move_shelves(
            [item.to_state() for item in items], moved_keys, old_location, new_location, retained_keys,
        )
        self.store.save_bom_items(items, updated)
        return MoveResult(container.pk, old_location, new_location, updated_bom_id=bom.pk)

    # ---- locations ----

    def import_locations(self, names, user=None, request=None):
        """Add shelf locations in one batch; names already stored are skipped"""
        cleaned = []
        for name in names:
            name = _clean(name)
            if name and name not in cleaned:
                cleaned.append(name)
        if not cleaned:
            raise ValidationError('No valid location names found.')

        created, skipped = self.store.run_transaction(self.store.create_locations, cleaned)

        logger.info(f"Imported {len(created)} shelf location(s), skipped {len(skipped)} existing")
        invalidate_dashboard_cache()
        create_audit_log(
            request=request,
            user=user,
            action='location_import',
            model_name='ShelfLocation',
            object_id=str(len(created)),
            changes={'created': created, 'skipped': skipped},
        )
        return LocationImportResult(created=tuple(created), skipped=tuple(skipped))


def get_reconciliation_service():
    """Service bound to the store built by the inventory app"""
    return ReconciliationService(apps.get_app_config('inventory').store)
