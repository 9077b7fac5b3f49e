"""
Test suite for inventory reconciliation
Tests: pure rules, store transactions, reconciliation workflows and the inventory views
"""
from datetime import datetime, timezone as dt_timezone
from django.core.cache import cache
from django.db import DatabaseError, OperationalError
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from backend.boms.importer import ParsedBom
from backend.boms.models import Bom, BomItem, Job
from backend.containers.models import Container
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory import rules
from backend.inventory.exceptions import ConflictError, NotFoundError, StoreUnavailableError, ValidationError
from backend.inventory.listing import sort_location_rows
from backend.inventory.rules import BomItemState, BomSnapshot, ContainerEntry, ItemLine, LocationSnapshot
from backend.inventory.services import ReconciliationService, get_reconciliation_service
from backend.inventory.store import InventoryStore

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=dt_timezone.utc)
CONDUIT = 'Conduit 3/4"'


def locations(*names):
    return [LocationSnapshot(name=name) for name in names]


class MatchKeyTests(SimpleTestCase):
    """Description matching"""

    def test_whitespace_and_case_are_ignored(self):
        self.assertEqual(rules.description_key('  Conduit   3/4" '), rules.description_key('conduit 3/4"'))

    def test_punctuation_is_significant(self):
        self.assertNotEqual(rules.description_key('Conduit 3/4"'), rules.description_key('Conduit 3/4'))

    def test_normalize_keeps_casing(self):
        self.assertEqual(rules.normalize_description('  Box\t4x4  '), 'Box 4x4')


class ReconciliationRuleTests(SimpleTestCase):
    """Receipt, shipment and BOM construction rules"""

    def setUp(self):
        self.items = [
            BomItemState(description=CONDUIT, order_bom_quantity=100, on_hand_quantity=100),
            BomItemState(description='Box 4x4', order_bom_quantity=20, on_hand_quantity=5),
        ]

    def test_aggregate_across_containers(self):
        containers = [
            ContainerEntry('pallet', (ItemLine(CONDUIT, 30), ItemLine('Box 4x4', 2))),
            ContainerEntry('box', (ItemLine('conduit  3/4"', 20),)),
        ]
        self.assertEqual(rules.aggregate_containers(containers), {'conduit 3/4"': 50, 'box 4x4': 2})

    def test_receipt_adds_to_matching_items_only(self):
        updated = rules.apply_receipt(self.items, {'conduit 3/4"': 50, 'wire': 9}, NOW)
        self.assertEqual(updated[0].on_hand_quantity, 150)
        self.assertEqual(updated[0].last_updated, NOW)
        self.assertEqual(updated[1], self.items[1])

    def test_receipt_records_shelves(self):
        updated = rules.apply_receipt(self.items, {'box 4x4': 1}, NOW, {'box 4x4': ['A.01.1', 'A.01.2']})
        self.assertEqual(updated[1].shelf_locations, ('A.01.1', 'A.01.2'))
        self.assertEqual(updated[0].shelf_locations, ())

    def test_shipment_moves_on_hand_to_shipped(self):
        updated = rules.apply_shipment(self.items, {'conduit 3/4"': 50}, NOW)
        self.assertEqual(updated[0].on_hand_quantity, 50)
        self.assertEqual(updated[0].shipped_quantity, 50)

    def test_shipment_clamps_on_hand_but_not_shipped(self):
        shipped = {'box 4x4': 9999}
        self.assertEqual(rules.find_overshipments(self.items, shipped), {'Box 4x4': 9994})
        updated = rules.apply_shipment(self.items, shipped, NOW)
        self.assertEqual(updated[1].on_hand_quantity, 0)
        self.assertEqual(updated[1].shipped_quantity, 9999)

    def test_validate_quantities_rejects_negative(self):
        with self.assertRaises(ValidationError):
            rules.validate_quantities([BomItemState(description='x', on_hand_quantity=-1)])

    def test_build_items_sets_typed_quantity_and_merges_duplicates(self):
        items = rules.build_bom_items(
            [ItemLine('Box 4x4', 5), ItemLine(' box  4x4', 3), ItemLine('Wire', 2)], rules.BOM_TYPE_DESIGN, NOW,
        )
        self.assertEqual(len(items), 2)
        self.assertEqual(items[0].description, 'Box 4x4')
        self.assertEqual(items[0].design_bom_quantity, 8)
        self.assertEqual(items[0].order_bom_quantity, 0)
        self.assertEqual(items[0].on_hand_quantity, 0)
        self.assertEqual(items[0].shelf_locations, ())

    def test_build_items_rejects_unknown_type(self):
        with self.assertRaises(ValidationError):
            rules.build_bom_items([ItemLine('Wire', 1)], 'quote', NOW)

    def test_rebuild_items_carries_stock_over(self):
        existing = [BomItemState(description='Wire', order_bom_quantity=10, on_hand_quantity=4,
                                 shipped_quantity=1, shelf_locations=('A.1',))]
        items = rules.rebuild_bom_items(existing, [ItemLine('wire', 12), ItemLine('Lug', 3)], rules.BOM_TYPE_ORDER, NOW)
        self.assertEqual(items[0].order_bom_quantity, 12)
        self.assertEqual(items[0].on_hand_quantity, 4)
        self.assertEqual(items[0].shipped_quantity, 1)
        self.assertEqual(items[0].shelf_locations, ('A.1',))
        self.assertEqual(items[1].on_hand_quantity, 0)
        self.assertEqual(items[1].order_bom_quantity, 3)


class ShelfRuleTests(SimpleTestCase):
    """Eligibility and shelf re-pointing"""

    def setUp(self):
        self.locations = locations('B.1', 'A.1', 'A.2', 'C.1')
        self.boms = [BomSnapshot(bom_id=1, job_number='J1', items=(
            BomItemState(description='Wire', on_hand_quantity=5, shelf_locations=('A.1',)),
            BomItemState(description='Lug', on_hand_quantity=0, shelf_locations=('A.2',)),
        ))]

    def names(self, result):
        return [location.name for location in result]

    def test_occupied_requires_stock_on_hand(self):
        self.assertEqual(rules.occupied_locations(self.boms), {'A.1'})

    def test_occupied_and_reserved_are_excluded_sorted_by_name(self):
        result = rules.eligible_shelves(self.locations, self.boms, in_flight_selections=['C.1'])
        self.assertEqual(self.names(result), ['A.2', 'B.1'])

    def test_current_selection_is_always_kept(self):
        result = rules.eligible_shelves(self.locations, self.boms, in_flight_selections=['C.1'], current_selection='A.1')
        self.assertEqual(self.names(result), ['A.1', 'A.2', 'B.1'])

    def test_move_drops_old_shelf_unless_retained(self):
        items = [BomItemState(description='Wire', shelf_locations=('A.1',)),
                 BomItemState(description='Lug', shelf_locations=('A.1',))]
        updated = rules.move_shelves(items, {'wire', 'lug'}, 'A.1', 'B.1', retained_keys={'lug'})
        self.assertEqual(updated[0].shelf_locations, ('B.1',))
        self.assertEqual(updated[1].shelf_locations, ('A.1', 'B.1'))


class LocationListingTests(SimpleTestCase):

    def test_ties_break_on_location_then_job(self):
        rows = [
            {'location': 'B', 'job_number': 'J2', 'description': 'Wire'},
            {'location': 'A', 'job_number': 'J3', 'description': 'Wire'},
            {'location': 'A', 'job_number': 'J1', 'description': 'Wire'},
        ]
        ordered = sort_location_rows(rows, 'description')
        self.assertEqual([(r['location'], r['job_number']) for r in ordered], [('A', 'J1'), ('A', 'J3'), ('B', 'J2')])
        descending = sort_location_rows(rows, 'description', 'desc')
        self.assertEqual(descending[0]['location'], 'B')

    def test_unknown_column_rejected(self):
        with self.assertRaises(ValueError):
            sort_location_rows([], 'color')


class InventoryStoreTests(TestCase):
    """Transaction retries and error mapping"""

    def test_operational_errors_retry_then_conflict(self):
        store = InventoryStore(max_attempts=3)
        calls = []

        def always_locked():
            calls.append(1)
            raise OperationalError('database is locked')

        with self.assertRaises(ConflictError):
            store.run_transaction(always_locked)
        self.assertEqual(len(calls), 3)

    def test_retry_succeeds_after_transient_conflict(self):
        store = InventoryStore(max_attempts=5)
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError('deadlock detected')
            return 'done'

        self.assertEqual(store.run_transaction(flaky), 'done')
        self.assertEqual(len(calls), 3)

    def test_other_database_errors_mean_unavailable(self):
        store = InventoryStore()

        def broken():
            raise DatabaseError('connection refused')

        with self.assertRaises(StoreUnavailableError) as ctx:
            store.run_transaction(broken)
        self.assertIn('connection refused', ctx.exception.message)

    def test_first_bom_for_job_is_oldest(self):
        first = TestDataFactory.create_bom(job_number='J9')
        TestDataFactory.create_bom(job_number='J9')
        self.assertEqual(InventoryStore().find_bom_for_job('J9').pk, first.pk)

    def test_lock_locations_returns_existing_names(self):
        TestDataFactory.create_location('B.01')
        TestDataFactory.create_location('A.01')
        store = InventoryStore()
        self.assertEqual(store.run_transaction(store.lock_locations, {'B.01', 'A.01', 'Z.99'}), ['A.01', 'B.01'])


class CallOrderStore(InventoryStore):
    """Records the order of the locking and snapshot reads"""

    def __init__(self):
        super().__init__()
        self.calls = []

    def find_bom_for_job(self, job_number, for_update=False):
        self.calls.append('find_bom_for_job')
        return super().find_bom_for_job(job_number, for_update)

    def lock_locations(self, names):
        self.calls.append('lock_locations')
        return super().lock_locations(names)

    def bom_snapshots(self):
        self.calls.append('bom_snapshots')
        return super().bom_snapshots()


class ShelfLockingTests(TestCase):
    """Occupancy is read only after the BOM and the chosen shelves are locked"""

    def setUp(self):
        cache.clear()
        self.store = CallOrderStore()
        self.service = ReconciliationService(self.store, clock=lambda: NOW)
        TestDataFactory.create_bom(job_number='J1', items=[{'description': CONDUIT, 'on_hand_quantity': 10}])
        TestDataFactory.create_location('A.01')
        TestDataFactory.create_location('A.02')

    def test_receipt_locks_before_reading_occupancy(self):
        self.service.receive_containers('J1', [
            ContainerEntry('pallet', (ItemLine(CONDUIT, 5),), shelf_location='A.01'),
        ])
        self.assertEqual(self.store.calls, ['find_bom_for_job', 'lock_locations', 'bom_snapshots'])

    def test_second_receipt_sees_first_receipts_shelf(self):
        entry = ContainerEntry('pallet', (ItemLine(CONDUIT, 5),), shelf_location='A.01')
        self.service.receive_containers('J1', [entry])
        with self.assertRaises(ValidationError):
            self.service.receive_containers('J1', [entry])
        self.assertEqual(Container.objects.filter(shelf_location='A.01').count(), 1)

    def test_move_locks_before_reading_occupancy(self):
        container = TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 1)])
        self.service.move_container(container.pk, 'A.02')
        self.assertEqual(self.store.calls, ['find_bom_for_job', 'lock_locations', 'bom_snapshots'])

    def test_move_to_unknown_shelf(self):
        container = TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 1)])
        with self.assertRaises(NotFoundError):
            self.service.move_container(container.pk, 'Z.99')
        container.refresh_from_db()
        self.assertIsNone(container.shelf_location)


class ReconciliationServiceTests(TestCase):
    """Receipt, shipment, import and move workflows against the database"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.service = ReconciliationService(InventoryStore(), clock=lambda: NOW)
        self.bom = TestDataFactory.create_bom(
            job_number='J1',
            items=[
                {'description': CONDUIT, 'order_bom_quantity': 100, 'on_hand_quantity': 100},
                {'description': 'Box 4x4', 'order_bom_quantity': 20},
            ],
        )

    def item(self, description=CONDUIT, bom=None):
        return BomItem.objects.get(bom=bom or self.bom, description=description)

    def receive(self, *lines, job_number='J1', shelf=None):
        entry = ContainerEntry('pallet', tuple(ItemLine(d, q) for d, q in lines), shelf_location=shelf)
        return self.service.receive_containers(job_number, [entry], user=self.user)

    def test_receive_then_ship_round_trip(self):
        result = self.receive((CONDUIT, 50))
        self.assertEqual(result.updated_bom_id, self.bom.pk)
        self.assertEqual(self.item().on_hand_quantity, 150)
        self.assertEqual(self.item().last_updated, NOW)

        self.service.ship_container(result.container_ids[0], user=self.user)
        item = self.item()
        self.assertEqual(item.on_hand_quantity, 100)
        self.assertEqual(item.shipped_quantity, 50)

    def test_overshipment_clamps_and_is_audited(self):
        container = TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 9999)])
        result = self.service.ship_container(container.pk, user=self.user)
        item = self.item()
        self.assertEqual(item.on_hand_quantity, 0)
        self.assertEqual(item.shipped_quantity, 9999)
        self.assertEqual(result.overshipped, {CONDUIT: 9899})
        audit = AuditLog.objects.get(action='stock_ship')
        self.assertEqual(audit.changes['overshipped'], {CONDUIT: 9899})

    def test_double_shipment_applies_twice(self):
        container = TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 30)])
        self.service.ship_container(container.pk)
        self.service.ship_container(container.pk)
        item = self.item()
        self.assertEqual(item.on_hand_quantity, 40)
        self.assertEqual(item.shipped_quantity, 60)

    def test_receipt_aggregates_all_containers(self):
        entries = [
            ContainerEntry('pallet', (ItemLine(CONDUIT, 10), ItemLine('Box 4x4', 4))),
            ContainerEntry('cart', (ItemLine('conduit 3/4"', 15),)),
        ]
        result = self.service.receive_containers('J1', entries)
        self.assertEqual(len(result.container_ids), 2)
        self.assertEqual(self.item().on_hand_quantity, 125)
        self.assertEqual(self.item('Box 4x4').on_hand_quantity, 4)

    def test_receipt_without_bom_still_creates_containers(self):
        result = self.receive(('Wire', 3), job_number='J404')
        self.assertIsNone(result.updated_bom_id)
        self.assertEqual(Container.objects.filter(job_number='J404').count(), 1)

    def test_receipt_records_shelf_on_items(self):
        TestDataFactory.create_location('B.01')
        self.receive(('Box 4x4', 2), shelf='B.01')
        self.assertEqual(self.item('Box 4x4').shelf_locations, ['B.01'])
        self.assertEqual(self.item().shelf_locations, [])

    def test_receipt_to_occupied_shelf_is_rejected(self):
        TestDataFactory.create_location('A.01')
        TestDataFactory.create_bom(job_number='J2', items=[
            {'description': 'Lug', 'on_hand_quantity': 1, 'shelf_locations': ['A.01']},
        ])
        with self.assertRaises(ValidationError):
            self.receive(('Box 4x4', 2), shelf='A.01')
        self.assertEqual(Container.objects.count(), 0)
        self.assertEqual(self.item('Box 4x4').on_hand_quantity, 0)

    def test_receipt_rejects_shelf_picked_twice(self):
        TestDataFactory.create_location('A.02')
        entries = [
            ContainerEntry('pallet', (ItemLine(CONDUIT, 1),), shelf_location='A.02'),
            ContainerEntry('box', (ItemLine(CONDUIT, 1),), shelf_location='A.02'),
        ]
        with self.assertRaises(ValidationError):
            self.service.receive_containers('J1', entries)
        self.assertEqual(Container.objects.count(), 0)

    def test_receipt_unknown_shelf(self):
        with self.assertRaises(NotFoundError):
            self.receive(('Box 4x4', 2), shelf='Q.99')

    def test_receipt_rejects_empty_container(self):
        with self.assertRaises(ValidationError):
            self.service.receive_containers('J1', [ContainerEntry('pallet', ())])

    def test_ship_requires_job(self):
        container = TestDataFactory.create_container(job_number='', items=[(CONDUIT, 5)])
        with self.assertRaises(ValidationError):
            self.service.ship_container(container.pk)

    def test_ship_without_bom_changes_nothing(self):
        container = TestDataFactory.create_container(job_number='J404', items=[(CONDUIT, 5)])
        with self.assertRaises(NotFoundError):
            self.service.ship_container(container.pk)
        self.assertEqual(self.item().on_hand_quantity, 100)
        self.assertEqual(self.item().shipped_quantity, 0)

    def test_ship_missing_container(self):
        with self.assertRaises(NotFoundError):
            self.service.ship_container(987654)

    def test_import_requires_review(self):
        parsed = ParsedBom(job={'job_number': 'J5'}, items=(ItemLine('Wire', 1),))
        with self.assertRaises(ValidationError):
            self.service.import_bom(parsed, 'order', review_confirmed=False)
        self.assertFalse(Bom.objects.filter(job_number='J5').exists())

    def test_import_merges_job_info(self):
        TestDataFactory.create_job(job_number='J5', job_name='Old', project_manager='Pat Doe')
        parsed = ParsedBom(
            job={'job_number': 'J5', 'job_name': 'Tower', 'project_manager': ''},
            items=(ItemLine('Wire', 5), ItemLine(' wire', 2)),
        )
        bom = self.service.import_bom(parsed, 'design', review_confirmed=True, user=self.user)
        job = Job.objects.get(job_number='J5')
        self.assertEqual(job.job_name, 'Tower')
        self.assertEqual(job.project_manager, 'Pat Doe')
        self.assertEqual(bom.items.count(), 1)
        item = bom.items.get()
        self.assertEqual(item.design_bom_quantity, 7)
        self.assertEqual(item.order_bom_quantity, 0)
        self.assertTrue(AuditLog.objects.filter(action='bom_import', object_reference='J5').exists())

    def test_update_bom_keeps_reconciled_stock(self):
        self.service.update_bom(self.bom.pk, {'job_name': 'Renamed'}, [ItemLine(CONDUIT, 120)])
        self.bom.refresh_from_db()
        self.assertEqual(self.bom.job_name, 'Renamed')
        self.assertEqual(self.bom.items.count(), 1)
        item = self.bom.items.get()
        self.assertEqual(item.order_bom_quantity, 120)
        self.assertEqual(item.on_hand_quantity, 100)

    def test_move_container_repoints_items(self):
        TestDataFactory.create_location('B.01')
        TestDataFactory.create_location('B.02')
        result = self.receive((CONDUIT, 10), shelf='B.01')
        self.service.move_container(result.container_ids[0], 'B.02')
        self.assertEqual(Container.objects.get(pk=result.container_ids[0]).shelf_location, 'B.02')
        self.assertEqual(self.item().shelf_locations, ['B.02'])

    def test_move_keeps_old_shelf_when_other_container_remains(self):
        TestDataFactory.create_location('B.01')
        TestDataFactory.create_location('B.02')
        first = self.receive((CONDUIT, 10), shelf='B.01')
        TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 5)], shelf_location='B.01')
        self.service.move_container(first.container_ids[0], 'B.02')
        self.assertEqual(self.item().shelf_locations, ['B.01', 'B.02'])

    def test_move_to_occupied_shelf_rejected(self):
        TestDataFactory.create_location('B.01')
        TestDataFactory.create_location('C.01')
        TestDataFactory.create_bom(job_number='J2', items=[
            {'description': 'Lug', 'on_hand_quantity': 1, 'shelf_locations': ['C.01']},
        ])
        result = self.receive((CONDUIT, 10), shelf='B.01')
        with self.assertRaises(ValidationError):
            self.service.move_container(result.container_ids[0], 'C.01')
        self.assertEqual(Container.objects.get(pk=result.container_ids[0]).shelf_location, 'B.01')

    def test_move_to_unknown_shelf(self):
        container = TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 1)])
        with self.assertRaises(NotFoundError):
            self.service.move_container(container.pk, 'Nowhere')

    def test_import_locations_skips_existing(self):
        TestDataFactory.create_location('A.01')
        result = self.service.import_locations(['A.01', ' A.02 ', '', 'A.02'])
        self.assertEqual(result.created, ('A.02',))
        self.assertEqual(result.skipped, ('A.01',))

    def test_import_locations_requires_a_name(self):
        with self.assertRaises(ValidationError):
            self.service.import_locations(['', '  '])


class InventoryAPITests(TestCase):
    """Inventory listing and dashboard endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(username='pdoe', first_name='Pat', last_name='Doe')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_location('A.01')
        TestDataFactory.create_location('B.01')
        TestDataFactory.create_bom(job_number='J1', job_name='Tower', project_manager='Pat Doe', items=[
            {'description': 'Wire', 'on_hand_quantity': 5, 'shelf_locations': ['B.01', 'A.01']},
        ])
        TestDataFactory.create_bom(job_number='J2', job_name='Depot', project_manager='Someone Else', items=[
            {'description': 'Lug', 'on_hand_quantity': 0, 'shelf_locations': []},
        ])

    def test_items_list_flattens_job_fields(self):
        response = self.client.get('/api/v1/inventory/items/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['job_number'], 'J1')
        self.assertEqual(response.data[0]['job_name'], 'Tower')

    def test_items_search(self):
        response = self.client.get('/api/v1/inventory/items/', {'search': 'depot'})
        self.assertEqual([row['description'] for row in response.data], ['Lug'])

    def test_items_search_by_shelf(self):
        response = self.client.get('/api/v1/inventory/items/', {'search': 'a.0'})
        self.assertEqual([row['description'] for row in response.data], ['Wire'])

    def test_items_search_ignores_stored_list_syntax(self):
        for term in ('[', '"', '", "'):
            response = self.client.get('/api/v1/inventory/items/', {'search': term})
            self.assertEqual(response.data, [], term)

    def test_items_my_jobs(self):
        response = self.client.get('/api/v1/inventory/items/', {'my_jobs': 'true'})
        self.assertEqual([row['job_number'] for row in response.data], ['J1'])

    def test_location_inventory_rows_sorted(self):
        response = self.client.get('/api/v1/inventory/locations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['location'] for row in response.data], ['A.01', 'B.01'])

        response = self.client.get('/api/v1/inventory/locations/', {'sort': 'location', 'direction': 'desc'})
        self.assertEqual([row['location'] for row in response.data], ['B.01', 'A.01'])

    def test_location_inventory_search_matches_location(self):
        response = self.client.get('/api/v1/inventory/locations/', {'search': 'b.01'})
        self.assertEqual([row['location'] for row in response.data], ['B.01'])

    def test_location_inventory_bad_sort(self):
        response = self.client.get('/api/v1/inventory/locations/', {'sort': 'color'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dashboard_summary(self):
        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['boms'], 2)
        self.assertEqual(response.data['locations'], 2)
        self.assertEqual(response.data['occupied_locations'], 2)
        self.assertEqual(response.data['on_hand_total'], 5)

    def test_dashboard_refreshes_after_workflow(self):
        self.client.get('/api/v1/dashboard/summary/')
        get_reconciliation_service().receive_containers(
            'J2', [ContainerEntry('box', (ItemLine('Lug', 3),))],
        )
        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response.data['containers'], 1)
        self.assertEqual(response.data['on_hand_total'], 8)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/inventory/items/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
