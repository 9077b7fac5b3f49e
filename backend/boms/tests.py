"""
Test suite for BOMs
Tests: CSV parsing in both layouts, the preview/confirm import flow, BOM edit and delete
"""
from django.core.cache import cache
from django.core.exceptions import ValidationError as ModelValidationError
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from backend.boms.importer import LAYOUT_ROWS, LAYOUT_SECTIONED, parse_bom_rows, read_csv_upload
from backend.boms.models import Bom, BomItem, Job
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.exceptions import ValidationError
from backend.inventory.rules import ContainerEntry, ItemLine
from backend.inventory.services import get_reconciliation_service

ROW_PER_ITEM_CSV = (
    'jobNumber,Job Name,PM,Field Leader,Part Number,Qty\n'
    'J1,Tower,Pat Doe,Lee Roe,Conduit 3/4",100\n'
    'J1,Ignored Name,Other,Other,Box 4x4,20\n'
)


def rows(text):
    return [line.split(',') for line in text.strip('\n').split('\n')]


class ParseBomRowsTests(SimpleTestCase):
    """parse_bom_rows"""

    def test_row_per_item_layout(self):
        parsed = parse_bom_rows(rows(ROW_PER_ITEM_CSV))
        self.assertEqual(parsed.layout, LAYOUT_ROWS)
        self.assertEqual(parsed.job, {
            'job_number': 'J1', 'job_name': 'Tower',
            'project_manager': 'Pat Doe', 'primary_field_leader': 'Lee Roe',
        })
        self.assertEqual([(i.description, i.quantity) for i in parsed.items], [('Conduit 3/4"', 100), ('Box 4x4', 20)])

    def test_invalid_rows_are_discarded(self):
        parsed = parse_bom_rows(rows(
            'Job Number,Description,Quantity\n'
            'J1,Wire,5\n'
            'J1,,3\n'
            'J1,Lug,0\n'
            'J1,Tape,abc\n'
            'J1,Strap,2.5\n'
            'J1,Bolt,-4\n'
        ))
        self.assertEqual([i.description for i in parsed.items], ['Wire'])
        self.assertEqual(parsed.skipped_rows, 5)

    def test_duplicate_descriptions_are_merged(self):
        parsed = parse_bom_rows(rows(
            'Job Number,Description,Quantity\n'
            'J1,Wire,5\n'
            'J1, wire ,2\n'
        ))
        self.assertEqual(len(parsed.items), 1)
        self.assertEqual(parsed.items[0].quantity, 7)

    def test_zero_valid_rows(self):
        with self.assertRaises(ValidationError):
            parse_bom_rows(rows('Job Number,Description,Quantity\nJ1,,5\nJ1,Wire,0\n'))

    def test_missing_columns_are_named(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_bom_rows(rows('Job Number,Description\nJ1,Wire\n'))
        self.assertIn('Quantity', ctx.exception.message)
        self.assertNotIn('Description', ctx.exception.message)

    def test_empty_job_number(self):
        with self.assertRaises(ValidationError):
            parse_bom_rows(rows('Job Number,Description,Quantity\n,Wire,5\n'))

    def test_empty_file(self):
        with self.assertRaises(ValidationError):
            parse_bom_rows([])

    def test_sectioned_layout(self):
        parsed = parse_bom_rows([
            ['Job Number', 'Job Name', 'Project Manager', 'Primary Field Leader'],
            ['J7', 'Depot', 'Pat Doe', 'Lee Roe'],
            ['', '', '', ''],
            ['Description', 'Quantity'],
            ['Wire', '10'],
            ['Lug', '4'],
        ])
        self.assertEqual(parsed.layout, LAYOUT_SECTIONED)
        self.assertEqual(parsed.job['job_number'], 'J7')
        self.assertEqual(parsed.job['job_name'], 'Depot')
        self.assertEqual([(i.description, i.quantity) for i in parsed.items], [('Wire', 10), ('Lug', 4)])

    def test_sectioned_layout_without_item_block(self):
        with self.assertRaises(ValidationError) as ctx:
            parse_bom_rows([['Job Number', 'Job Name'], ['J7', 'Depot']])
        self.assertIn('Description', ctx.exception.message)


class ReadCsvUploadTests(SimpleTestCase):

    def test_reads_utf8_with_byte_order_mark(self):
        upload = TestDataFactory.csv_upload('\ufeffJob Number,Description,Quantity\nJ1, Wire ,5\n'.encode('utf-8'))
        self.assertEqual(read_csv_upload(upload), [['Job Number', 'Description', 'Quantity'], ['J1', 'Wire', '5']])

    def test_rejects_other_extensions(self):
        with self.assertRaises(ValidationError) as ctx:
            read_csv_upload(TestDataFactory.csv_upload('a,b\n', name='bom.txt'))
        self.assertIn('Only .csv', ctx.exception.message)

    def test_excel_workbook_points_at_csv_export(self):
        with self.assertRaises(ValidationError) as ctx:
            read_csv_upload(TestDataFactory.csv_upload('a,b\n', name='BOM.XLSX'))
        self.assertIn('Save As', ctx.exception.message)
        self.assertIn('.csv', ctx.exception.message)

    def test_rejects_undecodable_bytes(self):
        with self.assertRaises(ValidationError):
            read_csv_upload(TestDataFactory.csv_upload(b'\xff\xfe\x00J\x00o'))

    def test_rejects_oversized_upload(self):
        with self.assertRaises(ValidationError):
            read_csv_upload(TestDataFactory.csv_upload('Job Number\n' + 'J1\n' * 100), max_bytes=10)


class BomItemModelTests(TestCase):
    """Item descriptions are unique per BOM by match key"""

    def setUp(self):
        self.bom = TestDataFactory.create_bom(job_number='J1', items=[
            {'description': 'Conduit 3/4"', 'on_hand_quantity': 100},
        ])

    def test_match_key_is_stored(self):
        item = self.bom.items.get()
        self.assertEqual(item.match_key, 'conduit 3/4"')

    def test_duplicate_by_case_and_spacing_is_refused(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                BomItem.objects.create(bom=self.bom, description='conduit   3/4"')
        self.assertEqual(self.bom.items.count(), 1)

    def test_clean_reports_duplicate_description(self):
        item = BomItem(bom=self.bom, description=' CONDUIT 3/4" ')
        with self.assertRaises(ModelValidationError) as ctx:
            item.full_clean()
        self.assertIn('description', ctx.exception.message_dict)

    def test_same_description_on_another_bom(self):
        other = TestDataFactory.create_bom(job_number='J2')
        BomItem.objects.create(bom=other, description='conduit 3/4"')
        self.assertEqual(BomItem.objects.filter(match_key='conduit 3/4"').count(), 2)

    def test_receipt_credits_single_row(self):
        result = get_reconciliation_service().receive_containers('J1', [
            ContainerEntry(container_type='pallet', items=(ItemLine('conduit 3/4"', 50),)),
        ])
        self.assertEqual(result.updated_bom_id, self.bom.pk)
        self.assertEqual(
            list(self.bom.items.values_list('description', 'on_hand_quantity')),
            [('Conduit 3/4"', 150)],
        )


class BomImportAPITests(TestCase):
    """Preview and confirmed import endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_preview_parses_without_writing(self):
        response = self.client.post(
            '/api/v1/boms/import/preview/',
            {'file': TestDataFactory.csv_upload(ROW_PER_ITEM_CSV), 'bom_type': 'order'},
            format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['job']['job_number'], 'J1')
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['existing_bom_count'], 0)
        self.assertFalse(Bom.objects.exists())
        self.assertFalse(Job.objects.exists())

    def test_preview_rejects_xlsx(self):
        response = self.client.post(
            '/api/v1/boms/import/preview/',
            {'file': TestDataFactory.csv_upload('x', name='bom.xlsx')},
            format='multipart',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_preview_without_file(self):
        response = self.client.post('/api/v1/boms/import/preview/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def payload(self, **overrides):
        data = {
            'bom_type': 'order',
            'review_confirmed': True,
            'job': {'job_number': 'J1', 'job_name': 'Tower', 'project_manager': 'Pat Doe'},
            'items': [{'description': 'Wire', 'quantity': 10}, {'description': 'Lug', 'quantity': 4}],
        }
        data.update(overrides)
        return data

    def test_import_requires_review_confirmation(self):
        response = self.client.post('/api/v1/boms/import/', self.payload(review_confirmed=False), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertFalse(Bom.objects.exists())

    def test_import_creates_bom_and_job(self):
        category = TestDataFactory.create_category(name='Lighting')
        response = self.client.post('/api/v1/boms/import/', self.payload(work_category=category.pk), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        bom = Bom.objects.get(pk=response.data['id'])
        self.assertEqual(bom.type, 'order')
        self.assertEqual(bom.work_category, category)
        self.assertEqual(bom.job.job_name, 'Tower')
        wire = bom.items.get(description='Wire')
        self.assertEqual(wire.order_bom_quantity, 10)
        self.assertEqual(wire.design_bom_quantity, 0)
        self.assertEqual(wire.on_hand_quantity, 0)
        self.assertEqual(wire.shelf_locations, [])
        self.assertTrue(AuditLog.objects.filter(action='bom_import', user=self.user).exists())

    def test_import_rejects_zero_quantity(self):
        response = self.client.post(
            '/api/v1/boms/import/', self.payload(items=[{'description': 'Wire', 'quantity': 0}]), format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Bom.objects.exists())

    def test_import_rejects_unknown_type(self):
        response = self.client.post('/api/v1/boms/import/', self.payload(bom_type='quote'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_import_unknown_category(self):
        response = self.client.post('/api/v1/boms/import/', self.payload(work_category=424242), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Bom.objects.exists())


class BomAPITests(TestCase):
    """List, detail, edit and delete"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.bom = TestDataFactory.create_bom(job_number='J1', job_name='Tower', items=[
            {'description': 'Wire', 'order_bom_quantity': 10, 'on_hand_quantity': 6, 'shipped_quantity': 2},
            {'description': 'Lug', 'order_bom_quantity': 4},
        ])
        TestDataFactory.create_bom(job_number='J2', job_name='Depot', bom_type='design')

    def test_list_with_item_counts(self):
        response = self.client.get('/api/v1/boms/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        tower = next(row for row in response.data if row['job_number'] == 'J1')
        self.assertEqual(tower['item_count'], 2)

    def test_list_filters(self):
        response = self.client.get('/api/v1/boms/', {'search': 'depot'})
        self.assertEqual([row['job_number'] for row in response.data], ['J2'])
        response = self.client.get('/api/v1/boms/', {'type': 'order'})
        self.assertEqual([row['job_number'] for row in response.data], ['J1'])

    def test_detail_includes_items(self):
        response = self.client.get(f'/api/v1/boms/{self.bom.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['description'] for item in response.data['items']], ['Wire', 'Lug'])

    def test_detail_not_found(self):
        response = self.client.get('/api/v1/boms/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_edit_replaces_items_and_keeps_stock(self):
        response = self.client.put(f'/api/v1/boms/{self.bom.pk}/', {
            'job': {'job_number': 'J1', 'job_name': 'Tower North', 'primary_field_leader': 'Lee Roe'},
            'items': [{'description': 'wire', 'quantity': 12}, {'description': 'Strap', 'quantity': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['job_name'], 'Tower North')
        items = {item.description: item for item in BomItem.objects.filter(bom=self.bom)}
        self.assertEqual(set(items), {'wire', 'Strap'})
        self.assertEqual(items['wire'].order_bom_quantity, 12)
        self.assertEqual(items['wire'].on_hand_quantity, 6)
        self.assertEqual(items['wire'].shipped_quantity, 2)
        self.assertEqual(Job.objects.get(job_number='J1').primary_field_leader, 'Lee Roe')

    def test_edit_rejects_empty_item_list(self):
        response = self.client.put(f'/api/v1/boms/{self.bom.pk}/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_requires_admin(self):
        response = self.client.delete(f'/api/v1/boms/{self.bom.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Bom.objects.filter(pk=self.bom.pk).exists())

    def test_admin_can_delete(self):
        admin = TestDataFactory.create_admin_user()
        self.client.authenticate_user(admin)
        response = self.client.delete(f'/api/v1/boms/{self.bom.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Bom.objects.filter(pk=self.bom.pk).exists())
        self.assertFalse(BomItem.objects.filter(bom_id=self.bom.pk).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', model_name='Bom').exists())
