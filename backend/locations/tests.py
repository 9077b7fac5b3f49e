"""
Test suite for shelf locations
Tests: CRUD, CSV import and the eligible-shelf endpoint
"""
from django.test import TestCase
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.locations.models import ShelfLocation


class ShelfLocationAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        TestDataFactory.create_location('B.01')
        TestDataFactory.create_location('A.02')

    def test_list_sorted_by_name(self):
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data], ['A.02', 'B.01'])

    def test_list_search(self):
        response = self.client.get('/api/v1/locations/', {'search': 'b.'})
        self.assertEqual([row['name'] for row in response.data], ['B.01'])

    def test_create_trims_name(self):
        response = self.client.post('/api/v1/locations/', {'name': '  C.03  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'C.03')
        self.assertTrue(ShelfLocation.objects.filter(name='C.03').exists())

    def test_create_duplicate_or_blank(self):
        response = self.client.post('/api/v1/locations/', {'name': 'B.01'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/locations/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(ShelfLocation.objects.count(), 2)

    def test_unauthenticated(self):
        self.client.logout()
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ShelfLocationDeleteTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin_user())
        self.location = TestDataFactory.create_location('A.01')

    def test_delete_empty_location(self):
        response = self.client.delete(f'/api/v1/locations/{self.location.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ShelfLocation.objects.filter(pk=self.location.pk).exists())

    def test_delete_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.delete(f'/api/v1/locations/{self.location.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_occupied_location(self):
        TestDataFactory.create_bom(job_number='J1', items=[
            {'description': 'Wire', 'on_hand_quantity': 4, 'shelf_locations': ['A.01']},
        ])
        response = self.client.delete(f'/api/v1/locations/{self.location.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(ShelfLocation.objects.filter(pk=self.location.pk).exists())

    def test_delete_location_holding_container(self):
        TestDataFactory.create_container(job_number='J1', items=[('Wire', 1)], shelf_location='A.01')
        response = self.client.delete(f'/api/v1/locations/{self.location.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ShelfLocationImportTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        TestDataFactory.create_location('A.01')

    def upload(self, content, name='locations.csv'):
        return self.client.post(
            '/api/v1/locations/import/',
            {'file': TestDataFactory.csv_upload(content, name=name)},
            format='multipart',
        )

    def test_import_creates_and_skips(self):
        response = self.upload('Name\nA.01\n B.01 \n\nB.01\nC.01\n')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], ['B.01', 'C.01'])
        self.assertEqual(response.data['skipped'], ['A.01'])
        self.assertEqual(response.data['created_count'], 2)
        self.assertEqual(
            list(ShelfLocation.objects.values_list('name', flat=True)),
            ['A.01', 'B.01', 'C.01'],
        )
        self.assertTrue(AuditLog.objects.filter(action='location_import').exists())

    def test_import_location_column_alias(self):
        response = self.upload('Location Name,Zone\nD.01,North\n')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], ['D.01'])

    def test_import_without_name_column(self):
        response = self.upload('Shelf,Zone\nD.01,North\n')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data['error'])

    def test_import_without_valid_names(self):
        response = self.upload('name\n\n   \n')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(ShelfLocation.objects.count(), 1)

    def test_import_rejects_non_csv(self):
        response = self.upload('name\nD.01\n', name='locations.xlsx')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_import_without_file(self):
        response = self.client.post('/api/v1/locations/import/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class EligibleShelvesAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        for name in ('A.03', 'A.01', 'A.02', 'A.04'):
            TestDataFactory.create_location(name)
        TestDataFactory.create_bom(job_number='J1', items=[
            {'description': 'Wire', 'on_hand_quantity': 4, 'shelf_locations': ['A.01']},
            {'description': 'Lug', 'on_hand_quantity': 0, 'shelf_locations': ['A.04']},
        ])

    def test_excludes_occupied_and_in_flight(self):
        response = self.client.post('/api/v1/locations/eligible/', {
            'in_flight_selections': ['A.02', ''],
            'current_selection': None,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        # A.04 only lists an item with no stock on hand
        self.assertEqual([row['name'] for row in response.data], ['A.03', 'A.04'])

    def test_keeps_current_selection(self):
        response = self.client.post('/api/v1/locations/eligible/', {
            'in_flight_selections': ['A.02'],
            'current_selection': 'A.01',
        }, format='json')
        self.assertEqual([row['name'] for row in response.data], ['A.01', 'A.03', 'A.04'])
