"""
Test suite for work categories
"""
from django.test import TestCase
from rest_framework import status
from backend.catalog.models import Category
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class CategoryAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.category = TestDataFactory.create_category(name='Lighting')

    def test_list(self):
        TestDataFactory.create_category(name='Gear')
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['name'] for row in response.data], ['Gear', 'Lighting'])

    def test_create(self):
        response = self.client.post('/api/v1/categories/', {'name': ' Fire Alarm '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Fire Alarm')

    def test_create_blank_name(self):
        response = self.client.post('/api/v1/categories/', {'name': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_partial_update(self):
        response = self.client.patch(f'/api/v1/categories/{self.category.pk}/', {'description': 'Fixtures'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.category.refresh_from_db()
        self.assertEqual(self.category.description, 'Fixtures')

    def test_delete_unused(self):
        response = self.client.delete(f'/api/v1/categories/{self.category.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Category.objects.filter(pk=self.category.pk).exists())

    def test_delete_in_use(self):
        TestDataFactory.create_bom(job_number='J1', work_category=self.category)
        response = self.client.delete(f'/api/v1/categories/{self.category.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())
