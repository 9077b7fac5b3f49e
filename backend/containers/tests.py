"""
Test suite for containers
Tests: receiving, shipping and moving containers through the API and their effect on BOM quantities
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.boms.models import BomItem
from backend.containers.models import Container, ContainerItem
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient

CONDUIT = 'Conduit 3/4"'


class ContainerWorkflowAPITests(TestCase):
    """Receive -> ship round trips against job J1"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.bom = TestDataFactory.create_bom(job_number='J1', job_name='Tower', items=[
            {'description': CONDUIT, 'order_bom_quantity': 100, 'on_hand_quantity': 100},
        ])
        TestDataFactory.create_location('A.01')
        TestDataFactory.create_location('A.02')

    def conduit(self):
        return BomItem.objects.get(bom=self.bom, description=CONDUIT)

    def receive(self, quantity, shelf_location=None, job_number='J1'):
        return self.client.post('/api/v1/containers/receive/', {
            'job_number': job_number,
            'containers': [{
                'container_type': 'pallet',
                'shelf_location': shelf_location,
                'items': [{'description': CONDUIT, 'quantity': quantity}],
            }],
        }, format='json')

    def test_receive_then_ship(self):
        response = self.receive(50, shelf_location='A.01')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['updated_bom_id'], self.bom.pk)
        self.assertEqual(len(response.data['containers']), 1)
        self.assertEqual(response.data['containers'][0]['job_name'], 'Tower')
        self.assertEqual(response.data['containers'][0]['received_by'], self.user.pk)
        self.assertEqual(self.conduit().on_hand_quantity, 150)
        self.assertEqual(self.conduit().shelf_locations, ['A.01'])

        container_id = response.data['container_ids'][0]
        response = self.client.post(f'/api/v1/containers/{container_id}/ship/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated_bom_id'], self.bom.pk)
        self.assertEqual(response.data['overshipped'], {})
        item = self.conduit()
        self.assertEqual(item.on_hand_quantity, 100)
        self.assertEqual(item.shipped_quantity, 50)
        self.assertTrue(AuditLog.objects.filter(action='stock_receive', object_reference='J1').exists())
        self.assertTrue(AuditLog.objects.filter(action='stock_ship', object_reference='J1').exists())

    def test_overship_clamps_on_hand(self):
        container = TestDataFactory.create_container(job_number='J1', items=[(CONDUIT, 9999)])
        response = self.client.post(f'/api/v1/containers/{container.pk}/ship/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['overshipped'], {CONDUIT: 9899})
        item = self.conduit()
        self.assertEqual(item.on_hand_quantity, 0)
        self.assertEqual(item.shipped_quantity, 9999)

    def test_ship_without_job(self):
        container = TestDataFactory.create_container(job_number='', items=[(CONDUIT, 1)])
        response = self.client.post(f'/api/v1/containers/{container.pk}/ship/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('no job', response.data['error'])

    def test_ship_job_without_bom(self):
        container = TestDataFactory.create_container(job_number='J404', items=[(CONDUIT, 1)])
        response = self.client.post(f'/api/v1/containers/{container.pk}/ship/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.conduit().shipped_quantity, 0)

    def test_ship_missing_container(self):
        response = self.client.post('/api/v1/containers/999999/ship/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_receive_without_bom(self):
        response = self.receive(5, job_number='J404')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['updated_bom_id'])
        self.assertEqual(Container.objects.filter(job_number='J404').count(), 1)

    def test_receive_without_job(self):
        response = self.receive(5, job_number='')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['updated_bom_id'])
        self.assertEqual(self.conduit().on_hand_quantity, 100)

    def test_receive_validation(self):
        response = self.client.post('/api/v1/containers/receive/', {'job_number': 'J1', 'containers': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/containers/receive/', {
            'job_number': 'J1',
            'containers': [{'container_type': 'crate', 'items': [{'description': 'x', 'quantity': 1}]}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/containers/receive/', {
            'job_number': 'J1',
            'containers': [{'container_type': 'box', 'items': [{'description': 'x', 'quantity': 0}]}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Container.objects.count(), 0)

    def test_receive_to_occupied_shelf(self):
        self.receive(5, shelf_location='A.01')
        response = self.receive(5, shelf_location='A.01')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Container.objects.count(), 1)
        self.assertEqual(self.conduit().on_hand_quantity, 105)

    def test_receive_to_unknown_shelf(self):
        response = self.receive(5, shelf_location='Z.99')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Container.objects.count(), 0)

    def test_move(self):
        container_id = self.receive(5, shelf_location='A.01').data['container_ids'][0]
        response = self.client.post(f'/api/v1/containers/{container_id}/move/', {'shelf_location': 'A.02'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['shelf_location'], 'A.02')
        self.assertEqual(response.data['updated_bom_id'], self.bom.pk)
        self.assertEqual(self.conduit().shelf_locations, ['A.02'])
        self.assertTrue(AuditLog.objects.filter(action='container_move').exists())

    def test_move_to_not_shelved(self):
        container_id = self.receive(5, shelf_location='A.01').data['container_ids'][0]
        response = self.client.post(f'/api/v1/containers/{container_id}/move/', {'shelf_location': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['shelf_location'])
        self.assertEqual(response.data['shelf_display'], 'Not Shelved')
        self.assertEqual(self.conduit().shelf_locations, [])


class ContainerAPITests(TestCase):
    """List, detail and delete"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.container = TestDataFactory.create_container(job_number='J1', items=[('Wire', 3)], shelf_location='A.01')
        TestDataFactory.create_container(job_number='J2', items=[('Lug', 1)])

    def test_list_filter_by_job(self):
        response = self.client.get('/api/v1/containers/', {'job_number': 'j1'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [self.container.pk])
        self.assertEqual(response.data[0]['items'][0]['description'], 'Wire')

    def test_list_unshelved(self):
        response = self.client.get('/api/v1/containers/', {'unshelved': 'true'})
        self.assertEqual([row['job_number'] for row in response.data], ['J2'])

    def test_detail(self):
        response = self.client.get(f'/api/v1/containers/{self.container.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['shelf_display'], 'A.01')

    def test_delete_requires_admin(self):
        response = self.client.delete(f'/api/v1/containers/{self.container.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin_user())
        response = self.client.delete(f'/api/v1/containers/{self.container.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Container.objects.filter(pk=self.container.pk).exists())
        self.assertFalse(ContainerItem.objects.filter(container_id=self.container.pk).exists())
