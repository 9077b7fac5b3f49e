"""
Test suite for core
Tests: JWT login, current user and audit log access
"""
from io import StringIO
from django.contrib.auth.models import Group
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient
from backend.core.cache_signals import is_suspended, suspend_cache_signals
from backend.core.models import AuditLog
from backend.core.permissions import ADMIN_GROUP, is_admin_user
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.inventory.rules import BomItemState
from backend.inventory.store import InventoryStore


class AuthAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user(username='pat', first_name='Pat', last_name='Doe')

    def test_login_returns_tokens(self):
        client = APIClient()
        response = client.post('/api/v1/auth/login/', {'username': 'pat', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        response = client.post('/api/v1/auth/refresh/', {'refresh': response.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_login_wrong_password(self):
        response = APIClient().post('/api/v1/auth/login/', {'username': 'pat', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_with_garbage_token(self):
        response = APIClient().post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['display_name'], 'Pat Doe')
        self.assertFalse(response.data['is_admin'])

    def test_me_admin(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_admin_user())
        response = client.get('/api/v1/auth/me/')
        self.assertTrue(response.data['is_admin'])


class AuditLogAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.own = AuditLog.objects.create(
            user=self.user, action='stock_ship', model_name='Container', object_id='1', object_reference='J1',
        )
        self.foreign = AuditLog.objects.create(
            user=self.other, action='bom_import', model_name='Bom', object_id='2', object_reference='J2',
        )
        self.client = AuthenticatedAPIClient()

    def test_user_sees_own_logs(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.data], [self.own.pk])

        response = self.client.get(f'/api/v1/audit-logs/{self.foreign.pk}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_filters(self):
        self.client.authenticate_user(TestDataFactory.create_admin_user())
        response = self.client.get('/api/v1/audit-logs/', {'reference': 'J2'})
        self.assertEqual([row['id'] for row in response.data], [self.foreign.pk])
        response = self.client.get('/api/v1/audit-logs/', {'action': 'stock_ship'})
        self.assertEqual([row['id'] for row in response.data], [self.own.pk])


class CreateUserGroupsCommandTests(TestCase):
    def test_creates_groups_idempotently(self):
        out = StringIO()
        call_command('create_user_groups', stdout=out)
        call_command('create_user_groups', stdout=out)
        self.assertEqual(Group.objects.filter(name__in=['Shop', ADMIN_GROUP]).count(), 2)
        shop = Group.objects.get(name='Shop')
        self.assertTrue(shop.permissions.filter(codename='add_container').exists())
        self.assertFalse(shop.permissions.filter(codename__startswith='delete_').exists())
        self.assertIn('2 groups already existed', out.getvalue())

    def test_admin_group_grants_admin(self):
        call_command('create_user_groups', stdout=StringIO())
        user = TestDataFactory.create_user()
        user.groups.add(Group.objects.get(name=ADMIN_GROUP))
        self.assertTrue(is_admin_user(user))


class CacheSignalTests(TestCase):
    """Dashboard invalidation on model changes"""

    def setUp(self):
        self.bom = TestDataFactory.create_bom(job_number='J1', items=[
            {'description': 'Wire', 'order_bom_quantity': 4},
            {'description': 'Box 4x4', 'order_bom_quantity': 2},
        ])

    def test_item_delete_schedules_invalidation(self):
        with self.captureOnCommitCallbacks() as callbacks:
            self.bom.items.get(description='Wire').delete()
        self.assertEqual(len(callbacks), 1)

    def test_replacing_items_is_silent(self):
        store = InventoryStore()
        with self.captureOnCommitCallbacks() as callbacks:
            store.replace_bom_items(self.bom, [BomItemState(description='Lug', order_bom_quantity=3)])
        self.assertEqual(callbacks, [])
        self.assertEqual(list(self.bom.items.values_list('description', flat=True)), ['Lug'])
        self.assertFalse(is_suspended())

    def test_suspension_ends_with_block(self):
        with self.assertRaises(RuntimeError):
            with suspend_cache_signals():
                self.assertTrue(is_suspended())
                raise RuntimeError('boom')
        self.assertFalse(is_suspended())
