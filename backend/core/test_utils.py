"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.boms.models import Bom, BomItem, Job
from backend.catalog.models import Category
from backend.containers.models import Container, ContainerItem
from backend.core.permissions import ADMIN_GROUP
from backend.locations.models import ShelfLocation
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False,
                    first_name='', last_name=''):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            first_name=first_name,
            last_name=last_name,
        )

    @staticmethod
    def create_admin_user(username=None):
        """Create a user in the Admin group"""
        user = TestDataFactory.create_user(username=username)
        group, _ = Group.objects.get_or_create(name=ADMIN_GROUP)
        user.groups.add(group)
        return user

    @staticmethod
    def create_category(name=None, description=None):
        """Create a test work category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=description or f'Test category {name}'
        )

    @staticmethod
    def create_location(name=None):
        """Create a test shelf location"""
        if not name:
            name = f'Z.{TestDataFactory.random_string(2).upper()}.{random.randint(1, 9)}'
        return ShelfLocation.objects.create(name=name)

    @staticmethod
    def create_job(job_number=None, job_name='', project_manager='', primary_field_leader='', work_category=None):
        """Create a test job"""
        if not job_number:
            job_number = f'J{random.randint(10000, 99999)}'
        return Job.objects.create(
            job_number=job_number,
            job_name=job_name,
            project_manager=project_manager,
            primary_field_leader=primary_field_leader,
            work_category=work_category,
        )

    @staticmethod
    def create_bom(job_number=None, items=None, bom_type='order', job_name='Test Job',
                   project_manager='', primary_field_leader='', work_category=None):
        """
        Create a BOM with items

        ``items`` is a list of dicts with ``description`` plus any BomItem
        quantity fields, e.g. ``{'description': 'Conduit', 'on_hand_quantity': 100}``.
        """
        job = Job.objects.filter(job_number=job_number).first() if job_number else None
        if job is None:
            job = TestDataFactory.create_job(
                job_number=job_number,
                job_name=job_name,
                project_manager=project_manager,
                primary_field_leader=primary_field_leader,
                work_category=work_category,
            )
        bom = Bom.objects.create(
            job=job,
            job_number=job.job_number,
            job_name=job_name,
            project_manager=project_manager,
            primary_field_leader=primary_field_leader,
            work_category=work_category,
            type=bom_type,
        )
        for item in items or []:
            BomItem.objects.create(bom=bom, last_updated=timezone.now(), **item)
        return bom

    @staticmethod
    def create_container(job_number='', items=None, container_type='pallet', shelf_location=None, job_name=''):
        """Create a test container; ``items`` is a list of (description, quantity) pairs"""
        container = Container.objects.create(
            job_number=job_number,
            job_name=job_name,
            container_type=container_type,
            shelf_location=shelf_location,
        )
        for description, quantity in items or []:
            ContainerItem.objects.create(container=container, description=description, quantity=quantity)
        return container

    @staticmethod
    def csv_upload(content, name='upload.csv'):
        """An uploaded file holding ``content``"""
        if isinstance(content, str):
            content = content.encode('utf-8')
        return SimpleUploadedFile(name, content, content_type='text/csv')


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
