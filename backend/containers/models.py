from django.db import models
from django.utils import timezone


class Container(models.Model):
    """A pallet, box or cart of parts received into the shop"""
    TYPE_PALLET = 'pallet'
    TYPE_BOX = 'box'
    TYPE_CART = 'cart'
    TYPE_OTHER = 'other'
    TYPE_CHOICES = [
        (TYPE_PALLET, 'Pallet'),
        (TYPE_BOX, 'Box'),
        (TYPE_CART, 'Cart'),
        (TYPE_OTHER, 'Other'),
    ]

    job_number = models.CharField(max_length=50, blank=True, db_index=True)
    job_name = models.CharField(max_length=200, blank=True)
    work_category = models.ForeignKey(
        'catalog.Category', on_delete=models.PROTECT, null=True, blank=True, related_name='containers'
    )
    container_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    # Null means "Not Shelved"
    shelf_location = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    receipt_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)
    image_url = models.URLField(max_length=1000, blank=True)
    received_by = models.ForeignKey(
        'core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='received_containers'
    )

    def __str__(self):
        return f"{self.get_container_type_display()} #{self.pk} ({self.job_number or 'no job'})"

    @property
    def shelf_display(self):
        return self.shelf_location or 'Not Shelved'

    class Meta:
        db_table = 'containers'
        ordering = ['-receipt_date', '-id']


class ContainerItem(models.Model):
    container = models.ForeignKey(Container, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=500)
    quantity = models.PositiveIntegerField()

    def __str__(self):
        return f"{self.quantity} x {self.description}"

    class Meta:
        db_table = 'container_items'
        ordering = ['id']
