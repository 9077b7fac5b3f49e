from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from backend.inventory.rules import BOM_TYPE_DESIGN, BOM_TYPE_ORDER, BomItemState, description_key


class Job(models.Model):
    """A shop job, identified by its job number"""
    job_number = models.CharField(max_length=50, unique=True)
    job_name = models.CharField(max_length=200, blank=True)
    project_manager = models.CharField(max_length=200, blank=True)
    primary_field_leader = models.CharField(max_length=200, blank=True)
    work_category = models.ForeignKey(
        'catalog.Category', on_delete=models.PROTECT, null=True, blank=True, related_name='jobs'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.job_number} - {self.job_name}" if self.job_name else self.job_number

    class Meta:
        db_table = 'jobs'
        ordering = ['job_number']


class Bom(models.Model):
    """Bill of materials imported for a job"""
    TYPE_CHOICES = [
        (BOM_TYPE_ORDER, 'Order BOM'),
        (BOM_TYPE_DESIGN, 'Design BOM'),
    ]

    job = models.ForeignKey(Job, on_delete=models.PROTECT, null=True, blank=True, related_name='boms')
    job_number = models.CharField(max_length=50, db_index=True)
    job_name = models.CharField(max_length=200, blank=True)
    project_manager = models.CharField(max_length=200, blank=True)
    primary_field_leader = models.CharField(max_length=200, blank=True)
    work_category = models.ForeignKey(
        'catalog.Category', on_delete=models.PROTECT, null=True, blank=True, related_name='boms'
    )
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=BOM_TYPE_ORDER)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"BOM {self.job_number} ({self.type})"

    class Meta:
        db_table = 'boms'
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['job_number', 'created_at'], name='idx_bom_job_created'),
        ]


class BomItem(models.Model):
    """One line of a BOM with its reconciled quantities"""
    bom = models.ForeignKey(Bom, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=500)
    # Case-folded, whitespace-collapsed description; unique per BOM
    match_key = models.CharField(max_length=500, blank=True, editable=False)
    order_bom_quantity = models.PositiveIntegerField(default=0)
    design_bom_quantity = models.PositiveIntegerField(default=0)
    on_hand_quantity = models.PositiveIntegerField(default=0)
    shipped_quantity = models.PositiveIntegerField(default=0)
    shelf_locations = models.JSONField(default=list, blank=True)
    last_updated = models.DateTimeField(default=timezone.now)

    def __str__(self):
        return f"{self.description} ({self.bom.job_number})"

    def clean(self):
        self.match_key = description_key(self.description)
        if self.bom_id and BomItem.objects.filter(bom_id=self.bom_id, match_key=self.match_key).exclude(pk=self.pk).exists():
            raise ValidationError({'description': f"This BOM already has an item matching '{self.description}'."})

    def save(self, *args, **kwargs):
        self.match_key = description_key(self.description)
        super().save(*args, **kwargs)

    def to_state(self):
        return BomItemState(
            description=self.description,
            order_bom_quantity=self.order_bom_quantity,
            design_bom_quantity=self.design_bom_quantity,
            on_hand_quantity=self.on_hand_quantity,
            shipped_quantity=self.shipped_quantity,
            shelf_locations=tuple(self.shelf_locations or ()),
            last_updated=self.last_updated,
        )

    def apply_state(self, state):
        self.description = state.description
        self.match_key = description_key(state.description)
        self.order_bom_quantity = state.order_bom_quantity
        self.design_bom_quantity = state.design_bom_quantity
        self.on_hand_quantity = state.on_hand_quantity
        self.shipped_quantity = state.shipped_quantity
        self.shelf_locations = list(state.shelf_locations)
        self.last_updated = state.last_updated or timezone.now()

    class Meta:
        db_table = 'bom_items'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['bom', 'match_key'], name='uniq_bom_item_match_key'),
        ]
