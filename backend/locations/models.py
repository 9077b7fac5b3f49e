from django.db import models


class ShelfLocation(models.Model):
    """A named shelf in the shop, written section.bay.shelf (e.g. A.01.3)"""
    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'shelf_locations'
        ordering = ['name']
