from django.db import models


class Category(models.Model):
    """Work category grouping BOMs and containers by type of work (e.g. Lighting, Gear)"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'work_categories'
        verbose_name_plural = 'categories'
        ordering = ['name']
