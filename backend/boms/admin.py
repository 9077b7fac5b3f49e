from django.contrib import admin
from .models import Bom, BomItem, Job


class BomItemInline(admin.TabularInline):
    model = BomItem
    extra = 0
    fields = ['description', 'order_bom_quantity', 'design_bom_quantity', 'on_hand_quantity',
              'shipped_quantity', 'shelf_locations', 'last_updated']


@admin.register(Job)
class JobAdmin(admin.ModelAdmin):
    list_display = ['job_number', 'job_name', 'project_manager', 'primary_field_leader', 'work_category']
    search_fields = ['job_number', 'job_name', 'project_manager', 'primary_field_leader']
    list_filter = ['work_category']


@admin.register(Bom)
class BomAdmin(admin.ModelAdmin):
    list_display = ['job_number', 'job_name', 'type', 'work_category', 'created_at']
    search_fields = ['job_number', 'job_name', 'project_manager', 'primary_field_leader']
    list_filter = ['type', 'work_category']
    inlines = [BomItemInline]
