from django.contrib import admin
from .models import Container, ContainerItem


class ContainerItemInline(admin.TabularInline):
    model = ContainerItem
    extra = 0


@admin.register(Container)
class ContainerAdmin(admin.ModelAdmin):
    list_display = ['id', 'container_type', 'job_number', 'shelf_location', 'receipt_date', 'received_by']
    search_fields = ['job_number', 'job_name', 'shelf_location', 'notes']
    list_filter = ['container_type', 'work_category']
    inlines = [ContainerItemInline]
