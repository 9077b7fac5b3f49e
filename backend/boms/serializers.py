from rest_framework import serializers
from backend.inventory.rules import BOM_TYPES
from .models import Bom, BomItem, Job


class JobSerializer(serializers.ModelSerializer):
    work_category_name = serializers.CharField(source='work_category.name', read_only=True, default=None)

    class Meta:
        model = Job
        fields = ['id', 'job_number', 'job_name', 'project_manager', 'primary_field_leader',
                  'work_category', 'work_category_name', 'created_at', 'updated_at']


class BomItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = BomItem
        fields = ['id', 'description', 'order_bom_quantity', 'design_bom_quantity',
                  'on_hand_quantity', 'shipped_quantity', 'shelf_locations', 'last_updated']


class BomListSerializer(serializers.ModelSerializer):
    work_category_name = serializers.CharField(source='work_category.name', read_only=True, default=None)
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Bom
        fields = ['id', 'job', 'job_number', 'job_name', 'project_manager', 'primary_field_leader',
                  'work_category', 'work_category_name', 'type', 'item_count', 'created_at', 'updated_at']


class BomSerializer(BomListSerializer):
    items = BomItemSerializer(many=True, read_only=True)
    item_count = serializers.SerializerMethodField()

    class Meta(BomListSerializer.Meta):
        fields = BomListSerializer.Meta.fields + ['items']

    def get_item_count(self, obj):
        return obj.items.count()


# Write payloads

class JobInfoSerializer(serializers.Serializer):
    job_number = serializers.CharField(max_length=50)
    job_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    project_manager = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    primary_field_leader = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')

    def validate_job_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Job number cannot be empty.')
        return value


class BomLineSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500)
    quantity = serializers.IntegerField(min_value=0)


class ImportLineSerializer(BomLineSerializer):
    quantity = serializers.IntegerField(min_value=1)


class BomImportSerializer(serializers.Serializer):
    """Reviewed BOM sent back by the client after the preview"""
    bom_type = serializers.ChoiceField(choices=BOM_TYPES)
    review_confirmed = serializers.BooleanField(default=False)
    work_category = serializers.IntegerField(required=False, allow_null=True)
    job = JobInfoSerializer()
    items = ImportLineSerializer(many=True, allow_empty=False)


class BomUpdateSerializer(serializers.Serializer):
    work_category = serializers.IntegerField(required=False, allow_null=True)
    job = JobInfoSerializer(required=False)
    items = BomLineSerializer(many=True, allow_empty=False)
