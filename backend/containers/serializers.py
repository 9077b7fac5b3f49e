from rest_framework import serializers
from .models import Container, ContainerItem


class ContainerItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContainerItem
        fields = ['id', 'description', 'quantity']


class ContainerSerializer(serializers.ModelSerializer):
    items = ContainerItemSerializer(many=True, read_only=True)
    work_category_name = serializers.CharField(source='work_category.name', read_only=True, default=None)
    received_by_username = serializers.CharField(source='received_by.username', read_only=True, default=None)
    shelf_display = serializers.CharField(read_only=True)

    class Meta:
        model = Container
        fields = ['id', 'job_number', 'job_name', 'work_category', 'work_category_name', 'container_type',
                  'shelf_location', 'shelf_display', 'receipt_date', 'notes', 'image_url',
                  'received_by', 'received_by_username', 'items']


# Write payloads

class ContainerLineSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500)
    quantity = serializers.IntegerField(min_value=1)


class ReceiveContainerSerializer(serializers.Serializer):
    container_type = serializers.ChoiceField(choices=Container.TYPE_CHOICES)
    shelf_location = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True, default=None)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    image_url = serializers.URLField(max_length=1000, required=False, allow_blank=True, default='')
    items = ContainerLineSerializer(many=True, allow_empty=False)


class ReceiveSerializer(serializers.Serializer):
    job_number = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True, default='')
    job_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    work_category = serializers.IntegerField(required=False, allow_null=True)
    containers = ReceiveContainerSerializer(many=True, allow_empty=False)


class MoveSerializer(serializers.Serializer):
    shelf_location = serializers.CharField(max_length=100, allow_blank=True, allow_null=True)
