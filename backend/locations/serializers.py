from rest_framework import serializers
from .models import ShelfLocation


class ShelfLocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShelfLocation
        fields = ['id', 'name', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Location name cannot be empty.')
        queryset = ShelfLocation.objects.filter(name=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError(f"Location '{value}' already exists.")
        return value


class EligibleShelvesSerializer(serializers.Serializer):
    """One container entry of a receive form: the other entries' picks and its own"""
    in_flight_selections = serializers.ListField(
        child=serializers.CharField(allow_blank=True, allow_null=True), required=False, default=list,
    )
    current_selection = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)
