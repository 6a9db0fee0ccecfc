from rest_framework import serializers

from .models import Package


class PackageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Package
        fields = [
            "id",
            "title",
            "description",
            "image",
            "start_point",
            "destinations",
            "duration",
            "price",
            "rating",
            "featured",
        ]
        read_only_fields = fields
