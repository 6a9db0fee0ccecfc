from rest_framework import permissions, viewsets

from .models import Package
from .serializers import PackageSerializer


class PackageViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PackageSerializer
    permission_classes = [permissions.AllowAny]
    filterset_fields = ["featured"]
    search_fields = ["title", "start_point", "description"]
    ordering_fields = ["price", "rating", "created_at"]

    def get_queryset(self):
        return Package.objects.filter(active=True)
