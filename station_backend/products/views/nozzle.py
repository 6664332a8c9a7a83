# products/views/nozzle.py

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.viewsets import ModelViewSet

from products.models import Nozzle
from products.serializers import NozzleSerializer


@extend_schema(tags=["products"])
class NozzleViewSet(ModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = NozzleSerializer
    http_method_names = ["get", "post", "patch", "head", "options"]
    filterset_fields = ["product", "pump_number", "is_active"]

    queryset = Nozzle.objects.select_related("product").all()
