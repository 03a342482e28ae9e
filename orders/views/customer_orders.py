from rest_framework import generics, status
from rest_framework.response import Response

from ..models import Order
from ..serializers import OrderSerializer


class CustomerOrderListView(generics.ListAPIView):
    """GET /api/orders/mine: orders of the customer behind the session cookie."""

    serializer_class = OrderSerializer
    authentication_classes = []
    permission_classes = []

    def get_queryset(self):
        return Order.objects.filter(customer=self.request.customer).order_by("-created_at")

    def list(self, request, *args, **kwargs):
        if getattr(request, "customer", None) is None:
            return Response({"success": False, "error": "Not signed in.", "code": "unauthorized"},
                            status=status.HTTP_401_UNAUTHORIZED)
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({"success": True, "orders": serializer.data})
