from rest_framework import viewsets, mixins
from rest_framework.permissions import IsAdminUser
from django.db.models import Sum
from .models import UsageLog
from .serializers.usage import UsageLogOutSerializer


class UsageLogAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin):
    """
    Super-admin: lecture des usage logs (filtrable via query params).
    """
    permission_classes = [IsAdminUser]
    serializer_class = UsageLogOutSerializer

    def get_queryset(self):
        qs = UsageLog.objects.select_related("company").order_by("-created_at")
        company_id = self.request.query_params.get("company_id")
        resource_type = self.request.query_params.get("resource_type")
        date_from = self.request.query_params.get("from")
        date_to = self.request.query_params.get("to")
        if company_id:
            qs = qs.filter(company_id=company_id)
        if resource_type:
            qs = qs.filter(resource_type=resource_type)
        if date_from:
            qs = qs.filter(created_at__gte=date_from)
        if date_to:
            qs = qs.filter(created_at__lt=date_to)
        return qs

    # Résumé agrégé par ressource
    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        qs = self.get_queryset()
        agg = (qs.order_by().values("resource_type")
               .annotate(total_quantity=Sum("quantity"), total_cost_cents=Sum("cost_cents")))
        response.data = {"results": response.data, "summary": list(agg)}
        return response
