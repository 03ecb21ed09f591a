from django.shortcuts import get_object_or_404
from rest_framework import viewsets, mixins
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from .models import Call, FunctionCallEvent
from .serializers.calls import CallOutSerializer, CallDetailSerializer, FunctionCallEventOutSerializer


class CallAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: consultation des appels (filtres: company_id, state, billed).
    """
    permission_classes = [IsAdminUser]
    serializer_class = CallOutSerializer

    def get_queryset(self):
        qs = Call.objects.select_related("company", "agent").order_by("-created_at")
        company_id = self.request.query_params.get("company_id")
        state = self.request.query_params.get("state")
        billed = self.request.query_params.get("billed")
        if company_id:
            qs = qs.filter(company_id=company_id)
        if state:
            qs = qs.filter(lifecycle_state=state)
        if billed is not None:
            qs = qs.filter(billed_at__isnull=(billed.lower() != "true"))
        return qs

    def retrieve(self, request, pk=None):
        obj = get_object_or_404(self.get_queryset().prefetch_related("segments"), pk=pk)
        return Response(CallDetailSerializer(obj).data)


class FunctionCallEventAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin):
    permission_classes = [IsAdminUser]
    serializer_class = FunctionCallEventOutSerializer

    def get_queryset(self):
        qs = FunctionCallEvent.objects.order_by("-created_at")
        company_id = self.request.query_params.get("company_id")
        if company_id:
            qs = qs.filter(company_id=company_id)
        return qs
