from django.shortcuts import get_object_or_404
from django.db import transaction
from rest_framework import viewsets, mixins, status
from rest_framework.permissions import IsAdminUser
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import AlertChannel, AlertDelivery
from .serializers.alerts import AlertChannelOutSerializer, AlertChannelUpsertSerializer, \
    AlertDeliveryOutSerializer
from .services.notify import EVT_TEST_PING
from .tasks import deliver_alert_task


class AlertChannelAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: canaux d'alerte opérateur.
    """
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        return AlertChannel.objects.all().order_by("id")

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()
        return Response(AlertChannelOutSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None):
        obj = get_object_or_404(self.get_queryset(), pk=pk)
        return Response(AlertChannelOutSerializer(obj).data)

    @transaction.atomic
    def create(self, request):
        ser = AlertChannelUpsertSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        ch = ser.save()
        return Response(AlertChannelOutSerializer(ch).data, status=status.HTTP_201_CREATED)

    @transaction.atomic
    def partial_update(self, request, pk=None):
        ch = get_object_or_404(AlertChannel, pk=pk)
        ser = AlertChannelUpsertSerializer(instance=ch, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ch = ser.save()
        return Response(AlertChannelOutSerializer(ch).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="test")
    def test_send(self, request, pk=None):
        """
        Déclenche une alerte de test (event="test.ping").
        Body: {"data": {...}} optionnel
        """
        ch = get_object_or_404(AlertChannel, pk=pk)
        data = request.data.get("data", {"msg": "hello from CallMeter"})
        deliver_alert_task.delay(ch.id, EVT_TEST_PING, data, attempt=1)
        return Response({"detail": "queued"}, status=status.HTTP_202_ACCEPTED)


class AlertDeliveryAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: consultation des envois.
    """
    permission_classes = [IsAdminUser]

    def get_queryset(self):
        qs = AlertDelivery.objects.select_related("channel").order_by("-created_at")
        event = self.request.query_params.get("event")
        alert_id = self.request.query_params.get("alert_id")
        ok = self.request.query_params.get("ok")
        if event:
            qs = qs.filter(event=event)
        if alert_id:
            qs = qs.filter(alert_id=alert_id)
        if ok is not None:
            qs = qs.filter(ok=(ok.lower() == "true"))
        return qs

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()
        return Response(AlertDeliveryOutSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None):
        obj = get_object_or_404(self.get_queryset(), pk=pk)
        return Response(AlertDeliveryOutSerializer(obj).data)
