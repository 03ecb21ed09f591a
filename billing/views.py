from django.shortcuts import get_object_or_404
from django.db import transaction
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from .models import Wallet
from .serializers.wallets import (
    WalletOutSerializer, WalletTransactionOutSerializer, WalletCreditSerializer, ReconciliationSerializer,
)
from .services import ledger


class WalletAdminViewSet(viewsets.GenericViewSet, mixins.ListModelMixin, mixins.RetrieveModelMixin):
    """
    Super-admin: wallets prépayés (lecture, recharge/remboursement, réconciliation).
    Les mouvements passent exclusivement par billing.services.ledger.
    """
    permission_classes = [IsAdminUser]
    serializer_class = WalletOutSerializer

    def get_queryset(self):
        qs = Wallet.objects.select_related("company").order_by("id")
        company_id = self.request.query_params.get("company_id")
        if company_id:
            qs = qs.filter(company_id=company_id)
        return qs

    @action(detail=True, methods=["get"], url_path="transactions")
    def transactions(self, request, pk=None):
        wallet = get_object_or_404(Wallet, pk=pk)
        qs = wallet.transactions.order_by("-created_at")
        return Response(WalletTransactionOutSerializer(qs, many=True).data)

    @action(detail=True, methods=["post"], url_path="credit")
    @transaction.atomic
    def credit(self, request, pk=None):
        """
        Body: {"amount_cents": 5000, "type": "topup"|"refund", "reference_id": "...", "description": "..."}
        """
        wallet = get_object_or_404(Wallet, pk=pk)
        ser = WalletCreditSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        tx = ledger.credit(wallet.id, data["amount_cents"], reference_id=data["reference_id"],
                           description=data["description"], type=data["type"])
        wallet.refresh_from_db(fields=["balance"])
        return Response({
            "wallet": WalletOutSerializer(wallet).data,
            "transaction": WalletTransactionOutSerializer(tx).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="reconcile")
    def reconcile(self, request, pk=None):
        wallet = get_object_or_404(Wallet, pk=pk)
        rec = ledger.reconcile_wallet(wallet)
        return Response(ReconciliationSerializer({
            "wallet_id": rec.wallet_id, "balance": rec.balance, "ledger_total": rec.ledger_total,
            "drift": rec.drift, "ok": rec.ok,
        }).data)
