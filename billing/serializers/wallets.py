from rest_framework import serializers

from billing.models import Wallet, WalletTransaction


class WalletOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ("id", "company", "balance", "currency", "created_at", "updated_at")
        read_only_fields = fields


class WalletTransactionOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = WalletTransaction
        fields = ("id", "wallet", "amount", "type", "reference_id", "description", "created_at")
        read_only_fields = fields


class WalletCreditSerializer(serializers.Serializer):
    amount_cents = serializers.IntegerField(min_value=1)
    type = serializers.ChoiceField(choices=[WalletTransaction.TYPE_TOPUP, WalletTransaction.TYPE_REFUND],
                                   default=WalletTransaction.TYPE_TOPUP)
    reference_id = serializers.CharField(required=False, allow_blank=True, default="", max_length=128)
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class ReconciliationSerializer(serializers.Serializer):
    wallet_id = serializers.IntegerField()
    balance = serializers.IntegerField()
    ledger_total = serializers.IntegerField()
    drift = serializers.IntegerField()
    ok = serializers.BooleanField()
