from rest_framework import serializers

from .models import Order


def _money_field(**kwargs):
    # No digit/place limits: client totals are re-quantized with pricing.to_money.
    return serializers.DecimalField(max_digits=None, decimal_places=None, min_value=0, **kwargs)


class CardConfigSerializer(serializers.Serializer):
    baseMaterial = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(required=False, min_value=1, default=1)
    color = serializers.CharField(required=False, allow_blank=True, default="")
    isDigitalOnly = serializers.BooleanField(required=False, default=False)


class CheckoutDataSerializer(serializers.Serializer):
    fullName = serializers.CharField(max_length=160)
    email = serializers.EmailField()
    phoneNumber = serializers.CharField(required=False, allow_blank=True, default="")
    addressLine1 = serializers.CharField(required=False, allow_blank=True, default="")
    addressLine2 = serializers.CharField(required=False, allow_blank=True, default="")
    city = serializers.CharField(required=False, allow_blank=True, default="")
    state = serializers.CharField(required=False, allow_blank=True, default="")
    country = serializers.CharField(required=False, allow_blank=True, default="")
    postalCode = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentDataSerializer(serializers.Serializer):
    paymentMethod = serializers.CharField(required=False, allow_blank=True, default="")
    paymentId = serializers.CharField(required=False, allow_blank=True, default="")
    voucherCode = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")
    voucherDiscount = _money_field(required=False, allow_null=True, default=None)
    voucherAmount = _money_field(required=False, allow_null=True, default=None)


class PricingSnapshotSerializer(serializers.Serializer):
    subtotal = _money_field(required=False, default=0)
    appSubscription = _money_field(required=False, default=0)
    shipping = _money_field(required=False, default=0)
    tax = _money_field(required=False, default=0)
    total = _money_field(required=False, default=0)


class ProcessOrderSerializer(serializers.Serializer):
    cardConfig = serializers.DictField()
    checkoutData = CheckoutDataSerializer()
    paymentData = PaymentDataSerializer(required=False, allow_null=True, default=None)
    pricing = PricingSnapshotSerializer(required=False, allow_null=True, default=None)
    orderId = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)

    def validate_cardConfig(self, value):
        # Keep every client key (card text, theme, ...); only the priced fields are checked.
        inner = CardConfigSerializer(data=value)
        inner.is_valid(raise_exception=True)
        return {**value, **inner.validated_data}


class PricingQuoteSerializer(serializers.Serializer):
    cardConfig = CardConfigSerializer()
    country = serializers.CharField(required=False, allow_blank=True, default="")
    isFoundingMember = serializers.BooleanField(required=False, default=False)
    includeAppSubscription = serializers.BooleanField(required=False, default=True)


class VoucherValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=64)
    orderAmount = _money_field(required=False, allow_null=True, default=None)
    cardConfig = CardConfigSerializer(required=False, allow_null=True, default=None)
    country = serializers.CharField(required=False, allow_blank=True, default="")
    isFoundingMember = serializers.BooleanField(required=False, default=False)
    email = serializers.EmailField(required=False, allow_blank=True, default="")


class PaymentIntentSerializer(serializers.Serializer):
    orderId = serializers.CharField()
    voucherCode = serializers.CharField(required=False, allow_blank=True, default="")


class OrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "plan_type",
            "customer_name",
            "email",
            "total",
            "created_at",
        ]
