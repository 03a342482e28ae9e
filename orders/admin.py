from django.contrib import admin

from .models import Order, Payment, ShippingAddress, Voucher, VoucherUsage


class ShippingAddressInline(admin.StackedInline):
    model = ShippingAddress
    extra = 0
    can_delete = False
    readonly_fields = ("customer",)


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "customer_name", "email", "plan_type", "status", "total", "voucher_code", "created_at")
    search_fields = ("order_number", "email", "customer_name", "payment_id")
    list_filter = ("status", "plan_type")
    ordering = ("-created_at",)
    readonly_fields = ("id", "order_number", "emails_sent", "created_at", "updated_at")
    inlines = [ShippingAddressInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("order", "provider_payment_id", "display_amount", "currency", "status", "created_at")
    search_fields = ("provider_payment_id", "order__order_number")
    list_filter = ("status", "currency")

    @admin.display(description="Amount")
    def display_amount(self, obj):
        return f"{obj.amount / 100:.2f}"

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Voucher)
class VoucherAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "discount_value",
        "max_discount_amount",
        "used_count",
        "usage_limit",
        "founding_members_only",
        "is_active",
        "valid_until",
    )
    search_fields = ("code", "description")
    list_filter = ("discount_type", "is_active", "founding_members_only")
    readonly_fields = ("used_count",)


@admin.register(VoucherUsage)
class VoucherUsageAdmin(admin.ModelAdmin):
    list_display = ("voucher", "order", "user_email", "discount_amount", "created_at")
    search_fields = ("voucher__code", "user_email", "order__order_number")
    ordering = ("-created_at",)
