from django.contrib import admin

from .models import Customer, CustomerSession, OtpRecord


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        "email",
        "phone_number",
        "first_name",
        "last_name",
        "status",
        "email_verified",
        "mobile_verified",
        "is_founding_member",
        "created_at",
    )
    search_fields = ("email", "phone_number", "first_name", "last_name")
    list_filter = ("status", "is_founding_member", "email_verified", "mobile_verified")
    ordering = ("-created_at",)


@admin.register(OtpRecord)
class OtpRecordAdmin(admin.ModelAdmin):
    list_display = ("identifier", "channel", "delivery", "masked_code", "expires_at", "failed_attempts", "verified")
    search_fields = ("identifier",)
    list_filter = ("channel", "delivery", "verified")
    exclude = ("code",)

    @admin.display(description="Code")
    def masked_code(self, obj):
        return "******"


@admin.register(CustomerSession)
class CustomerSessionAdmin(admin.ModelAdmin):
    list_display = ("customer", "masked_token", "role", "expires_at", "created_at")
    search_fields = ("customer__email", "customer__phone_number", "email")
    ordering = ("-created_at",)
    exclude = ("token",)

    @admin.display(description="Token")
    def masked_token(self, obj):
        t = (obj.token or "").strip()
        if len(t) <= 8:
            return "****"
        return f"{t[:4]}…{t[-4:]}"
