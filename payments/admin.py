from django.contrib import admin
from .models import DeclinedOrder, Order, SettlementAttempt


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "order_id", "service_name", "price_minor", "phone", "settlement_sent", "finalized", "created_at")
    search_fields = ("order_number", "order_id", "phone", "client_address", "service_id")
    list_filter = ("settlement_sent", "finalized", "marked_paid_manually", "created_at")
    readonly_fields = ("created_at", "expires_at", "updated_at", "register_payload", "settlement_result", "settlement_doc_id", "settlement_at")


class AppendOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(DeclinedOrder)
class DeclinedOrderAdmin(AppendOnlyAdmin):
    list_display = ("order_number", "order_id", "reason", "phone", "price_minor", "created_at")
    search_fields = ("order_number", "order_id", "phone")
    list_filter = ("reason", "created_at")


@admin.register(SettlementAttempt)
class SettlementAttemptAdmin(AppendOnlyAdmin):
    list_display = ("order_number", "doc_id", "context", "ok", "response_status", "created_at")
    search_fields = ("order_number", "order_id", "doc_id")
    list_filter = ("ok", "context", "created_at")
