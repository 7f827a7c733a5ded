from django.contrib import admin
from .models import SplitEvent, Participant, Wallet, Transaction


class ParticipantInline(admin.TabularInline):
    """Inline participants within a split event."""
    model = Participant
    extra = 0
    fields = ['user', 'amount', 'status', 'is_creator', 'paid_at']
    readonly_fields = ['user', 'amount', 'is_creator', 'paid_at']

    def has_add_permission(self, request, obj=None):
        """Participants are created by the split service."""
        return False


@admin.register(SplitEvent)
class SplitEventAdmin(admin.ModelAdmin):
    list_display = ['name', 'creator', 'total_amount', 'split_type', 'status', 'created_at']
    list_filter = ['status', 'split_type', 'created_at']
    search_fields = ['name', 'creator__email']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [ParticipantInline]


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ['user', 'balance', 'bank_connected', 'updated_at']
    search_fields = ['user__email']
    # Balance changes only through the wallet service
    readonly_fields = ['id', 'balance', 'created_at', 'updated_at']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['user', 'type', 'balance_effect', 'balance_after', 'split_event', 'created_at']
    list_filter = ['type', 'created_at']
    search_fields = ['user__email', 'description']
    readonly_fields = [f.name for f in Transaction._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
