from django.contrib import admin

from .models import MerchandiseOrder, MerchandiseOrderItem


class MerchandiseOrderItemInline(admin.TabularInline):
    model = MerchandiseOrderItem
    extra = 0
    fields = ('variant', 'size', 'color', 'quantity', 'unit_price')
    readonly_fields = fields


@admin.register(MerchandiseOrder)
class MerchandiseOrderAdmin(admin.ModelAdmin):
    '''
    Read-mostly view of orders. Approval and rejection go through the API so
    stock, analytics and tickets stay consistent.
    '''
    list_display = ('id', 'event', 'participant', 'revenue_amount', 'approval_status', 'ticket_id', 'attendance_marked', 'created_at')
    list_filter = ('approval_status', 'participant_type', 'attendance_marked')
    search_fields = ('ticket_id', 'event__name', 'participant__user__email')
    readonly_fields = (
        'event', 'participant', 'participant_type', 'quantity', 'revenue_amount', 'payment_proof_url',
        'approval_status', 'approved_by', 'resolved_at', 'ticket_id', 'qr_code_url',
        'attendance_marked', 'attendance_timestamp', 'created_at', 'updated_at',
    )
    inlines = [MerchandiseOrderItemInline]
