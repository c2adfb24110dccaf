from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import (
    Event, MerchandiseVariant, EventAnalytics, EventAnalyticsHistory,
    Registration, AttendanceLog, EmailLog,
)


class MerchandiseVariantInline(admin.TabularInline):
    model = MerchandiseVariant
    extra = 0
    fields = ('product', 'size', 'color', 'price', 'stock', 'sold')
    readonly_fields = ('sold',)


class EventAnalyticsInline(admin.StackedInline):
    model = EventAnalytics
    can_delete = False
    readonly_fields = (
        'total_registrations', 'iiit_registrations', 'external_registrations',
        'merchandise_sales', 'revenue', 'attendance_count', 'cancellation_count',
        'rejection_count', 'page_views',
    )


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('name', 'organizer', 'event_type', 'eligibility', 'status', 'start_date', 'form_locked')
    list_filter = ('event_type', 'eligibility', 'status')
    search_fields = ('name', 'description', 'organizer__name')
    ordering = ('-created_at',)
    readonly_fields = ('form_locked', 'created_at', 'updated_at')
    inlines = [MerchandiseVariantInline, EventAnalyticsInline]
    fieldsets = (
        (None, {'fields': ('organizer', 'name', 'description', 'event_type', 'eligibility', 'status', 'tags')}),
        (_('Schedule'), {'fields': ('registration_deadline', 'start_date', 'end_date')}),
        (_('Limits & fees'), {'fields': ('registration_limit', 'registration_fee', 'purchase_limit')}),
        (_('Registration form'), {'fields': ('form_schema', 'form_locked')}),
        (_('Timestamps'), {'fields': ('created_at', 'updated_at')}),
    )


@admin.register(EventAnalyticsHistory)
class EventAnalyticsHistoryAdmin(admin.ModelAdmin):
    list_display = ('event', 'date', 'registrations', 'revenue', 'attendance', 'cancellations')
    list_filter = ('date',)
    search_fields = ('event__name',)
    ordering = ('-date',)


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('ticket_id', 'event', 'participant', 'participant_type', 'status', 'attendance_marked', 'created_at')
    list_filter = ('status', 'participant_type', 'attendance_marked')
    search_fields = ('ticket_id', 'event__name', 'participant__user__email', 'participant__first_name', 'participant__last_name')
    readonly_fields = ('ticket_id', 'qr_code_url', 'attendance_marked', 'attendance_timestamp', 'created_at', 'updated_at')
    autocomplete_fields = ('event',)


@admin.register(AttendanceLog)
class AttendanceLogAdmin(admin.ModelAdmin):
    list_display = ('ticket_id', 'event', 'participant', 'scanned_at', 'scanned_by', 'manual_override')
    list_filter = ('manual_override',)
    search_fields = ('ticket_id', 'event__name', 'override_reason')
    ordering = ('-scanned_at',)

    # append-only
    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ('to', 'email_type', 'status', 'provider', 'sent_at')
    list_filter = ('email_type', 'status', 'provider')
    search_fields = ('to', 'subject')
    ordering = ('-sent_at',)
    readonly_fields = ('to', 'subject', 'email_type', 'status', 'provider', 'metadata', 'error', 'sent_at')
