from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.utils.translation import gettext_lazy as _

from .models import FestUser, Participant, Organizer


@admin.register(FestUser)
class FestUserAdmin(UserAdmin):
    list_display = ("email", "role", "is_active", "is_staff", "date_joined")
    list_filter = ("role", "is_active", "is_staff")
    search_fields = ("email",)
    ordering = ("email",)
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (_("Role"), {"fields": ("role",)}),
        (_("Permissions"), {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("email", "role", "password1", "password2"),
        }),
    )


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ("get_full_name", "user", "participant_type", "college_name")
    list_filter = ("participant_type",)
    search_fields = ("first_name", "last_name", "user__email", "college_name")
    filter_horizontal = ("registered_events",)


@admin.register(Organizer)
class OrganizerAdmin(admin.ModelAdmin):
    list_display = ("name", "organizer_type", "category", "contact_email", "is_active")
    list_filter = ("organizer_type", "is_active")
    search_fields = ("name", "contact_email", "user__email")
