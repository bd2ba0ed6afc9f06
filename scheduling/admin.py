from django.contrib import admin

from .models import Appointment, AvailabilityWindow, FailedSideEffect, Provider
from .side_effects import StatusSideEffects


class AvailabilityWindowInline(admin.TabularInline):
    model = AvailabilityWindow
    extra = 0
    fields = ("day_of_week", "start_time", "end_time", "max_appointments_per_slot", "is_available")


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "is_active")
    search_fields = ("name", "email")
    list_filter = ("is_active",)
    inlines = [AvailabilityWindowInline]


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    # table columns
    list_display = ("id", "date", "time", "provider_name", "full_name", "phone", "email", "status", "created_at")
    list_display_links = ("id", "full_name")

    # right sidebar filters
    list_filter = ("status", "provider_name", "date", "created_at")

    # top search bar
    search_fields = ("full_name", "phone", "email")

    # date drilldown nav
    date_hierarchy = "date"

    # pagination
    list_per_page = 25

    # slot and status only change through BookingService, which enforces capacity
    readonly_fields = ("provider_name", "date", "time", "status", "created_at", "updated_at")

    # how the edit form is grouped
    fieldsets = (
        ("Patient", {"fields": ("full_name", "phone", "email", "address", "date_of_birth", "blood_type", "gender")}),
        ("Emergency contact", {"fields": ("emergency_contact_name", "emergency_contact_number")}),
        ("Booking", {"fields": ("provider_name", "date", "time", "reason", "status")}),
        ("Notes", {"fields": ("notes",)}),
        ("Meta", {"fields": ("created_at", "updated_at")}),
    )

    # bookings are made through the API so the slot check runs
    def has_add_permission(self, request):
        return False


@admin.register(FailedSideEffect)
class FailedSideEffectAdmin(admin.ModelAdmin):
    list_display = ("id", "appointment", "status", "target", "created_at", "resolved_at")
    list_filter = ("target", "status", "resolved_at")
    readonly_fields = ("appointment", "status", "target", "error", "created_at", "resolved_at")
    actions = ["replay"]

    @admin.action(description="Replay selected side effects")
    def replay(self, request, queryset):
        handler = StatusSideEffects()
        ok = sum(1 for failed in queryset.filter(resolved_at__isnull=True) if handler.replay(failed))
        self.message_user(request, f"{ok} side effect(s) replayed.")
