from django.contrib import admin

from .models import AppointmentHistory, Patient


class AppointmentHistoryInline(admin.TabularInline):
    model = AppointmentHistory
    extra = 0
    readonly_fields = ("created_at",)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("id", "full_name", "email", "contact_number", "created_at")
    list_display_links = ("id", "full_name")
    search_fields = ("full_name", "email", "contact_number")
    readonly_fields = ("created_at",)
    inlines = [AppointmentHistoryInline]

    fieldsets = (
        ("Patient", {"fields": ("full_name", "email", "contact_number", "address")}),
        ("Medical", {"fields": ("date_of_birth", "blood_type", "gender")}),
        ("Emergency contact", {"fields": ("emergency_contact_name", "emergency_contact_number")}),
        ("Meta", {"fields": ("created_at",)}),
    )
