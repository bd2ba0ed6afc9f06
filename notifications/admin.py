from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "recipient_email", "category", "is_read", "created_at")
    list_filter = ("category", "is_read", "created_at")
    search_fields = ("recipient_email", "recipient_phone", "title")
    readonly_fields = ("created_at",)
    list_per_page = 25
