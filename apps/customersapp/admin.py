from django.contrib import admin

from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "phone_number", "email", "is_vip", "created_at")
    list_filter = ("is_vip",)
    search_fields = ("name", "phone_number", "email")
    readonly_fields = ("id", "created_at", "updated_at")
