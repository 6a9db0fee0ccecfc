from django.contrib import admin

from .models import Package


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ("title", "price", "duration", "active", "featured")
    list_filter = ("active", "featured")
    search_fields = ("title", "start_point")
