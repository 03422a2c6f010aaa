"""
Django Admin configuration for profiles.
"""
from django.contrib import admin
from .models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'user', 'role', 'created_at']
    list_filter = ['role']
    search_fields = ['name', 'user__email']
    raw_id_fields = ['user']
