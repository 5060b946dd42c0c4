"""
Users — Django Admin Configuration

Admin panel for User, Role and UserRole, with inline role management.

@file users/admin.py
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import Role, User, UserRole


class UserRoleInline(admin.TabularInline):
    model = UserRole
    fk_name = 'user'
    extra = 0
    readonly_fields = ('created_at',)
    fields = ('role', 'is_active', 'created_at')


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = (
        'phone', 'get_full_name', 'email',
        'status_badge', 'is_staff', 'date_joined',
    )
    list_filter = ('status', 'is_staff', 'is_superuser', 'user_roles__role')
    search_fields = ('phone', 'email', 'first_name', 'last_name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'date_joined', 'last_login')
    date_hierarchy = 'created_at'
    show_full_result_count = False
    list_per_page = 30
    ordering = ('-created_at',)
    inlines = [UserRoleInline]

    fieldsets = (
        (None, {
            'fields': ('id', 'phone', 'password'),
        }),
        (_('Personal Info'), {
            'fields': ('first_name', 'last_name', 'email'),
        }),
        (_('Status'), {
            'fields': ('status',),
        }),
        (_('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (_('Audit'), {
            'fields': ('date_joined', 'last_login', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('phone', 'password1', 'password2', 'first_name', 'last_name'),
        }),
    )

    @admin.display(description=_('Status'))
    def status_badge(self, obj):
        colors = {
            'PENDING': '#eab308',
            'ACTIVE': '#22c55e',
            'SUSPENDED': '#f97316',
        }
        color = colors.get(obj.status, '#6b7280')
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            color, obj.get_status_display(),
        )

    @admin.display(description=_('Full Name'))
    def get_full_name(self, obj):
        return obj.get_full_name()


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ('name', 'is_system', 'description', 'created_at')
    list_filter = ('is_system',)
    search_fields = ('name', 'description')
    readonly_fields = ('id', 'created_at', 'updated_at')
    list_per_page = 50


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ('user', 'role', 'is_active', 'created_at')
    list_filter = ('is_active', 'role')
    search_fields = ('user__phone', 'user__email', 'role__name')
    readonly_fields = ('id', 'created_at', 'updated_at')
    raw_id_fields = ('user', 'role')
    list_select_related = ('user', 'role')
    list_per_page = 50
