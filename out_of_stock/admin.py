"""
Out-of-Stock — Django Admin Configuration

Read-mostly admin for out-of-stock requests. Quantities and status are
read-only here: they change only through the lifecycle engine.

@file out_of_stock/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from .models import OutOfStockRequest


@admin.register(OutOfStockRequest)
class OutOfStockRequestAdmin(admin.ModelAdmin):
    list_display = (
        'created_at', 'customer_name', 'product_name', 'variant_label',
        'original_quantity', 'requested_quantity', 'returned_quantity',
        'status_badge', 'created_by',
    )
    list_filter = ('status', 'product_category', 'created_at')
    search_fields = (
        'customer_ref', 'product_ref', 'customer_name', 'product_name',
        'product_category', 'variant_label', 'notes',
    )
    readonly_fields = (
        'id', 'original_quantity', 'requested_quantity', 'returned_quantity',
        'status', 'completed_at', 'returned_at',
        'created_at', 'updated_at', 'created_by', 'updated_by',
    )
    date_hierarchy = 'created_at'
    show_full_result_count = False
    list_per_page = 50
    ordering = ('-created_at',)

    fieldsets = (
        (None, {
            'fields': ('id', 'customer_ref', 'product_ref', 'variant_ref'),
        }),
        (_('Display'), {
            'fields': ('customer_name', 'product_name', 'product_category', 'variant_label'),
        }),
        (_('Quantities & Status'), {
            'fields': (
                'original_quantity', 'requested_quantity', 'returned_quantity',
                'status', 'completed_at', 'returned_at',
            ),
        }),
        (_('Notes'), {
            'fields': ('notes', 'return_notes'),
        }),
        (_('Audit'), {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',),
        }),
    )

    def has_add_permission(self, request):
        return False

    @admin.display(description=_('Status'))
    def status_badge(self, obj):
        colors = {
            'pending': '#eab308',
            'completed': '#22c55e',
            'returned': '#6b7280',
        }
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            colors.get(obj.status, '#6b7280'), obj.get_status_display(),
        )
