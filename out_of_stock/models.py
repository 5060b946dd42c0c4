"""
Out-of-Stock — Models

Customer out-of-stock requests (backorders). Customer, product and
variant are opaque references; a display snapshot of their names is kept
on the row so orphaned requests still render and can be searched.

Quantity columns are written only through the lifecycle engine:
  requested_quantity (open) + returned_quantity == original_quantity

@file out_of_stock/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import ActorFieldsMixin, BaseModel


class RequestStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    COMPLETED = 'completed', _('Completed')
    RETURNED = 'returned', _('Returned')


class OutOfStockRequest(BaseModel, ActorFieldsMixin):
    """
    A customer's request for a product that was out of stock.

    State machine: PENDING → COMPLETED, PENDING/COMPLETED → RETURNED
    (see out_of_stock/lifecycle.py). RETURNED is terminal.
    """

    customer_ref = models.CharField(_('customer reference'), max_length=64, db_index=True)
    product_ref = models.CharField(_('product reference'), max_length=64, db_index=True)
    variant_ref = models.CharField(_('variant reference'), max_length=64, blank=True, default='')

    customer_name = models.CharField(_('customer name'), max_length=200, blank=True, default='')
    product_name = models.CharField(_('product name'), max_length=200, blank=True, default='')
    product_category = models.CharField(_('product category'), max_length=120, blank=True, default='')
    variant_label = models.CharField(
        _('variant label'), max_length=120, blank=True, default='',
        help_text=_('Size / color as displayed, e.g. "XL-red"'),
    )

    original_quantity = models.PositiveIntegerField(_('original quantity'))
    requested_quantity = models.PositiveIntegerField(
        _('open quantity'),
        help_text=_('Part of the original request not yet returned'),
    )
    returned_quantity = models.PositiveIntegerField(_('returned quantity'), default=0)

    status = models.CharField(
        _('status'), max_length=12,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING,
        db_index=True,
    )

    notes = models.TextField(_('notes'), blank=True, default='')
    return_notes = models.TextField(_('return notes'), blank=True, default='')
    completed_at = models.DateTimeField(_('completed at'), null=True, blank=True)
    returned_at = models.DateTimeField(_('returned at'), null=True, blank=True)

    class Meta:
        verbose_name = _('out-of-stock request')
        verbose_name_plural = _('out-of-stock requests')
        ordering = ['-created_at', 'id']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='oos_status_created_idx'),
            models.Index(fields=['customer_ref', 'status'], name='oos_customer_status_idx'),
            models.Index(fields=['product_ref', 'status'], name='oos_product_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(original_quantity__gte=1),
                name='oos_original_quantity_positive',
            ),
            models.CheckConstraint(
                condition=models.Q(returned_quantity__lte=models.F('original_quantity')),
                name='oos_returned_lte_original',
            ),
            models.CheckConstraint(
                condition=models.Q(
                    original_quantity=models.F('requested_quantity') + models.F('returned_quantity'),
                ),
                name='oos_quantity_conservation',
            ),
        ]

    def __str__(self):
        return f'{self.customer_name or self.customer_ref} — {self.product_name or self.product_ref} × {self.original_quantity} ({self.status})'
