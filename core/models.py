"""
Core — Base Models & Audit Infrastructure

Reusable abstract models for timestamps and actor stamping, plus the
AuditLog model receiving one row per mutation across the platform.

@file core/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


# ---------------------------------------------------------------------------
# Abstract base models (mixins)
# ---------------------------------------------------------------------------

class TimestampMixin(models.Model):
    """Adds created_at / updated_at to any model."""

    created_at = models.DateTimeField(
        _('created at'), auto_now_add=True, db_index=True,
    )
    updated_at = models.DateTimeField(
        _('updated at'), auto_now=True,
    )

    class Meta:
        abstract = True


class ActorFieldsMixin(models.Model):
    """
    Adds created_by / updated_by actor identifiers. Stored as opaque
    strings: the acting identity comes from the session collaborator and
    must survive the user row being removed.
    """

    created_by = models.CharField(_('created by'), max_length=64, blank=True, default='')
    updated_by = models.CharField(_('updated by'), max_length=64, blank=True, default='')

    class Meta:
        abstract = True


class BaseModel(TimestampMixin):
    """UUID PK + timestamps."""

    id = models.UUIDField(
        primary_key=True, default=uuid.uuid4, editable=False,
    )

    class Meta:
        abstract = True


# ---------------------------------------------------------------------------
# Audit Log — immutable record of every write operation
# ---------------------------------------------------------------------------

class AuditLog(models.Model):
    """
    Immutable audit trail. One row per create / update / delete /
    lifecycle transition. Old and new values are kept as JSON for diffs.
    """

    class ActionChoices(models.TextChoices):
        CREATE = 'CREATE', _('Create')
        UPDATE = 'UPDATE', _('Update')
        DELETE = 'DELETE', _('Delete')
        STATUS_CHANGE = 'STATUS_CHANGE', _('Status Change')
        RETURN_PROCESS = 'RETURN_PROCESS', _('Return Process')
        BATCH_DELETE = 'BATCH_DELETE', _('Batch Delete')
        LOGIN = 'LOGIN', _('Login')
        LOGOUT = 'LOGOUT', _('Logout')
        LOGIN_FAILED = 'LOGIN_FAILED', _('Login Failed')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='audit_logs',
        verbose_name=_('actor'),
    )
    actor_ref = models.CharField(_('actor reference'), max_length=64, blank=True, default='', db_index=True)
    action = models.CharField(
        _('action'), max_length=20,
        choices=ActionChoices.choices, db_index=True,
    )
    model_name = models.CharField(_('model'), max_length=100, db_index=True)
    object_id = models.CharField(_('object ID'), max_length=40, db_index=True)

    old_values = models.JSONField(_('old values'), null=True, blank=True)
    new_values = models.JSONField(_('new values'), null=True, blank=True)

    ip_address = models.GenericIPAddressField(_('IP address'), null=True, blank=True)
    user_agent = models.TextField(_('user agent'), blank=True, default='')

    timestamp = models.DateTimeField(_('timestamp'), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _('audit log')
        verbose_name_plural = _('audit logs')
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['model_name', 'object_id'], name='core_auditl_model_n_4c0d2e_idx'),
            models.Index(fields=['actor_ref', 'timestamp'], name='core_auditl_actor_r_8e1f3a_idx'),
            models.Index(fields=['action', 'timestamp'], name='core_auditl_action_2b7c9d_idx'),
        ]

    def __str__(self):
        return f'{self.action} {self.model_name}:{self.object_id} by {self.actor_ref or self.actor_id}'
