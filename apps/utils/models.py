# utils/models.py

"""
Base model for the tutoring-center system with a lightweight audit trail
and timezone-aware timestamp handling.

Key Features:
- UUID primary keys
- Timestamps taken in the center's operational timezone
- User and IP tracking from the thread-local request context
- Change reason tracking
"""

from django.db import models
import uuid
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# BASE MODEL
# =============================================================================

class BaseModel(models.Model):
    """
    Abstract base model with audit trail fields.

    Features:
    - Automatic user tracking (who created/updated)
    - Client IP tracking (where operations came from)
    - Change reason tracking (why changes were made)
    - Operational-timezone timestamps (when operations happened)

    The request context is populated by ``utils.middleware.AuditContextMiddleware``;
    records saved from management commands or the shell simply leave the
    user/IP fields empty.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    created_at = models.DateTimeField(
        "Created At",
        blank=True,
        editable=False,
        db_index=True,
        help_text="When this record was created (in the operational timezone)"
    )
    updated_at = models.DateTimeField(
        "Updated At",
        blank=True,
        editable=False,
        db_index=True,
        help_text="When this record was last updated (in the operational timezone)"
    )

    # CharField so that user ids never become cross-app foreign keys
    created_by_id = models.CharField(
        "Created By ID",
        max_length=50,
        null=True,
        blank=True,
        db_index=True,
        help_text="ID of user who created this record"
    )
    updated_by_id = models.CharField(
        "Updated By ID",
        max_length=50,
        null=True,
        blank=True,
        db_index=True,
        help_text="ID of user who last updated this record"
    )

    created_from_ip = models.GenericIPAddressField("Created From IP", null=True, blank=True)
    updated_from_ip = models.GenericIPAddressField("Updated From IP", null=True, blank=True)

    change_reason = models.CharField(
        "Change Reason",
        max_length=255,
        blank=True,
        null=True,
        help_text="Explanation for why this change was made"
    )

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        """
        Override save to:
        1. Set timestamps in the operational timezone
        2. Populate audit fields (created_by, updated_by, IPs) from the request context
        """
        from utils.context import get_request_context
        from core.utils import get_operational_now

        is_new = self._state.adding

        # =====================================================================
        # STEP 1: TIMESTAMPS
        # =====================================================================
        now = get_operational_now()
        if is_new:
            if not self.created_at:
                self.created_at = now
            if not self.updated_at:
                self.updated_at = now
        else:
            self.updated_at = now

        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {'updated_at'}

        # =====================================================================
        # STEP 2: AUDIT FIELDS FROM REQUEST CONTEXT
        # =====================================================================
        context = get_request_context()

        if context:
            user = context.get('user')
            ip_address = context.get('ip_address')

            if is_new:
                if user and not self.created_by_id:
                    self.created_by_id = str(user.pk)
                if ip_address and not self.created_from_ip:
                    self.created_from_ip = ip_address

            if user:
                self.updated_by_id = str(user.pk)
            if ip_address:
                self.updated_from_ip = ip_address

            if update_fields is not None:
                kwargs['update_fields'] |= {'updated_by_id', 'updated_from_ip'}
        elif is_new:
            logger.debug(
                f"No request context available when creating {self.__class__.__name__}. "
                f"Audit fields will not be populated."
            )

        return super().save(*args, **kwargs)

    def get_audit_trail(self):
        """
        Get audit information for this record.

        Returns:
            dict: Audit trail information
        """
        return {
            'id': str(self.id),
            'created_at': self.created_at,
            'created_by_id': self.created_by_id,
            'created_from_ip': self.created_from_ip,
            'updated_at': self.updated_at,
            'updated_by_id': self.updated_by_id,
            'updated_from_ip': self.updated_from_ip,
            'last_change_reason': self.change_reason,
        }
