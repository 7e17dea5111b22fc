from django.db import models


class AuditEvent(models.Model):
    """An action taken through the gateway.

    Users live in the clinic backend, so the actor is stored by value
    rather than as a foreign key.
    """
    user_id = models.IntegerField(blank=True, null=True)
    user_name = models.CharField(max_length=150, blank=True, default='')
    role = models.CharField(max_length=32, blank=True, default='')
    clinic_id = models.IntegerField(blank=True, null=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['action', 'created_at'], name='portal_audi_action_5c1e0f_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='portal_audi_object__9a7d3b_idx'),
            models.Index(fields=['clinic_id', 'created_at'], name='portal_audi_clinic__e4b2a8_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.object_type or ''}#{self.object_id or ''} by {self.user_name or self.user_id}"
