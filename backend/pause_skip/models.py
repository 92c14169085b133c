import uuid
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _


class RequestStatus(models.TextChoices):
    """Status of a customer request"""
    PENDING = 'PENDING', _('Pending')
    APPROVED = 'APPROVED', _('Approved')
    DECLINED = 'DECLINED', _('Declined')
    WITHDRAWN = 'WITHDRAWN', _('Withdrawn by customer')


class RequestType(models.TextChoices):
    PAUSE = 'PAUSE', _('Pause')
    SKIP = 'SKIP', _('Skip')
    WITHDRAW_PAUSE = 'WITHDRAW_PAUSE', _('Withdraw Pause')


DECISION_STATUSES = (RequestStatus.APPROVED, RequestStatus.DECLINED)


class CustomerRequest(models.Model):
    """
    Fields shared by every request in the ledger.

    A request is decided exactly once: the status leaves PENDING through a
    conditional update and is never edited afterwards.
    """

    request_type = None

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='+',
    )
    status = models.CharField(
        max_length=20,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING,
        db_index=True,
    )
    reason = models.TextField(blank=True, default='')
    admin_note = models.TextField(blank=True, default='')
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    decided_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class PauseRequest(CustomerRequest):
    """Customer asks to suspend deliveries for an inclusive date range."""

    request_type = RequestType.PAUSE

    subscription = models.ForeignKey(
        'subscriptions.Subscription',
        on_delete=models.CASCADE,
        related_name='pause_requests',
    )
    pause_start_date = models.DateField()
    pause_end_date = models.DateField()

    class Meta(CustomerRequest.Meta):
        constraints = [
            models.CheckConstraint(
                condition=models.Q(pause_end_date__gte=models.F('pause_start_date')),
                name='pause_end_on_or_after_start',
            ),
        ]
        indexes = [
            models.Index(fields=['subscription', 'status']),
        ]

    def __str__(self):
        return f"Pause {self.pause_start_date}..{self.pause_end_date} ({self.status})"


class SkipRequest(CustomerRequest):
    """Customer asks to skip a single same-day delivery."""

    request_type = RequestType.SKIP

    delivery = models.ForeignKey(
        'deliveries.Delivery',
        on_delete=models.CASCADE,
        related_name='skip_requests',
    )
    subscription = models.ForeignKey(
        'subscriptions.Subscription',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='skip_requests',
    )

    class Meta(CustomerRequest.Meta):
        indexes = [
            models.Index(fields=['delivery', 'status']),
        ]

    def __str__(self):
        return f"Skip {self.delivery_id} ({self.status})"


class WithdrawPauseRequest(CustomerRequest):
    """
    Customer asks to cancel an approved pause.

    The linked pause row is never modified; an approved withdraw removes the
    pause from the effective ranges at read time.
    """

    request_type = RequestType.WITHDRAW_PAUSE

    pause_request = models.ForeignKey(
        PauseRequest,
        on_delete=models.CASCADE,
        related_name='withdraw_requests',
    )
    subscription = models.ForeignKey(
        'subscriptions.Subscription',
        on_delete=models.CASCADE,
        related_name='withdraw_requests',
    )

    class Meta(CustomerRequest.Meta):
        indexes = [
            models.Index(fields=['pause_request', 'status']),
        ]

    def __str__(self):
        return f"Withdraw {self.pause_request_id} ({self.status})"
