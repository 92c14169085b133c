from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _


class User(AbstractUser):
    class Role(models.TextChoices):
        OWNER = "OWNER", _("Owner")
        ADMIN = "ADMIN", _("Admin")
        KITCHEN = "KITCHEN", _("Kitchen")
        CUSTOMER = "CUSTOMER", _("Customer")

    email = models.EmailField(_("email address"), unique=True)
    phone_number = models.CharField(
        _("phone number"), max_length=20, blank=True, null=True
    )
    role = models.CharField(
        _("role"), max_length=50, choices=Role.choices, default=Role.CUSTOMER
    )
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["role"]),
        ]

    def __str__(self):
        return self.email or self.username

    @property
    def is_admin_role(self):
        return self.role in (self.Role.OWNER, self.Role.ADMIN)

    @property
    def is_staff_role(self):
        """Owners, admins and kitchen staff see every customer's data."""
        return self.role in (self.Role.OWNER, self.Role.ADMIN, self.Role.KITCHEN)
