"""
Account Models - user profiles and roles.

Every authenticated user has exactly one Profile carrying a display name and
a Role. Access decisions go through the role's capability set rather than
comparing role strings.
"""
from django.conf import settings
from django.db import models


class Role(models.TextChoices):
    ADMIN = 'admin', 'Administrator'
    POS = 'pos', 'POS Operator'


class Capability(models.TextChoices):
    VIEW_INVENTORY = 'view_inventory', 'View inventory'
    MANAGE_INVENTORY = 'manage_inventory', 'Manage inventory'
    PROCESS_SALES = 'process_sales', 'Process sales'
    VIEW_ORDERS = 'view_orders', 'View orders'
    VIEW_DASHBOARD = 'view_dashboard', 'View sales dashboard'


# Keyed and valued by the raw strings stored in the database
ROLE_CAPABILITIES = {
    Role.ADMIN.value: frozenset(c.value for c in Capability),
    Role.POS.value: frozenset({Capability.VIEW_INVENTORY.value, Capability.PROCESS_SALES.value}),
}


class Profile(models.Model):
    """
    Profile entity linked one-to-one with the auth user.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='profile',
        help_text="Authenticated user owning this profile"
    )
    name = models.CharField(
        max_length=150,
        help_text="Display name"
    )
    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.POS,
        db_index=True,
        help_text="Role deciding which capabilities the user holds"
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'profiles'
        verbose_name = 'Profile'
        verbose_name_plural = 'Profiles'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.get_role_display()})"

    @property
    def capabilities(self) -> frozenset:
        return ROLE_CAPABILITIES.get(str(self.role), frozenset())

    def has_capability(self, capability) -> bool:
        return getattr(capability, 'value', capability) in self.capabilities

    @property
    def home_path(self) -> str:
        """Landing page after login."""
        return '/dashboard' if self.has_capability(Capability.VIEW_DASHBOARD) else '/pos'
