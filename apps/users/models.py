from django.contrib.auth.models import AbstractUser
from django.db import models
# apps.users.models.py


class Role(models.TextChoices):
    ADMIN = 'admin', 'Admin'
    COACH = 'coach', 'Coach'
    CLIENT = 'client', 'Client'


class CustomUser(AbstractUser):
    email = models.EmailField(unique=True)
    user_type = models.CharField(max_length=20, choices=Role.choices, default=Role.CLIENT)

    fcm_token = models.CharField(
        max_length=255,
        blank=True,
        null=True,
        help_text="Firebase Cloud Messaging device token"
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def has_role(self, role):
        # Role() raises ValueError for unknown names
        return self.user_type == Role(role)

    @property
    def is_coach(self):
        return self.has_role(Role.COACH)

    @property
    def is_client(self):
        return self.has_role(Role.CLIENT)

    @property
    def is_admin(self):
        return self.has_role(Role.ADMIN)

    @property
    def display_name(self):
        return self.get_full_name() or self.username
