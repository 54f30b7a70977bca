"""
User model for the project portfolio backend.

Fields: id, username, email, full_name, alias, role, hourly_rate, is_active,
created_at, updated_at. Username and email unique. Role choices admin,
manager, member, viewer.
"""

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager
from django.db import models
from django.core.validators import MinValueValidator, RegexValidator

from . import services


class UserRole(models.TextChoices):
    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


class UserManager(BaseUserManager):
    """Custom user manager."""

    def create_user(
        self, username, email=None, password=None, role=UserRole.MEMBER, **extra_fields
    ):
        return services.create_user(
            user_model=self.model,
            username=username,
            email=self.normalize_email(email) if email else None,
            password=password,
            role=role,
            using=self._db,
            **extra_fields,
        )

    def create_superuser(self, username, email=None, password=None, **extra_fields):
        return services.create_superuser(
            user_model=self.model,
            username=username,
            email=self.normalize_email(email) if email else None,
            password=password,
            using=self._db,
            **extra_fields,
        )


class User(AbstractBaseUser):
    """Portfolio user. Authentication happens upstream; role drives access."""

    username = models.CharField(
        max_length=100,
        unique=True,
        validators=[
            RegexValidator(
                regex=r"^[\w.@+-]+$",
                message=(
                    "Username may contain only letters, numbers, and @/./+/-/_ "
                    "characters."
                ),
            )
        ],
    )
    email = models.EmailField(max_length=255, unique=True)
    full_name = models.CharField(max_length=200, blank=True, default="")
    alias = models.CharField(max_length=100, blank=True, default="")
    role = models.CharField(
        max_length=20, choices=UserRole.choices, default=UserRole.MEMBER
    )
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "username"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["email"]

    objects = UserManager()

    class Meta:
        db_table = "users"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(role__in=["admin", "manager", "member", "viewer"]),
                name="valid_user_role",
            )
        ]

    def __str__(self):
        return self.username

    @property
    def display_name(self):
        return services.display_name_for(user=self)
