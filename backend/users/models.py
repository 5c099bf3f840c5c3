from django.db import models
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.utils.translation import gettext_lazy as _
from .managers import CustomUserManager


class CustomUser(AbstractBaseUser, PermissionsMixin):
    """
    Account for both sides of a classroom.
    Uses email as the unique auth field; ``role`` decides which dashboard
    and which class operations the account can reach.
    """

    class Role(models.TextChoices):
        TEACHER = 'TEACHER', _('Teacher')
        STUDENT = 'STUDENT', _('Student')
        UNSET = 'UNSET', _('Unset')

    email = models.EmailField(
        _('email_address'),
        unique=True
    )

    username = models.CharField(
        _('username'),
        max_length=150,
        blank=False,
        unique=True,
        null=True
    )

    first_name = models.CharField(_('firstname'), max_length=150, blank=True)
    last_name = models.CharField(_('lastname'), max_length=150, blank=True)

    role = models.CharField(
        _('role'),
        max_length=10,
        choices=Role.choices,
        default=Role.UNSET,
        help_text=_('Teachers own classes; students join them and own tasks.'),
    )

    is_staff = models.BooleanField(
        _('staff status'),
        default=False,
        help_text=_('Designates whether the user can log into this admin site.'),
    )
    is_active = models.BooleanField(
        _('active'),
        default=True,
        help_text=_(
            'Designates whether this user should be treated as active. '
            'Unselect this instead of deleting accounts.'
        ),
    )
    date_joined = models.DateTimeField(_('date joined'), auto_now_add=True)

    timezone = models.CharField(
        _('Timezone'),
        max_length=60,
        default='UTC',
        help_text=_('IANA name. Sets the calendar day used for pulse buckets and the overdue cutoff.'),
    )

    # ------------------ Model Configuration ------------------
    objects = CustomUserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')

    @property
    def is_teacher(self):
        return self.role == self.Role.TEACHER

    @property
    def is_student(self):
        return self.role == self.Role.STUDENT

    def get_full_name(self):
        """Returns the first_name plus the last_name, with a space in between."""
        return f'{self.first_name} {self.last_name}'.strip()

    def get_short_name(self):
        return self.first_name

    def __str__(self):
        return self.email
