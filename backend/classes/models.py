import secrets
import string

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

JOIN_CODE_LENGTH = 6
JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


def generate_join_code(length=JOIN_CODE_LENGTH):
    return ''.join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


class Classroom(models.Model):
    """
    A named cohort. Teachers own it, students join it with a short code.
    Membership is append-only: there is no leave or removal flow.
    """
    name = models.CharField(max_length=255, verbose_name=_("name"))

    code = models.CharField(
        max_length=JOIN_CODE_LENGTH,
        unique=True,
        editable=False,
        verbose_name=_("join code"),
        help_text=_("Human-readable code students use to join."),
    )

    teachers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='taught_classes',
        verbose_name=_("teachers"),
    )

    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='enrolled_classes',
        blank=True,
        verbose_name=_("students"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        verbose_name = _("Class")
        verbose_name_plural = _("Classes")
        ordering = ['name', 'created_at']

    def __str__(self):
        return f"{self.name} ({self.code})"

    def save(self, *args, **kwargs):
        if not self.code:
            self.code = self._unique_code()
        super().save(*args, **kwargs)

    @classmethod
    def _unique_code(cls):
        # Codes are short, so collisions are possible; draw again until free.
        for _attempt in range(MAX_CODE_ATTEMPTS):
            code = generate_join_code()
            if not cls.objects.filter(code=code).exists():
                return code
        raise RuntimeError("Could not allocate a unique class join code.")
