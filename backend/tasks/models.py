from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from .pulse_engine.records import NEUTRAL_STRESS_SCORE, TaskKind


class Task(models.Model):
    """
    One unit of academic work owned by exactly one student.

    Institutional tasks come from a class assignment and are fanned out to
    one record per enrolled student; personal tasks are self-authored.
    """

    class Kind(models.TextChoices):
        INSTITUTIONAL = TaskKind.INSTITUTIONAL.value, _('Institutional')
        PERSONAL = TaskKind.PERSONAL.value, _('Personal')

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tasks',
        verbose_name=_("owner")
    )

    classroom = models.ForeignKey(
        'classes.Classroom',
        on_delete=models.CASCADE,
        null=True, blank=True,
        related_name='tasks',
        verbose_name=_("class"),
        help_text=_("Required for institutional tasks.")
    )

    kind = models.CharField(
        max_length=16,
        choices=Kind.choices,
        default=Kind.PERSONAL,
        verbose_name=_("kind")
    )

    title = models.CharField(max_length=255, verbose_name=_("title"))
    description = models.TextField(blank=True, verbose_name=_("description"))

    due_date = models.DateField(
        null=True, blank=True,
        verbose_name=_("due date"),
    )

    stress_score = models.PositiveSmallIntegerField(
        default=NEUTRAL_STRESS_SCORE,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name=_("stress score"),
        help_text=_("Cognitive load 0-100, assigned once when the task is scored.")
    )
    stress_justification = models.TextField(blank=True, verbose_name=_("stress justification"))
    estimated_hours = models.FloatField(null=True, blank=True, verbose_name=_("estimated hours"))
    is_scored = models.BooleanField(
        default=False,
        verbose_name=_("is scored"),
        help_text=_("Set once the stress score has been assigned.")
    )
    celery_task_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text=_("The ID of the background process handling stress scoring.")
    )

    include_in_pulse = models.BooleanField(
        default=True,
        verbose_name=_("include in pulse"),
        help_text=_("Counts toward aggregate load. Always on for institutional tasks.")
    )
    is_private = models.BooleanField(default=False, verbose_name=_("is private"))
    is_completed = models.BooleanField(default=False, verbose_name=_("is completed"))

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    class Meta:
        verbose_name = _("Task")
        verbose_name_plural = _("Tasks")
        # Active tasks first, then by earliest due date
        ordering = ['is_completed', 'due_date', 'created_at']

    def __str__(self):
        return f"Task for {self.owner.email}: {self.title}"

    @property
    def is_institutional(self):
        return self.kind == self.Kind.INSTITUTIONAL

    def clean(self):
        if self.is_institutional and self.classroom_id is None:
            raise ValidationError({"classroom": _("Institutional tasks must reference a class.")})
        if self.is_institutional and self.is_private:
            raise ValidationError({"is_private": _("Institutional tasks cannot be private.")})

    def save(self, *args, **kwargs):
        """Enforces the model invariants on every full save."""
        if self.is_institutional:
            self.include_in_pulse = True
        self.full_clean()
        super().save(*args, **kwargs)
