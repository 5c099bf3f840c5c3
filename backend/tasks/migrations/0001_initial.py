from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('classes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Task',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('INSTITUTIONAL', 'Institutional'), ('PERSONAL', 'Personal')], default='PERSONAL', max_length=16, verbose_name='kind')),
                ('title', models.CharField(max_length=255, verbose_name='title')),
                ('description', models.TextField(blank=True, verbose_name='description')),
                ('due_date', models.DateField(blank=True, null=True, verbose_name='due date')),
                ('stress_score', models.PositiveSmallIntegerField(default=50, help_text='Cognitive load 0-100, assigned once when the task is scored.', validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name='stress score')),
                ('stress_justification', models.TextField(blank=True, verbose_name='stress justification')),
                ('estimated_hours', models.FloatField(blank=True, null=True, verbose_name='estimated hours')),
                ('is_scored', models.BooleanField(default=False, help_text='Set once the stress score has been assigned.', verbose_name='is scored')),
                ('celery_task_id', models.CharField(blank=True, help_text='The ID of the background process handling stress scoring.', max_length=255, null=True)),
                ('include_in_pulse', models.BooleanField(default=True, help_text='Counts toward aggregate load. Always on for institutional tasks.', verbose_name='include in pulse')),
                ('is_private', models.BooleanField(default=False, verbose_name='is private')),
                ('is_completed', models.BooleanField(default=False, verbose_name='is completed')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
                ('classroom', models.ForeignKey(blank=True, help_text='Required for institutional tasks.', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='classes.classroom', verbose_name='class')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to=settings.AUTH_USER_MODEL, verbose_name='owner')),
            ],
            options={
                'verbose_name': 'Task',
                'verbose_name_plural': 'Tasks',
                'ordering': ['is_completed', 'due_date', 'created_at'],
            },
        ),
    ]
