from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Classroom',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, verbose_name='name')),
                ('code', models.CharField(editable=False, help_text='Human-readable code students use to join.', max_length=6, unique=True, verbose_name='join code')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='created at')),
                ('students', models.ManyToManyField(blank=True, related_name='enrolled_classes', to=settings.AUTH_USER_MODEL, verbose_name='students')),
                ('teachers', models.ManyToManyField(related_name='taught_classes', to=settings.AUTH_USER_MODEL, verbose_name='teachers')),
            ],
            options={
                'verbose_name': 'Class',
                'verbose_name_plural': 'Classes',
                'ordering': ['name', 'created_at'],
            },
        ),
    ]
