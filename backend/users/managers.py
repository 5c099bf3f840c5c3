from django.contrib.auth.base_user import BaseUserManager


class CustomUserManager(BaseUserManager):
    """
    Email-keyed user manager. Every account carries a role; the role decides
    whether it owns classes (teacher) or tasks (student).
    """

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The email must be set!')

        role = extra_fields.setdefault('role', self.model.Role.UNSET)
        if role not in self.model.Role.values:
            raise ValueError(f'Unknown role: {role!r}')

        # domain part lowercased so the same inbox cannot register twice
        email = self.normalize_email(email)

        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        """Superusers run the school, so they default to the teacher role."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', self.model.Role.TEACHER)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(email, password, **extra_fields)
