from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()

# UNSET is only a placeholder for accounts created outside registration.
REGISTRATION_ROLES = (User.Role.TEACHER, User.Role.STUDENT)


class UserRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password]
    )
    password2 = serializers.CharField(write_only=True, required=True)
    role = serializers.ChoiceField(
        choices=[(role.value, role.label) for role in REGISTRATION_ROLES],
        default=User.Role.STUDENT,
    )

    class Meta:
        model = User
        fields = (
            'email',
            'username',
            'password',
            'password2',
            'first_name',
            'last_name',
            'role',
            'timezone',
        )
        extra_kwargs = {
            'email': {'required': True},
            'username': {'required': True},
        }

    def validate_timezone(self, value):
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise serializers.ValidationError(f"Unknown timezone: {value!r}.")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password2']:
            raise serializers.ValidationError({"password": "Password fields didn't match."})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password2')
        password = validated_data.pop('password')
        email = validated_data.pop('email')
        return User.objects.create_user(email=email, password=password, **validated_data)


class UserDetailsSerializer(serializers.ModelSerializer):
    """Profile plus the ids of the classes the user teaches or attends."""

    class_ids = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            'id',
            'email',
            'username',
            'first_name',
            'last_name',
            'role',
            'timezone',
            'class_ids',
        )
        read_only_fields = fields

    def get_class_ids(self, obj):
        classes = obj.taught_classes if obj.is_teacher else obj.enrolled_classes
        return list(classes.values_list('id', flat=True))


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Logs in with 'email' and puts the role in the token so the client can
    pick the teacher or student dashboard without another request.
    """
    username_field = 'email'

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['full_name'] = user.get_full_name()
        token['role'] = user.role
        return token
