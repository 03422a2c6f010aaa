"""
Serializers for sign-up, login and profile representation.
"""
from rest_framework import serializers

from .models import Profile, Role

MIN_PASSWORD_LENGTH = 6


class ProfileSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source='user.email', read_only=True)
    capabilities = serializers.SerializerMethodField()

    class Meta:
        model = Profile
        fields = ['id', 'name', 'email', 'role', 'capabilities', 'home_path']
        read_only_fields = fields

    def get_capabilities(self, obj):
        return sorted(obj.capabilities)


class SignUpSerializer(serializers.Serializer):
    """
    Sign-up request. Password checks run before anything touches the database.
    """
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    password_confirm = serializers.CharField(write_only=True, trim_whitespace=False)
    name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=Role.choices, default=Role.POS)

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError("Passwords do not match")
        if len(attrs['password']) < MIN_PASSWORD_LENGTH:
            raise serializers.ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        attrs['email'] = attrs['email'].lower()
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)
