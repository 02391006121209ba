from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, UserRole, SavedAddress


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'phone', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name', 'phone']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']
        read_only_fields = ['updated_at']


class SettingValueSerializer(serializers.Serializer):
    """Body of an upsert-by-key request"""
    value = serializers.CharField(allow_blank=True, trim_whitespace=True)
    description = serializers.CharField(required=False, allow_blank=True)


class UserRoleSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    email = serializers.CharField(source='user.email', read_only=True)

    class Meta:
        model = UserRole
        fields = ['id', 'user', 'username', 'email', 'role', 'created_at']
        read_only_fields = ['user', 'created_at']


class StaffCreateSerializer(serializers.Serializer):
    """Promote an existing account to staff by email or username"""
    identifier = serializers.CharField(max_length=254)

    def validate_identifier(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Email or username is required')
        return value


class SavedAddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = SavedAddress
        fields = ['id', 'label', 'address', 'phone', 'pincode', 'state', 'country', 'is_default', 'created_at']
        read_only_fields = ['created_at']

    def validate(self, attrs):
        for field in ('address', 'phone', 'pincode'):
            if field in attrs and not str(attrs[field]).strip():
                raise serializers.ValidationError({field: 'This field may not be blank.'})
        return attrs
