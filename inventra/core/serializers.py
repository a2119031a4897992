from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import User, AuditLog
from .roles import Role


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'role', 'phone', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['role', 'is_active', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    role = serializers.ChoiceField(choices=Role.choices, required=False)

    class Meta:
        model = User
        fields = ['name', 'email', 'password', 'role', 'phone']
        extra_kwargs = {'name': {'required': True, 'allow_blank': False}}

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already registered")
        return value

    def validate_role(self, value):
        # Only an authenticated admin may hand out roles other than staff
        request = self.context.get('request')
        requester = getattr(request, 'user', None)
        if value != Role.STAFF and not (requester and requester.is_authenticated and requester.role == Role.ADMIN):
            raise serializers.ValidationError("Only an admin can assign this role")
        return value

    def create(self, validated_data):
        password = validated_data.pop('password')
        validated_data.setdefault('role', Role.STAFF)
        user = User(username=validated_data['email'], is_active=True, **validated_data)
        user.set_password(password)
        user.save()
        return user


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']
