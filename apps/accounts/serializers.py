from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    managed_enterprises = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ["id", "email", "full_name", "is_staff", "managed_enterprises"]
        read_only_fields = fields

    def get_managed_enterprises(self, obj):
        return [str(pk) for pk in obj.enterprises.values_list("id", flat=True)]
