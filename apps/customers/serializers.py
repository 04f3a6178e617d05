from rest_framework import serializers

from .models import Address


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id",
            "firstname",
            "lastname",
            "address1",
            "address2",
            "city",
            "zipcode",
            "phone",
            "state_name",
            "country_code",
        ]
        read_only_fields = ["id"]
        extra_kwargs = {
            "firstname": {"required": True, "allow_blank": False},
            "lastname": {"required": True, "allow_blank": False},
        }
