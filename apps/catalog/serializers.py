from rest_framework import serializers

from .models import Variant


class VariantSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Variant
        fields = [
            "id",
            "product_name",
            "supplier_name",
            "full_name",
            "unit_description",
            "price",
            "on_hand",
            "on_demand",
        ]
