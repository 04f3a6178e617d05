from rest_framework import serializers

from apps.customers.serializers import AddressSerializer

from .models import LineItem, Order


class LineItemSerializer(serializers.ModelSerializer):
    variant_id = serializers.UUIDField(source="variant.id", read_only=True)
    product_name = serializers.CharField(source="variant.product.name", read_only=True)
    variant_name = serializers.CharField(source="variant.full_name", read_only=True)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = LineItem
        fields = ("id", "variant_id", "product_name", "variant_name", "quantity", "price", "amount")


class OrderSerializer(serializers.ModelSerializer):
    line_items = LineItemSerializer(many=True, read_only=True)
    bill_address = AddressSerializer(read_only=True)
    ship_address = AddressSerializer(read_only=True)
    distributor = serializers.StringRelatedField()
    order_cycle = serializers.StringRelatedField()
    shipping_method = serializers.StringRelatedField()
    payment_method = serializers.StringRelatedField()

    class Meta:
        model = Order
        fields = (
            "number",
            "state",
            "email",
            "distributor",
            "order_cycle",
            "bill_address",
            "ship_address",
            "shipping_method",
            "payment_method",
            "shipment_state",
            "payment_state",
            "item_total",
            "shipment_total",
            "total",
            "completed_at",
            "special_instructions",
            "line_items",
        )
        read_only_fields = fields
