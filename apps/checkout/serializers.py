from rest_framework import serializers

from apps.customers.serializers import AddressSerializer


class DetailsSerializer(serializers.Serializer):
    """
    Details step. Expects the hub's shipping methods in
    context["shipping_methods"].
    """
    email = serializers.EmailField()
    bill_address = AddressSerializer()
    ship_address = AddressSerializer(required=False, allow_null=True)
    shipping_method_id = serializers.UUIDField()
    special_instructions = serializers.CharField(required=False, allow_blank=True, default="")
    save_bill_address = serializers.BooleanField(required=False, default=False)
    save_ship_address = serializers.BooleanField(required=False, default=False)

    def validate_shipping_method_id(self, value):
        methods = {method.pk: method for method in self.context.get("shipping_methods", ())}
        if value not in methods:
            raise serializers.ValidationError("Choose one of the hub's shipping methods.")
        return methods[value]

    def validate(self, attrs):
        shipping_method = attrs["shipping_method_id"]
        if shipping_method.requires_ship_address and not attrs.get("ship_address"):
            raise serializers.ValidationError({"ship_address": ["This field is required."]})
        if not shipping_method.requires_ship_address:
            attrs["ship_address"] = None
            attrs["save_ship_address"] = False
        attrs["shipping_method"] = attrs.pop("shipping_method_id")
        return attrs


class PaymentSerializer(serializers.Serializer):
    """
    Payment step. Expects the hub's active payment methods in
    context["payment_methods"].
    """
    payment_method_id = serializers.UUIDField()

    def validate_payment_method_id(self, value):
        methods = {method.pk: method for method in self.context.get("payment_methods", ())}
        if value not in methods:
            raise serializers.ValidationError("Choose one of the hub's payment methods.")
        return methods[value]
