from rest_framework import serializers


class OrderCycleChoiceSerializer(serializers.Serializer):
    distributor_id = serializers.UUIDField()
    order_cycle_id = serializers.UUIDField()


class CartPopulateSerializer(serializers.Serializer):
    """
    {"variants": {"<variant id>": <quantity>, ...}}; zero removes the line.
    """
    variants = serializers.DictField(child=serializers.IntegerField(min_value=0), allow_empty=False)

    def validate_variants(self, value):
        cleaned = {}
        for variant_id, quantity in value.items():
            try:
                cleaned[serializers.UUIDField().to_internal_value(variant_id)] = quantity
            except serializers.ValidationError:
                raise serializers.ValidationError(f"'{variant_id}' is not a valid variant id.")
        return cleaned
