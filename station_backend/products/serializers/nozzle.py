# products/serializers/nozzle.py

from rest_framework import serializers

from products.models import Nozzle


class NozzleSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = Nozzle
        fields = [
            "id",
            "nozzle_number",
            "pump_number",
            "side",
            "product",
            "product_name",
            "initial_reading",
            "current_reading",
            "is_active",
            "version",
            "created_at",
        ]
        read_only_fields = ("id", "current_reading", "version", "created_at")

    def validate(self, attrs):
        product = attrs.get("product")
        if product is not None and not product.is_fuel:
            raise serializers.ValidationError({"product": "Nozzles dispense fuel products only"})

        if self.instance is not None and "initial_reading" in attrs:
            if attrs["initial_reading"] != self.instance.initial_reading:
                raise serializers.ValidationError(
                    {"initial_reading": "Cannot be changed after creation"}
                )
        return attrs

    def update(self, instance, validated_data):
        # current_reading is advanced by nozzle sales only.
        fields = [f for f in validated_data if f not in ("current_reading", "version")]
        for field in fields:
            setattr(instance, field, validated_data[field])
        if fields:
            instance.full_clean()
            instance.save(update_fields=fields)
        return instance
