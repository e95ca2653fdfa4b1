from rest_framework import serializers
from .models import Restaurant, Order


class RestaurantSerializer(serializers.ModelSerializer):
    class Meta:
        model = Restaurant
        fields = ['id', 'name', 'address_text', 'lat', 'lng', 'is_open']


class OrderSerializer(serializers.ModelSerializer):
    restaurant = RestaurantSerializer(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'customer', 'restaurant', 'agent', 'items', 'total_amount', 'status',
            'delivery_address', 'delivery_lat', 'delivery_lng', 'created_at', 'updated_at',
        ]
        # agent/status only ever change through the dispatch actions
        read_only_fields = fields


class LocationReportSerializer(serializers.Serializer):
    """
    Shape check only. Range and agent id validation happen in the hub so the
    REST and Socket.IO paths reject exactly the same reports.
    """
    agent_id = serializers.CharField(required=False)
    lat = serializers.FloatField()
    lng = serializers.FloatField()
