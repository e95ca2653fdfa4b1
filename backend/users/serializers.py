from rest_framework import serializers
from .models import User

class AgentSerializer(serializers.ModelSerializer):
    """
    Admin view of a delivery agent. Mirrors the columns the dashboard lists.
    """
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'phone_number', 'agent_status', 'lat', 'lng', 'vehicle_type']
        read_only_fields = fields
