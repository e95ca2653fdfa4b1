from django.contrib.auth import get_user_model
from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from agents.models import AgentStatus
from tracking.route import build_agent_route
from users.serializers import AgentSerializer

from .models import Order
from .runtime import get_runtime
from .serializers import LocationReportSerializer, OrderSerializer


class AdminOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Admin dashboard view of orders.
    - List/Retrieve
    - assign: pick the nearest, least-loaded active agent (Pending -> Confirmed)
    - reassign: move a Confirmed order to a different agent
    Errors come back as {error, code} through logistics.exceptions.
    """
    queryset = Order.objects.select_related('restaurant').order_by('-created_at')
    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAdminUser]

    @action(detail=True, methods=['post'])
    def assign(self, request, pk=None):
        result = get_runtime().service.assign(pk)
        return Response({"message": "Agent assigned (nearest)", **result.to_dict()})

    @action(detail=True, methods=['post'])
    def reassign(self, request, pk=None):
        result = get_runtime().service.reassign(pk)
        return Response({
            "message": "Agent re-assigned (nearest)",
            "previous_agent_id": result.previous_agent_id,
            **result.to_dict(),
        })


class AgentAdminViewSet(viewsets.ViewSet):
    """
    Delivery agent moderation.
    By default only Active agents are listed; ?all=true lists everyone.
    """
    permission_classes = [permissions.IsAdminUser]

    def list(self, request):
        User = get_user_model()
        agents = User.objects.filter(role=User.Roles.DELIVERY_AGENT).order_by('id')
        if str(request.query_params.get('all', '')).lower() != 'true':
            agents = agents.filter(agent_status=AgentStatus.ACTIVE.value)
        return Response(AgentSerializer(agents, many=True).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        agent = get_runtime().moderation.approve(pk)
        return Response({"message": "Agent approved", "agent_id": agent.id, "status": agent.status.value})

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        agent = get_runtime().moderation.reject(pk)
        return Response({"message": "Agent rejected", "agent_id": agent.id, "status": agent.status.value})


class LocationReportView(APIView):
    """
    REST fallback for agents that cannot keep a socket open.
    agent_id defaults to the caller.
    """
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = LocationReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        agent_id = data.get('agent_id', request.user.pk)
        if str(agent_id) != str(request.user.pk) and not request.user.is_staff:
            return Response({"error": "Cannot report location for another agent"}, status=status.HTTP_403_FORBIDDEN)

        get_runtime().hub.report_location(agent_id, data['lat'], data['lng'])
        return Response({"success": True})


class ActiveLocationsView(APIView):
    """
    Fresh live positions for the dashboard map.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        snapshot = get_runtime().hub.snapshot(fresh_only=True)
        return Response([entry.to_wire(agent_id) for agent_id, entry in snapshot.items()])


class AgentRouteView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, agent_id):
        runtime = get_runtime()
        route = build_agent_route(runtime.store, runtime.location_store, agent_id)
        return Response(route.to_wire())
