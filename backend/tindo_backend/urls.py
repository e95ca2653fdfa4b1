from django.urls import path, include
from rest_framework.routers import DefaultRouter
from logistics.views import (
    ActiveLocationsView,
    AdminOrderViewSet,
    AgentAdminViewSet,
    AgentRouteView,
    LocationReportView,
)

router = DefaultRouter()
router.register(r'admin/orders', AdminOrderViewSet, basename='admin-order')
router.register(r'admin/delivery', AgentAdminViewSet, basename='admin-delivery')

urlpatterns = [
    path('api/v1/', include(router.urls)),
    path('api/v1/delivery/location/', LocationReportView.as_view(), name='delivery-location'),
    path('api/v1/delivery/active/', ActiveLocationsView.as_view(), name='delivery-active'),
    path('api/v1/agent-route/<int:agent_id>/', AgentRouteView.as_view(), name='agent-route'),
]
