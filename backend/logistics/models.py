from django.db import models
from django.conf import settings

from orders.models import Order as OrderRecord, OrderStatus, Restaurant as RestaurantRecord
from routing.geo import coordinate_or_none


class Restaurant(models.Model):
    """
    The pickup point for orders.
    Owner is the User who manages this restaurant.
    Coordinates stay NULL until the owner sets them; dispatch refuses to guess.
    """
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='restaurants'
    )
    name = models.CharField(max_length=255)
    address_text = models.TextField(blank=True)

    # Geolocation the assignment radius is measured from
    lat = models.FloatField(blank=True, null=True)
    lng = models.FloatField(blank=True, null=True)

    is_open = models.BooleanField(default=True)

    def to_domain(self) -> RestaurantRecord:
        return RestaurantRecord(id=self.pk, name=self.name, location=coordinate_or_none(self.lat, self.lng))

    def __str__(self):
        return self.name


class Order(models.Model):
    """
    Central model for the ordering workflow.
    Tracks lifecycle: Pending -> Confirmed (agent assigned) -> Picked -> Delivered.
    """
    class Status(models.TextChoices):
        PENDING = OrderStatus.PENDING.value, "Pending"
        CONFIRMED = OrderStatus.CONFIRMED.value, "Confirmed"
        PICKED = OrderStatus.PICKED.value, "Picked"
        DELIVERED = OrderStatus.DELIVERED.value, "Delivered"
        CANCELLED = OrderStatus.CANCELLED.value, "Cancelled"

    # Relationships
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    restaurant = models.ForeignKey(
        Restaurant, on_delete=models.SET_NULL, null=True, blank=True, related_name='orders'
    )
    # Agent is set only by the dispatch core's conditional update
    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='deliveries'
    )

    # For MVP, storing items as JSON to avoid complexity of OrderItem model.
    # Structure: [{"item_id": 1, "quantity": 2, "price": 10.00}]
    items = models.JSONField(default=list, blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    delivery_address = models.TextField(blank=True)
    # Coordinates where the agent needs to go
    delivery_lat = models.FloatField(blank=True, null=True)
    delivery_lng = models.FloatField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def to_domain(self) -> OrderRecord:
        return OrderRecord(
            id=self.pk,
            restaurant_id=self.restaurant_id,
            destination=coordinate_or_none(self.delivery_lat, self.delivery_lng),
            status=OrderStatus(self.status),
            agent_id=self.agent_id,
        )

    def __str__(self):
        return f"Order #{self.id} - {self.status}"
