from django.contrib.auth.models import AbstractUser
from django.db import models
from phonenumber_field.modelfields import PhoneNumberField

from agents.models import Agent, AgentStatus
from routing.geo import coordinate_or_none


class User(AbstractUser):
    class Roles(models.TextChoices):
        CUSTOMER = "CUSTOMER", "Customer"
        DELIVERY_AGENT = "DELIVERY_AGENT", "Delivery Agent"
        RESTAURANT_OWNER = "RESTAURANT_OWNER", "Restaurant Owner"
        ADMIN = "ADMIN", "Admin"

    # Role fields define permissions in the app
    # CUSTOMER: Can place orders and track them
    # DELIVERY_AGENT: Reports live location, receives assignments once approved
    # RESTAURANT_OWNER: Can manage restaurants and menus
    # ADMIN: Approves agents, assigns orders
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.CUSTOMER)

    # Using PhoneNumberField to automaticallly validate Indian numbers (+91...)
    phone_number = PhoneNumberField(blank=True, null=True, unique=True, region="IN")

    # Agent specific fields (could be in a separate Profile model, but putting here for MVP simplicity)
    # agent_status: set by admin approval; only Active agents are dispatched to
    agent_status = models.CharField(
        max_length=20,
        choices=[(status.value, status.value) for status in AgentStatus],
        default=AgentStatus.PENDING.value,
    )
    # Last persisted position. Live pings go to the in-memory location store, not here.
    lat = models.FloatField(blank=True, null=True)
    lng = models.FloatField(blank=True, null=True)
    # vehicle_type: e.g., 'Bike', 'Scooter'
    vehicle_type = models.CharField(max_length=50, blank=True, null=True)

    @property
    def is_delivery_agent(self):
        return self.role == self.Roles.DELIVERY_AGENT

    def to_agent(self) -> Agent:
        return Agent(
            id=self.pk,
            status=AgentStatus(self.agent_status),
            location=coordinate_or_none(self.lat, self.lng),
            name=self.get_full_name() or self.username,
        )

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
