from django.apps import AppConfig


class OrderCyclesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.order_cycles"
