from django.apps import AppConfig


class OrdersConfig(AppConfig):
    name = "modules.orders"
    label = "orders"
    verbose_name = "Orders"

    def ready(self) -> None:
        # Handlers log lifecycle transitions; subscribing twice is a no-op.
        from modules.orders.handlers import SUBSCRIPTIONS
        from shared.infrastructure.bus import event_bus

        for event_class, handler in SUBSCRIPTIONS:
            event_bus.subscribe(event_class, handler)
