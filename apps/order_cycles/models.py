from django.db import models
from django.utils import timezone

from apps.utils.models import TimestampedModel


class OrderCycleQuerySet(models.QuerySet):
    def open(self):
        now = timezone.now()
        return self.filter(orders_open_at__lte=now).filter(
            models.Q(orders_close_at__isnull=True) | models.Q(orders_close_at__gt=now)
        )

    def distributed_by(self, distributor):
        return self.filter(distributors=distributor)


class OrderCycle(TimestampedModel):
    """
    Time-boxed window in which hubs accept orders for later fulfilment.
    """
    name = models.CharField(max_length=255)
    coordinator = models.ForeignKey(
        "enterprises.Enterprise",
        on_delete=models.PROTECT,
        related_name="coordinated_order_cycles",
    )
    orders_open_at = models.DateTimeField(null=True, blank=True)
    orders_close_at = models.DateTimeField(null=True, blank=True)

    distributors = models.ManyToManyField(
        "enterprises.Enterprise",
        blank=True,
        related_name="distributed_order_cycles",
    )
    variants = models.ManyToManyField(
        "catalog.Variant",
        blank=True,
        related_name="order_cycles",
    )

    objects = OrderCycleQuerySet.as_manager()

    class Meta:
        db_table = "order_cycles"
        ordering = ["-orders_close_at"]

    def __str__(self):
        return self.name

    def is_open(self, now=None) -> bool:
        now = now or timezone.now()
        if self.orders_open_at is None or self.orders_open_at > now:
            return False
        return self.orders_close_at is None or self.orders_close_at > now

    def is_closed(self, now=None) -> bool:
        now = now or timezone.now()
        return self.orders_close_at is not None and self.orders_close_at <= now

    def distributes(self, distributor) -> bool:
        return self.distributors.filter(pk=distributor.pk).exists()

    def distributed_variant_ids(self, distributor):
        if distributor is None or not self.distributes(distributor):
            return set()
        return set(self.variants.values_list("id", flat=True))

    def distributes_order_variants(self, order) -> bool:
        """
        True when every variant in the order is still on offer in this
        cycle at the order's hub.
        """
        variant_ids = set(order.line_items.values_list("variant_id", flat=True))
        return variant_ids <= self.distributed_variant_ids(order.distributor)
