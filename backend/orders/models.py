from django.db import models

from shipping.dataclasses import (
    OrderInput,
    PAYMENT_CC_ON_DOOR,
    PAYMENT_COD,
    PAYMENT_ONLINE,
    PAYMENT_WIRE,
)


class Customer(models.Model):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    city = models.CharField(max_length=100)
    district = models.CharField(max_length=100, blank=True)
    address = models.TextField()

    class Meta:
        db_table = 'customers'

    def __str__(self):
        return self.name


class Order(models.Model):
    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_COD, 'Cash on door'),
        (PAYMENT_CC_ON_DOOR, 'Card on door'),
        (PAYMENT_WIRE, 'Wire transfer'),
        (PAYMENT_ONLINE, 'Online'),
    ]

    order_number = models.CharField(max_length=64, unique=True)
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='orders')
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    product_name = models.CharField(max_length=255)
    variant_selection = models.CharField(max_length=255, blank=True)
    # delivery address only reachable by carriers that serve rural areas
    is_rural = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'orders'
        indexes = [
            models.Index(fields=['-created_at'], name='orders_created_idx'),
        ]

    def __str__(self):
        return self.order_number

    def to_input(self) -> OrderInput:
        c = self.customer
        return OrderInput(
            order_number=self.order_number,
            payment_method=self.payment_method,
            total_amount=self.total_amount,
            customer_name=c.name,
            phone=c.phone,
            city=c.city,
            district=c.district,
            address=c.address,
            product_name=self.product_name,
            variant_selection=self.variant_selection,
            is_rural=self.is_rural,
        )
