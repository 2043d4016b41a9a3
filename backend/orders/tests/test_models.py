from decimal import Decimal

import pytest

from shipping.dataclasses import PAYMENT_CC_ON_DOOR

from ..models import Customer, Order

pytestmark = pytest.mark.django_db


def test_order_input_carries_customer_address():
    customer = Customer.objects.create(
        name="Mehmet", phone="05321234567", city="Ankara", district="Cankaya", address="Ataturk Blv. 5",
    )
    order = Order.objects.create(
        order_number="ORD-42", customer=customer, payment_method=PAYMENT_CC_ON_DOOR,
        total_amount=Decimal("129.90"), product_name="Lamp", variant_selection="Black", is_rural=True,
    )
    data = order.to_input()
    assert data.order_number == "ORD-42"
    assert data.customer_name == "Mehmet"
    assert (data.city, data.district) == ("Ankara", "Cankaya")
    assert data.total_amount == Decimal("129.90")
    assert data.is_rural is True
