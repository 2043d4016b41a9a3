from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .services.utils import ZERO, json_number

# Payment methods an order can carry
PAYMENT_COD = "COD"
PAYMENT_CC_ON_DOOR = "CC_ON_DOOR"
PAYMENT_WIRE = "WIRE"
PAYMENT_ONLINE = "ONLINE"
PAYMENT_METHODS = (PAYMENT_COD, PAYMENT_CC_ON_DOOR, PAYMENT_WIRE, PAYMENT_ONLINE)

COMPANY_DIRECT = "DIRECT"
COMPANY_AGGREGATOR = "AGGREGATOR"

# Internal shipment lifecycle
STATUS_PREPARING = "PREPARING"
STATUS_SHIPPED = "SHIPPED"
STATUS_DELIVERED = "DELIVERED"
STATUS_RETURNED = "RETURNED"
STATUS_CANCELLED = "CANCELLED"
TERMINAL_STATUSES = frozenset({STATUS_DELIVERED, STATUS_RETURNED, STATUS_CANCELLED})


@dataclass(frozen=True)
class DesiRange:
    max_desi: Decimal
    price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"maxDesi": json_number(self.max_desi), "price": json_number(self.price)}


@dataclass(frozen=True)
class CodRange:
    min: Decimal
    max: Optional[Decimal]  # None = unbounded
    price: Decimal

    def covers(self, amount: Decimal) -> bool:
        return self.min <= amount and (self.max is None or amount <= self.max)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min": json_number(self.min),
            "max": None if self.max is None else json_number(self.max),
            "price": json_number(self.price),
        }


@dataclass(frozen=True)
class RateTable:
    """Pricing and capabilities of one sub-carrier. Build through rate_table.build_rate_table."""
    code: str
    name: str
    branch_code: str = ""
    is_active: bool = True
    is_cash_on_door_available: bool = False
    is_card_on_door_available: bool = False
    fixed_price: Decimal = ZERO
    return_price: Decimal = ZERO
    card_commission: Decimal = ZERO
    desi_ranges: Tuple[DesiRange, ...] = ()
    cod_ranges: Tuple[CodRange, ...] = ()
    # Only legacy DIRECT pricing rules carry a service fee
    service_fee: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "branch_code": self.branch_code,
            "is_active": self.is_active,
            "is_cash_on_door_available": self.is_cash_on_door_available,
            "is_card_on_door_available": self.is_card_on_door_available,
            "fixed_price": json_number(self.fixed_price),
            "return_price": json_number(self.return_price),
            "card_commission": json_number(self.card_commission),
            "desi_ranges": [r.to_dict() for r in self.desi_ranges],
            "cod_ranges": [r.to_dict() for r in self.cod_ranges],
        }


@dataclass(frozen=True)
class CarrierCompany:
    id: Optional[int]
    name: str
    code: str
    type: str
    is_active: bool = True
    is_default: bool = False
    handles_rural_addresses: bool = False
    sub_carriers: Tuple[RateTable, ...] = ()
    # Implicit rate tables read from legacy DIRECT pricing rules
    legacy_tables: Tuple[RateTable, ...] = ()

    @property
    def rate_tables(self) -> Tuple[RateTable, ...]:
        if self.sub_carriers:
            return self.sub_carriers
        if self.type == COMPANY_DIRECT:
            return self.legacy_tables
        return ()

    def find(self, code: str) -> Optional[RateTable]:
        for table in self.rate_tables:
            if table.code == code:
                return table
        return None


@dataclass(frozen=True)
class EligibleCarrier:
    company: CarrierCompany
    rate_table: RateTable


@dataclass(frozen=True)
class OrderInput:
    order_number: str
    payment_method: str
    total_amount: Decimal
    customer_name: str = ""
    phone: str = ""
    city: str = ""
    district: str = ""
    address: str = ""
    product_name: str = ""
    variant_selection: str = ""
    is_rural: bool = False


@dataclass(frozen=True)
class QuoteLine:
    code: str
    label: str
    amount: Decimal


@dataclass(frozen=True)
class Quote:
    total_cost: Decimal
    breakdown: Tuple[QuoteLine, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cost": str(self.total_cost),
            "breakdown": [
                {"code": ln.code, "label": ln.label, "amount": str(ln.amount)}
                for ln in self.breakdown
            ],
        }


@dataclass(frozen=True)
class SimulationResult:
    quote: Quote
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OperationalCost:
    quote: Quote
    revenue: Decimal
    profit: Decimal

    @property
    def is_loss(self) -> bool:
        return self.profit < ZERO


@dataclass(frozen=True)
class ConsignmentPayload:
    customer: str
    province_name: str
    county_name: str
    district: str
    address: str
    telephone: str
    branch_code: str
    consignment_type_id: int
    amount_type_id: int
    amount: str
    order_number: str
    quantity: int
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customer": self.customer,
            "province_name": self.province_name,
            "county_name": self.county_name,
            "district": self.district,
            "address": self.address,
            "telephone": self.telephone,
            "branch_code": self.branch_code,
            "consignment_type_id": self.consignment_type_id,
            "amount_type_id": self.amount_type_id,
            "amount": self.amount,
            "order_number": self.order_number,
            "quantity": self.quantity,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class StatusClassification:
    code: str
    lifecycle: str
    is_problematic: bool
    is_known: bool
    label: str = ""


@dataclass
class MovementEvent:
    description: str
    occurred_at: Optional[Any] = None


@dataclass
class TrackingUpdate:
    tracking_code: str
    status_code: str
    last_movement_at: Optional[Any] = None
    movements: List[MovementEvent] = field(default_factory=list)


@dataclass
class SubmissionResult:
    tracking_code: str
    attempts: int = 1
    record_id: Optional[str] = None
    message: str = ""
