"""Domain types for checkout intents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from services.commerce.errors import BuyerValidationError

# Wire names, in the order they are validated
REQUIRED_BUYER_FIELDS: tuple[str, ...] = (
    "firstName",
    "lastName",
    "email",
    "phone",
    "address1",
    "city",
    "province",
    "country",
    "postalCode",
)


class IntentState(str, Enum):
    """Remote checkout intent states."""

    CREATED = "created"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    PLACING_ORDER = "placing_order"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str | None) -> IntentState:
        """Parse a remote state; unknown pre-offer states count as created."""
        try:
            return cls(value)
        except ValueError:
            return cls.CREATED

    @property
    def is_terminal(self) -> bool:
        """Return True once the order is settled either way."""
        return self in {IntentState.COMPLETED, IntentState.FAILED}


@dataclass(frozen=True, slots=True)
class Buyer:
    """Shipping and contact details of the person placing the order."""

    first_name: str
    last_name: str
    email: str
    phone: str
    address1: str
    city: str
    province: str
    country: str
    postal_code: str
    address2: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Buyer:
        """
        Build a buyer from its camelCase wire form.

        Raises:
            BuyerValidationError: Naming the first missing required field.
        """
        values: dict[str, str] = {}
        for name in REQUIRED_BUYER_FIELDS:
            value = data.get(name)
            if value is None or not str(value).strip():
                raise BuyerValidationError(name)
            values[name] = str(value).strip()

        return cls(
            first_name=values["firstName"],
            last_name=values["lastName"],
            email=values["email"],
            phone=values["phone"],
            address1=values["address1"],
            city=values["city"],
            province=values["province"],
            country=values["country"],
            postal_code=values["postalCode"],
            address2=str(data.get("address2") or "").strip(),
        )

    def to_dict(self) -> dict[str, str]:
        """Serialize to the camelCase wire form."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address1": self.address1,
            "address2": self.address2,
            "city": self.city,
            "province": self.province,
            "country": self.country,
            "postalCode": self.postal_code,
        }


@dataclass(frozen=True, slots=True)
class Money:
    """An amount in integer subunits (e.g. cents)."""

    amount_subunits: int
    currency_code: str = "USD"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Money:
        """
        Parse ``{amountSubunits, currencyCode}``.

        Raises:
            ValueError: If the amount is missing or not an integer.
        """
        amount = data.get("amountSubunits")
        if amount is None:
            msg = "amountSubunits is required"
            raise ValueError(msg)
        return cls(amount_subunits=int(amount), currency_code=str(data.get("currencyCode", "USD")))

    def format(self) -> str:
        """Render for display, e.g. ``$12.34``."""
        whole, cents = divmod(self.amount_subunits, 100)
        if self.currency_code == "USD":
            return f"${whole:,}.{cents:02d}"
        return f"{whole:,}.{cents:02d} {self.currency_code}"


@dataclass(frozen=True, slots=True)
class ShippingOption:
    """One shipping choice offered for the order."""

    id: str
    label: str
    cost: Money | None = None


@dataclass(frozen=True, slots=True)
class Offer:
    """Pricing computed by the remote service for an intent."""

    subtotal: Money
    tax: Money
    total: Money
    shipping: Money | None = None
    shipping_options: tuple[ShippingOption, ...] = ()
    selected_shipping_option_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Offer:
        """
        Parse an offer document.

        Raises:
            ValueError: If a required amount is missing.
        """
        cost = data.get("cost") or {}
        try:
            subtotal = Money.from_dict(cost["subtotal"])
            tax = Money.from_dict(cost["tax"])
            total = Money.from_dict(cost["total"])
        except (KeyError, TypeError) as e:
            msg = f"Offer cost is incomplete: {e}"
            raise ValueError(msg) from e

        shipping_data = data.get("shipping") or {}
        options = tuple(
            ShippingOption(
                id=str(option.get("id", "")),
                label=str(option.get("label") or option.get("name") or option.get("id", "")),
                cost=Money.from_dict(option["cost"]) if option.get("cost") else None,
            )
            for option in shipping_data.get("availableOptions") or []
        )
        return cls(
            subtotal=subtotal,
            tax=tax,
            total=total,
            shipping=Money.from_dict(cost["shipping"]) if cost.get("shipping") else None,
            shipping_options=options,
            selected_shipping_option_id=shipping_data.get("selectedOptionId"),
        )


@dataclass(frozen=True, slots=True)
class CheckoutIntent:
    """
    Read-through copy of a remote checkout intent.

    Attributes:
        id: Remote identifier.
        state: Parsed state; ``status`` is accepted as an alias of ``state``.
        quantity: Units ordered.
        product_url: Product being bought.
        offer: Pricing, once the remote service computed it.
        failure_reason: Why the intent failed, when it did.
        raw: The document as received, returned unchanged by the API.
    """

    id: str
    state: IntentState
    quantity: int = 1
    product_url: str = ""
    offer: Offer | None = None
    created_at: str | None = None
    updated_at: str | None = None
    failure_reason: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_ready_for_payment(self) -> bool:
        """Return True once the offer is in and confirmation is awaited."""
        return self.state == IntentState.AWAITING_CONFIRMATION and self.offer is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckoutIntent:
        """
        Parse an intent document.

        Raises:
            ValueError: If the id is missing or the offer is malformed.
        """
        intent_id = data.get("id")
        if not intent_id:
            msg = "Checkout intent has no id"
            raise ValueError(msg)

        offer_data = data.get("offer")
        failure = data.get("failureReason")
        if isinstance(failure, dict):
            failure = failure.get("message") or failure.get("code")

        return cls(
            id=str(intent_id),
            state=IntentState.parse(data.get("state") or data.get("status")),
            quantity=int(data.get("quantity") or 1),
            product_url=str(data.get("productUrl") or ""),
            offer=Offer.from_dict(offer_data) if offer_data else None,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            failure_reason=failure,
            raw=data,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the intent as received from the remote service."""
        return dict(self.raw)
