# frozen dataclass records plus their JSON (camelCase) wire shapes

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from utils.constants import DEFAULT_STOCK, GUEST_EMAIL, GUEST_NAME, GUEST_USER_ID


def _str_id(val) -> Optional[str]:
    if val is None or val == "":
        return None
    return str(val)


def _to_float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _to_int(val, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


# ---------------------------
# Identity
# ---------------------------


@dataclass(frozen=True)
class Authenticated:
    id: str
    username: str = ""
    email: str = ""
    role: str = "user"

    is_guest: ClassVar[bool] = False

    @property
    def display_name(self) -> str:
        return self.username or self.email or self.id

    def owns(self, item: "CartLineItem") -> bool:
        return item.user_id == self.id

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Authenticated":
        return cls(
            id=str(data["id"]),
            username=data.get("username") or data.get("name") or "",
            email=data.get("email") or "",
            role=data.get("role") or "user",
        )


@dataclass(frozen=True)
class Guest:
    is_guest: ClassVar[bool] = True

    id: ClassVar[None] = None
    username: ClassVar[str] = GUEST_NAME
    email: ClassVar[str] = GUEST_EMAIL
    role: ClassVar[None] = None

    @property
    def display_name(self) -> str:
        return GUEST_NAME

    def owns(self, item: "CartLineItem") -> bool:
        return item.user_id is None


GUEST = Guest()

Identity = Union[Authenticated, Guest]


# ---------------------------
# Catalog
# ---------------------------


@dataclass(frozen=True)
class Product:
    id: Optional[str]
    name: str
    price: float
    category: str = ""
    stock: Optional[int] = None
    original_price: Optional[float] = None
    image: str = ""
    rating: float = 0.0
    reviews: int = 0
    features: Tuple[str, ...] = ()
    description: str = ""

    @property
    def in_stock(self) -> bool:
        return self.stock is None or self.stock > 0

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Product":
        original = data.get("originalPrice")
        return cls(
            id=_str_id(data.get("id")),
            name=data.get("name") or data.get("title") or "",
            price=_to_float(data.get("price")),
            category=data.get("category") or "",
            stock=_to_int(data.get("stock")),
            original_price=None if original is None else _to_float(original),
            image=data.get("image") or "",
            rating=_to_float(data.get("rating")),
            reviews=_to_int(data.get("reviews"), 0),
            features=tuple(data.get("features") or ()),
            description=data.get("description") or "",
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "originalPrice": self.original_price,
            "image": self.image,
            "category": self.category,
            "stock": self.stock,
            "rating": self.rating,
            "reviews": self.reviews,
            "features": list(self.features),
            "description": self.description,
        }


# ---------------------------
# Cart
# ---------------------------


@dataclass(frozen=True)
class CartLineItem:
    """
    One product in one owner's cart.

    user_id is None for a guest line item; it is written as "guest" on the
    wire. remote_id is the remote store's record id, None until created there.
    """

    product_id: str
    user_id: Optional[str]
    product_name: str
    price: float
    quantity: int
    user_name: str = ""
    user_email: str = ""
    product_image: str = ""
    category: str = ""
    stock: int = DEFAULT_STOCK
    added_at: str = ""
    remote_id: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_json(self) -> Dict[str, Any]:
        data = {
            "productId": self.product_id,
            "userId": self.user_id if self.user_id is not None else GUEST_USER_ID,
            "userName": self.user_name,
            "userEmail": self.user_email,
            "productName": self.product_name,
            "productImage": self.product_image,
            "price": self.price,
            "quantity": self.quantity,
            "category": self.category,
            "stock": self.stock,
            "addedAt": self.added_at,
        }
        if self.remote_id is not None:
            data["id"] = self.remote_id
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "CartLineItem":
        user_id = _str_id(data.get("userId"))
        return cls(
            product_id=_str_id(data.get("productId")),
            user_id=None if user_id in (None, GUEST_USER_ID) else user_id,
            product_name=data.get("productName") or data.get("name") or "",
            price=_to_float(data.get("price")),
            quantity=_to_int(data.get("quantity"), 1),
            user_name=data.get("userName") or "",
            user_email=data.get("userEmail") or "",
            product_image=data.get("productImage") or data.get("image") or "",
            category=data.get("category") or "",
            stock=_to_int(data.get("stock"), DEFAULT_STOCK),
            added_at=data.get("addedAt") or "",
            remote_id=_str_id(data.get("id")),
        )


# ---------------------------
# Orders
# ---------------------------


@dataclass(frozen=True)
class DeliveryAddress:
    full_name: str
    phone_number: str
    email: str
    address_line1: str
    city: str
    state: str
    pincode: str
    address_line2: str = ""
    country: str = "India"

    _WIRE = {
        "full_name": "fullName",
        "phone_number": "phoneNumber",
        "email": "email",
        "address_line1": "addressLine1",
        "address_line2": "addressLine2",
        "city": "city",
        "state": "state",
        "pincode": "pincode",
        "country": "country",
    }

    def to_json(self) -> Dict[str, Any]:
        return {wire: getattr(self, attr) for attr, wire in self._WIRE.items()}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DeliveryAddress":
        values = {attr: str(data.get(wire) or "") for attr, wire in cls._WIRE.items()}
        values["country"] = values["country"] or "India"
        return cls(**values)


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    product_name: str
    price: float
    quantity: int
    product_image: str = ""

    @property
    def total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_line_item(cls, item: CartLineItem) -> "OrderItem":
        return cls(
            product_id=item.product_id,
            product_name=item.product_name,
            price=item.price,
            quantity=item.quantity,
            product_image=item.product_image,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productImage": self.product_image,
            "price": self.price,
            "quantity": self.quantity,
            "total": self.total,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "OrderItem":
        return cls(
            product_id=_str_id(data.get("productId")),
            product_name=data.get("productName") or "",
            price=_to_float(data.get("price")),
            quantity=_to_int(data.get("quantity"), 0),
            product_image=data.get("productImage") or "",
        )


@dataclass(frozen=True)
class Booking:
    """A service visit request. user_id is None when booked as a guest."""

    id: Optional[str]
    name: str
    phone: str
    service: str
    message: str = ""
    date: str = ""
    status: str = "pending"
    user_id: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "phone": self.phone,
            "service": self.service,
            "message": self.message,
            "date": self.date,
            "status": self.status,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Booking":
        return cls(
            id=_str_id(data.get("id")),
            name=data.get("name") or "",
            phone=str(data.get("phone") or ""),
            service=data.get("service") or "",
            message=data.get("message") or "",
            date=data.get("date") or "",
            status=data.get("status") or "pending",
            user_id=_str_id(data.get("userId")),
        )


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    user_name: str
    user_email: str
    delivery_address: DeliveryAddress
    items: Tuple[OrderItem, ...]
    subtotal: float
    shipping: float
    tax: float
    total: float
    payment_method: str
    payment_details: Dict[str, str] = field(default_factory=dict)
    status: str = "confirmed"
    order_date: str = ""
    estimated_delivery: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "userEmail": self.user_email,
            "deliveryAddress": self.delivery_address.to_json(),
            "items": [i.to_json() for i in self.items],
            "subtotal": self.subtotal,
            "shipping": self.shipping,
            "tax": self.tax,
            "total": self.total,
            "paymentMethod": self.payment_method,
            "paymentDetails": dict(self.payment_details),
            "status": self.status,
            "orderDate": self.order_date,
            "estimatedDelivery": self.estimated_delivery,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            id=_str_id(data.get("id")),
            user_id=_str_id(data.get("userId")),
            user_name=data.get("userName") or "",
            user_email=data.get("userEmail") or "",
            delivery_address=DeliveryAddress.from_json(data.get("deliveryAddress") or {}),
            items=tuple(OrderItem.from_json(i) for i in data.get("items") or ()),
            subtotal=_to_float(data.get("subtotal")),
            shipping=_to_float(data.get("shipping")),
            tax=_to_float(data.get("tax")),
            total=_to_float(data.get("total")),
            payment_method=data.get("paymentMethod") or "",
            payment_details=dict(data.get("paymentDetails") or {}),
            status=data.get("status") or "confirmed",
            order_date=data.get("orderDate") or "",
            estimated_delivery=data.get("estimatedDelivery") or "",
        )
