"""Wire messages exchanged between the relay server and the printer bridge.

Every frame on the ``/printer-ws`` tunnel is one JSON object tagged by
``type``::

    ORDER_PRINT   {"type": "ORDER_PRINT", "order": {...}}      server -> bridge
    PRINT_STATUS  {"type": "PRINT_STATUS", "orderId": "...",
                   "status": "SUCCESS" | "FAILED", "error": ...} bridge -> server
    PING          {"type": "PING"}                               bridge -> server
    PONG          {"type": "PONG"}                               server -> bridge

Keys are camelCase on the wire; Python code uses snake_case attributes.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)
from pydantic.alias_generators import to_camel

DISPLAY_ID_LENGTH = 8


class MessageError(ValueError):
    """Raised when a frame cannot be decoded into a known message."""


class OrderType(str, Enum):
    """How the customer receives the order."""

    DINE_IN = "DINE_IN"
    TAKEAWAY = "TAKEAWAY"
    DELIVERY = "DELIVERY"


class PrintStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PrintItem(_WireModel):
    """Single ticket line."""

    name: str
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class PrintJob(_WireModel):
    """Immutable order snapshot sent to the printer."""

    id: str
    order_id_string: str
    customer_name: str
    customer_mobile: str
    type: OrderType
    table_number: Optional[str] = None
    address: Optional[str] = None
    pickup_time: Optional[str] = None
    total_amount: float
    items: List[PrintItem] = Field(default_factory=list)
    created_at: datetime

    @property
    def display_id(self) -> str:
        """Short upper-case order number printed on the ticket."""
        return self.order_id_string[-DISPLAY_ID_LENGTH:].upper()

    @property
    def location(self) -> Optional[str]:
        """Return the location detail that applies to the order type."""
        value = {
            OrderType.DINE_IN: self.table_number,
            OrderType.DELIVERY: self.address,
            OrderType.TAKEAWAY: self.pickup_time,
        }[self.type]
        return value or None


class OrderPrintMessage(_WireModel):
    type: Literal["ORDER_PRINT"] = "ORDER_PRINT"
    order: PrintJob


class PrintStatusMessage(_WireModel):
    type: Literal["PRINT_STATUS"] = "PRINT_STATUS"
    order_id: str
    status: PrintStatus
    error: Optional[str] = None


class PingMessage(_WireModel):
    type: Literal["PING"] = "PING"


class PongMessage(_WireModel):
    type: Literal["PONG"] = "PONG"


BridgeMessage = Annotated[
    Union[OrderPrintMessage, PrintStatusMessage, PingMessage, PongMessage],
    Field(discriminator="type"),
]

_adapter: TypeAdapter[BridgeMessage] = TypeAdapter(BridgeMessage)


def parse_message(raw: str | bytes) -> BridgeMessage:
    """Decode one frame or raise :class:`MessageError`."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MessageError(f"invalid JSON frame: {exc}") from exc
    if not isinstance(data, dict):
        raise MessageError("frame must be a JSON object")
    try:
        return _adapter.validate_python(data)
    except ValidationError as exc:
        raise MessageError(
            f"invalid {data.get('type', 'untyped')} message: "
            f"{exc.error_count()} error(s)"
        ) from exc


def encode_message(message: BaseModel) -> str:
    """Serialize ``message`` to compact JSON using wire aliases."""
    data = message.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(message, PrintStatusMessage):
        data.setdefault("error", None)
    return json.dumps(data, separators=(",", ":"))
