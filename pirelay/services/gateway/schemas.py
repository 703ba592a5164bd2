"""Request/response schemas for the relay endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pirelay.common.errors import InvalidFieldError, InvalidJSONBody, MissingFieldError


def _number_text(value: int | float) -> str:
    """Render a JSON number the way clients print it: 1.0 is "1"."""

    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


def _text_field(body: Any, name: str) -> str:
    """Read `name` from a decoded body as text.

    Strings pass through, numbers and booleans are rendered as text, objects and
    arrays are rejected. Falsy values (null, "", 0, false) count as missing.
    """

    if not isinstance(body, dict):
        return ""
    value = body.get(name)
    if value is not None and not isinstance(value, (str, int, float)):
        raise InvalidFieldError(name)
    if not value:
        return ""
    if isinstance(value, bool):
        return "true"
    if isinstance(value, str):
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            # Lone surrogates from "\ud800"-style escapes.
            raise InvalidJSONBody() from exc
        return value
    return _number_text(value)


class PaymentActionRequest(BaseModel):
    """Target of one approve/complete/cancel call."""

    payment_id: str = Field(min_length=1)
    txid: str | None = None

    @classmethod
    def from_body(cls, body: Any, require_txid: bool = False) -> "PaymentActionRequest":
        payment_id = _text_field(body, "paymentId")
        if not payment_id:
            raise MissingFieldError("paymentId")
        txid = _text_field(body, "txid")
        if require_txid and not txid:
            raise MissingFieldError("txid")
        try:
            return cls(payment_id=payment_id, txid=txid or None)
        except ValidationError as exc:
            raise InvalidJSONBody() from exc


class ErrorEnvelope(BaseModel):
    """JSON error body returned to callers."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    message: str | None = None
    status_code: int | None = Field(default=None, alias="statusCode")
    response: Any = None

    def as_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)
