import math
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, StrictBool, StrictInt, TypeAdapter


def format_double(value: float) -> str:
    """Render a double the way JVM consumers of the metadata print it.

    Plain notation for magnitudes in ``[1e-3, 1e7)``, otherwise computerized
    scientific notation such as ``1.0E7`` or ``1.2345E-5``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0 or 1e-3 <= abs(value) < 1e7:
        return repr(value)

    sign, digits, exponent = Decimal(repr(value)).as_tuple()
    digits = list(digits)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    fraction = "".join(str(d) for d in digits[1:]) or "0"
    return f"{'-' if sign else ''}{digits[0]}.{fraction}E{len(digits) - 1 + exponent}"


class DataType(str, Enum):
    STRING = "STRING"
    LONG = "LONG"
    BOOLEAN = "BOOLEAN"
    DOUBLE = "DOUBLE"
    JSON = "JSON"


class _BaseEntry(BaseModel):
    key: str
    ts: int


class StringEntry(_BaseEntry):
    data_type: Literal[DataType.STRING] = DataType.STRING
    value: str

    def value_as_string(self) -> str:
        return self.value


class LongEntry(_BaseEntry):
    data_type: Literal[DataType.LONG] = DataType.LONG
    value: StrictInt

    def value_as_string(self) -> str:
        return str(self.value)


class BooleanEntry(_BaseEntry):
    data_type: Literal[DataType.BOOLEAN] = DataType.BOOLEAN
    value: StrictBool

    def value_as_string(self) -> str:
        return "true" if self.value else "false"


class DoubleEntry(_BaseEntry):
    data_type: Literal[DataType.DOUBLE] = DataType.DOUBLE
    value: float

    def value_as_string(self) -> str:
        return format_double(float(self.value))


class JsonEntry(_BaseEntry):
    """Holds the stored JSON document as raw, unparsed text."""

    data_type: Literal[DataType.JSON] = DataType.JSON
    value: str

    def value_as_string(self) -> str:
        return self.value


TsKvEntry = Annotated[
    Union[StringEntry, LongEntry, BooleanEntry, DoubleEntry, JsonEntry],
    Field(discriminator="data_type"),
]

ts_kv_entry_adapter = TypeAdapter(TsKvEntry)
