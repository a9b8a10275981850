from enum import Enum
from typing import Optional

from pydantic import BaseModel


class Aggregation(str, Enum):
    NONE = "NONE"
    MIN = "MIN"
    MAX = "MAX"
    SUM = "SUM"
    AVG = "AVG"
    COUNT = "COUNT"


class OrderBy(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class ReadTsKvQuery(BaseModel):
    key: str
    start_ts: int
    end_ts: int
    interval: int
    limit: int
    aggregation: Aggregation = Aggregation.NONE
    order: OrderBy = OrderBy.ASC


class Interval(BaseModel):
    start_ts: Optional[int] = None
    end_ts: Optional[int] = None
