"""
Domain errors raised by the business-rule services
"""

from typing import Any, Optional


class WeddingError(Exception):
    """Base class for recoverable domain errors"""

    error_code = "error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(WeddingError):
    error_code = "validation_error"
    status_code = 422


class CapacityExceeded(WeddingError):
    error_code = "capacity_exceeded"
    status_code = 409

    def __init__(self, table_no: str, seats: int, occupied: int, requested: int):
        if requested:
            message = f"{table_no}号桌座位不足：共{seats}座，已安排{occupied}位，无法再加入{requested}位"
        else:
            message = f"{table_no}号桌已安排{occupied}位，座位数不能少于{occupied}"
        super().__init__(
            message,
            details={
                "table_no": table_no,
                "seats": seats,
                "occupied": occupied,
                "requested": requested,
            },
        )
        self.table_no = table_no
        self.seats = seats


class NotFound(WeddingError):
    error_code = "not_found"
    status_code = 404

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource}不存在"
        super().__init__(message, details={"resource": resource, "id": identifier})
        self.resource = resource


class PrizeNotFound(NotFound):
    error_code = "prize_not_found"

    def __init__(self, prize_id: Any):
        super().__init__("奖品", prize_id)


class PrizeExhausted(WeddingError):
    error_code = "prize_exhausted"
    status_code = 409

    def __init__(self, prize_name: str, quantity: int):
        super().__init__(
            "奖品已抽完",
            details={"prize": prize_name, "quantity": quantity},
        )


class NoEligibleGuests(WeddingError):
    error_code = "no_eligible_guests"
    status_code = 409

    def __init__(self):
        super().__init__("暂无可抽取来宾")
