"""
Lottery schemas
"""

from pydantic import BaseModel

class PrizeCreate(BaseModel):
    name: str = ""
    quantity: int = 1

class DrawRequest(BaseModel):
    prize_id: int
