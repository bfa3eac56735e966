"""
Table schemas
"""

from pydantic import BaseModel, Field

class TableUpsert(BaseModel):
    """Create a table, or update the one with the same table_no"""
    table_no: str = ""
    nickname: str = ""
    seats: int = Field(0, ge=0)
    preference: str = ""

class TableUpdate(TableUpsert):
    """Edit a table by id; a changed table_no moves its guests along"""
