from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from lms.core.models import TransactionStatus

class BorrowRequest(BaseModel):
    book_id: Optional[int] = Field(None, alias="bookId")
    borrower_id: Optional[int] = Field(None, alias="borrowerId")

    class Config:
        populate_by_name = True

class ReturnRequest(BaseModel):
    transaction_id: Optional[int] = Field(None, alias="transactionId")

    class Config:
        populate_by_name = True

class BookTransaction(BaseModel):
    id: int
    book_id: int
    borrower_id: int
    borrowed_at: datetime
    due_date: datetime
    returned_at: Optional[datetime] = None
    status: TransactionStatus

    class Config:
        from_attributes = True
