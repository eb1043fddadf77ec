"""
Loan endpoints.

``POST`` borrows a book for 14 days, ``DELETE`` returns it.  Only
active loans are listed.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...schemas.common import SuccessResponse
from ...schemas.loan import LoanCreate, LoanList
from ...services import LoanService
from ..deps import get_loan_service

router = APIRouter()


@router.get("", response_model=LoanList)
async def list_loans(service: LoanService = Depends(get_loan_service)) -> LoanList:
    return LoanList(loans=await service.list())


@router.post("", response_model=SuccessResponse)
async def create_loan(
    body: LoanCreate,
    service: LoanService = Depends(get_loan_service),
) -> SuccessResponse:
    """Borrow a book.

    The borrower may be sent as ``username`` or ``user``.  Returns 409
    if the book already has an active loan.
    """
    borrower = body.username if body.username is not None else body.user
    await service.create(body.id, borrower, body.title, body.author)
    return SuccessResponse()


@router.delete("/{book_id}", response_model=SuccessResponse)
async def delete_loan(
    book_id: str,
    username: Optional[str] = Query(None, description="Only return the book if this user holds it"),
    service: LoanService = Depends(get_loan_service),
) -> SuccessResponse:
    await service.delete(book_id, username=username)
    return SuccessResponse()
