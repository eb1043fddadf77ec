"""Pydantic models for book loans."""

from typing import List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr


class LoanCreate(BaseModel):
    """Body of ``POST /api/loans``.

    ``id`` is the book identifier.  Some clients send it as a number and
    some send the borrower as ``user`` instead of ``username``; the
    service normalises both.  Booleans and floats are rejected.  A client
    supplied ``endDate`` is ignored, the due date always follows the loan
    duration policy.
    """

    id: Optional[Union[StrictStr, StrictInt]] = Field(None, examples=["OL82563W"])
    username: Optional[str] = Field(None, examples=["alice"])
    user: Optional[str] = None
    title: Optional[str] = Field(None, examples=["Matilda"])
    author: Optional[str] = Field(None, examples=["Roald Dahl"])


class LoanRead(BaseModel):
    id: str
    username: str
    title: str
    author: str
    borrowed_at: str = Field(..., alias="borrowedAt")
    end_date: str = Field(..., alias="endDate")

    model_config = {"populate_by_name": True}


class LoanList(BaseModel):
    loans: List[LoanRead]
