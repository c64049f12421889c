"""Customer banking routes: all of them behind a role check.

- GET /myAccount → ROLE_USER
- GET /myBalance → ROLE_USER or ROLE_ADMIN
- GET /myLoans   → ROLE_USER
- GET /myCards   → ROLE_USER
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from bankgate.auth.dependencies import has_any_role, has_role

router = APIRouter(default_response_class=PlainTextResponse)


@router.get("/myAccount", dependencies=[Depends(has_role("USER"))])
async def get_account_details():
    return "Here are the account details from the DB"


@router.get("/myBalance", dependencies=[Depends(has_any_role("USER", "ADMIN"))])
async def get_balance_details():
    return "Here are the balance details from the DB"


@router.get("/myLoans", dependencies=[Depends(has_role("USER"))])
async def get_loan_details():
    return "Here are the loan details from the DB"


@router.get("/myCards", dependencies=[Depends(has_role("USER"))])
async def get_card_details():
    return "Here are the card details from the DB"
