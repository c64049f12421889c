"""Customer registration and login.

- POST /register → create a customer with a bcrypt-hashed password
- GET /user → the logged-in customer. In JWT mode this is the login
  endpoint: call it with Basic credentials and read the token from the
  Authorization response header.
"""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bankgate.auth.dependencies import ROLE_PREFIX, Authentication, get_current_user
from bankgate.auth.password import hash_password
from bankgate.auth.users import get_customer_by_email
from bankgate.db.engine import get_db
from bankgate.db.models import Authority, Customer

router = APIRouter()


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    mobile_number: str = Field(min_length=1, max_length=20)
    password: str = Field(min_length=8)
    role: Literal["USER", "ADMIN"] = "USER"


class CustomerRead(BaseModel):
    id: int
    name: str
    email: str
    mobile_number: str
    role: str
    authorities: list[str]
    created_at: datetime


def _customer_read(customer: Customer) -> CustomerRead:
    return CustomerRead(
        id=customer.id,
        name=customer.name,
        email=customer.email,
        mobile_number=customer.mobile_number,
        role=customer.role,
        authorities=[a.name for a in customer.authorities],
        created_at=customer.created_at,
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=CustomerRead, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Create a new customer and grant ROLE_<role>.

    The e-mail lookup gives the common duplicate a clean 409; the unique
    constraint catches the concurrent one.
    """
    if await get_customer_by_email(db, body.email):
        raise HTTPException(status_code=409, detail="Email already registered")

    customer = Customer(
        name=body.name,
        email=body.email,
        mobile_number=body.mobile_number,
        password_hash=hash_password(
            body.password, rounds=request.app.state.settings.bcrypt_rounds
        ),
        role=body.role,
        authorities=[Authority(name=f"{ROLE_PREFIX}{body.role}")],
    )
    db.add(customer)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    await db.refresh(customer, attribute_names=["created_at"])
    return _customer_read(customer)


# ─── Current user ───────────────────────────────────────


@router.get("/user", response_model=CustomerRead)
async def get_user_details_after_login(
    authentication: Authentication = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the authenticated customer's details."""
    customer = await get_customer_by_email(db, authentication.username)
    if not customer:
        raise HTTPException(status_code=404, detail="User not found")
    return _customer_read(customer)
