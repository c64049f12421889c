"""Customer lookup for HTTP Basic authentication."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bankgate.auth.basic import BadCredentialsError
from bankgate.auth.dependencies import Authentication
from bankgate.auth.password import verify_password
from bankgate.db.models import Customer


async def get_customer_by_email(session: AsyncSession, email: str) -> Optional[Customer]:
    q = select(Customer).where(Customer.email == email)
    result = await session.execute(q)
    return result.scalars().first()


async def authenticate(
    session: AsyncSession, username: str, password: str
) -> Authentication:
    """Check e-mail/password against the customer store.

    Returns the Authentication with the customer's granted authorities.
    Raises BadCredentialsError when the user is unknown or the password
    does not match.
    """
    customer = await get_customer_by_email(session, username)
    if customer is None:
        raise BadCredentialsError("No user registered with this details!")

    if not verify_password(password, customer.password_hash):
        raise BadCredentialsError("Invalid password!")

    return Authentication(
        username=customer.email,
        authorities=[a.name for a in customer.authorities],
        method="basic",
    )
