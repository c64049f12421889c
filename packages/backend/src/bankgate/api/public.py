"""Public routes: no authentication required.

- GET /notices → static notices, cacheable for 60 seconds
- POST /contact → store an inquiry (CSRF exempt)
"""

import secrets
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bankgate.db.engine import get_db
from bankgate.db.models import ContactMessage

logger = structlog.get_logger()

router = APIRouter()

# Fresh numbers drawn when a new one collides with a stored inquiry
CONTACT_ID_ATTEMPTS = 5


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=100)
    subject: str = Field(min_length=1, max_length=500)
    message: str = Field(min_length=1)


class ContactRead(BaseModel):
    id: int
    contact_id: str
    name: str
    email: str
    subject: str
    message: str
    created_at: datetime

    model_config = {"from_attributes": True}


def new_contact_id() -> str:
    """Service request number shown to the customer, e.g. "SR402917385"."""
    return f"SR{secrets.randbelow(10**9):09d}"


@router.get("/notices", response_class=PlainTextResponse)
async def get_notices():
    return PlainTextResponse(
        "Here are the notices details from the DB",
        headers={"Cache-Control": "max-age=60"},
    )


@router.post("/contact", response_model=ContactRead, status_code=201)
async def save_contact_inquiry(body: ContactRequest, db: AsyncSession = Depends(get_db)):
    """Persist a contact-form inquiry and return it with its service request number."""
    for _ in range(CONTACT_ID_ATTEMPTS):
        contact_id = new_contact_id()
        contact = ContactMessage(
            contact_id=contact_id,
            name=body.name,
            email=body.email,
            subject=body.subject,
            message=body.message,
        )
        db.add(contact)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("contact.id_collision", contact_id=contact_id)
            continue
        await db.refresh(contact)
        return contact

    raise HTTPException(
        status_code=503, detail="Could not allocate a service request number"
    )
