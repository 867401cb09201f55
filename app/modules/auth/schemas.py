from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class AuthContext(BaseModel):
    """Identity taken from a verified token plus the company selected for the request."""
    user_id: UUID
    email: Optional[str] = None
    tenant_id: Optional[UUID] = None
