from pydantic import BaseModel, EmailStr, Field
from typing import Annotated, List, Literal, Union

from transit_booking.auth.utils import verify_password

ADMIN_ROLE = "admin"
CUSTOMER_ROLE = "customer"

class PersonBase(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password_hash: str

    @property
    def key(self) -> str:
        return self.email

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def is_authentic(self, candidate_password: str) -> bool:
        """Check a login attempt against the stored credential"""
        return verify_password(candidate_password, self.password_hash)

    class Config:
        validate_assignment = True

class Administrator(PersonBase):
    role: Literal["admin"] = ADMIN_ROLE
    # Creation order is preserved
    administered_transport_ids: List[int] = []

    def manages(self, transport_id: int) -> bool:
        return transport_id in self.administered_transport_ids

class Customer(PersonBase):
    role: Literal["customer"] = CUSTOMER_ROLE
    balance: int = Field(0, ge=0)
    ticket_ids: List[int] = []

    def owns(self, ticket_id: int) -> bool:
        return ticket_id in self.ticket_ids

# Tagged union stored in the persons collection
Person = Annotated[Union[Administrator, Customer], Field(discriminator="role")]
