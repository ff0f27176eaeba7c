from pydantic import BaseModel, Field

class LocationBase(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)

    def same_place(self, street: str, city: str) -> bool:
        return self.street == street and self.city == city

class Location(LocationBase):
    id: int = Field(..., ge=0)

    @property
    def key(self) -> int:
        return self.id

    def render(self) -> str:
        return f"{self.id} : {self.street}, {self.city}"

class LocationTicketCount(BaseModel):
    """Location together with the number of tickets sold on transports touching it"""
    location: Location
    ticket_count: int = 0
