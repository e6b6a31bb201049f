from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator, model_validator

PRIMARY = "primary"
SECONDARY = "secondary"

LinkPrecedence = Literal["primary", "secondary"]


class Contact(BaseModel):
    id: int
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    linkedId: Optional[int] = None
    linkPrecedence: LinkPrecedence
    createdAt: datetime
    updatedAt: datetime
    deletedAt: Optional[datetime] = None

    @property
    def is_secondary(self) -> bool:
        return self.linkPrecedence == SECONDARY


class IdentifyRequest(BaseModel):
    email: Optional[str] = None
    phoneNumber: Optional[str] = None

    @field_validator("phoneNumber", mode="before")
    @classmethod
    def coerce_phone_number(cls, value):
        # clients frequently send the number as JSON integer
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ContactResponse(BaseModel):
    primaryContactId: int
    emails: List[str]
    phoneNumbers: List[str]
    secondaryContactIds: List[int]


class FinalResponse(BaseModel):
    contact: ContactResponse


class AddContactRequest(BaseModel):
    id: Optional[int] = None
    email: Optional[str] = None
    phoneNumber: Optional[str] = None
    linkedId: Optional[int] = None
    linkPrecedence: LinkPrecedence = PRIMARY

    @model_validator(mode="after")
    def check_link(self):
        if self.linkPrecedence == SECONDARY and self.linkedId is None:
            raise ValueError("secondary contacts need a linkedId")
        if self.linkPrecedence == PRIMARY and self.linkedId is not None:
            raise ValueError("primary contacts cannot have a linkedId")
        if self.id is not None and self.linkedId == self.id:
            raise ValueError("a contact cannot link to itself")
        return self
