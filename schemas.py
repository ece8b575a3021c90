"""
Database Schemas for the company website forms

Each Pydantic model below maps to a MongoDB collection with the lowercase
name of the class (e.g., Booking -> "booking"). Field aliases are the names
the website's forms post; stored documents use the Python field names.
"""

import re
from datetime import date, datetime
from typing import Annotated, Any, ClassVar, Dict, Optional

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)


_PHONE_CHARS = re.compile(r"^\+?[0-9 ().\-/]+$")
_HTTP_URL = TypeAdapter(AnyHttpUrl)


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _iso_date(value: Any) -> Any:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError("expected an ISO 8601 date string")
    text = value.strip()
    try:
        if "T" in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        raise ValueError("not an ISO 8601 date") from None


def _loose_phone(value: str) -> str:
    digits = sum(ch.isdigit() for ch in value)
    if not _PHONE_CHARS.match(value) or not 7 <= digits <= 15:
        raise ValueError("not a phone number")
    return value


def _website(value: str) -> str:
    # Forms commonly send "acme.io" without a scheme
    candidate = value if "://" in value else f"http://{value}"
    try:
        url = _HTTP_URL.validate_python(candidate)
    except ValidationError:
        raise ValueError("not a URL") from None
    if not url.host or "." not in url.host:
        raise ValueError("URL host must be a domain name")
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(str.lower)]
IsoDate = Annotated[date, BeforeValidator(_iso_date)]
Phone = Annotated[str, AfterValidator(_loose_phone)]
Website = Annotated[str, AfterValidator(_website)]


class FormModel(BaseModel):
    """Shared behaviour of every submitted form.

    Strings are trimmed, optional fields sent as empty strings count as absent,
    and ``messages`` gives the human text shown for a field that is missing
    ("required") or present but unacceptable ("invalid").
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")

    messages: ClassVar[Dict[str, Dict[str, str]]] = {}

    @model_validator(mode="before")
    @classmethod
    def _blank_optionals_are_absent(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name, field in cls.model_fields.items():
            if field.is_required():
                continue
            key = field.alias or name
            value = data.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                data.pop(key, None)
        return data

    @classmethod
    def message_for(cls, field: str, required: bool) -> Optional[str]:
        texts = cls.messages.get(field, {})
        if required:
            return texts.get("required") or texts.get("invalid")
        return texts.get("invalid") or texts.get("required")

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class Booking(FormModel):
    """
    Consultation bookings from the services page
    Collection name: "booking"
    """
    service_id: str = Field(..., alias="service", min_length=1, description="Identifier of the booked service")
    service_label: str = Field(..., alias="serviceLabel", min_length=1, description="Display name of the service")
    date: IsoDate = Field(..., description="Requested calendar date")
    time: str = Field(..., min_length=1, description="Requested time slot, free text")
    name: str = Field(..., min_length=2, description="Full name of the client")
    email: NormalizedEmail = Field(..., description="Contact email")
    company: Optional[str] = Field(None, description="Company name")
    website: Optional[Website] = Field(None, description="Company website")

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "service": {"required": "Service selection is required."},
        "serviceLabel": {"required": "Service label is required."},
        "date": {
            "required": "Date is required.",
            "invalid": "Date must be a valid ISO 8601 date string.",
        },
        "time": {"required": "Time selection is required."},
        "name": {
            "required": "Full name is required.",
            "invalid": "Name must be at least 2 characters long.",
        },
        "email": {"invalid": "Please enter a valid email address."},
        "website": {"invalid": "If provided, website must be a valid URL."},
    }


class Contact(FormModel):
    """
    Messages submitted from the website contact form
    Collection name: "contact"
    """
    name: str = Field(..., min_length=2, description="Full name of the sender")
    email: NormalizedEmail = Field(..., description="Contact email")
    phone: Optional[Phone] = Field(None, description="Phone number")
    subject: Optional[str] = Field(None, max_length=150, description="Subject line")
    message: str = Field(..., min_length=10, max_length=2000, description="Message body")
    service: Optional[str] = Field(None, description="Service the sender is interested in")

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "name": {
            "required": "Name is required.",
            "invalid": "Name must be at least 2 characters.",
        },
        "email": {"invalid": "Please enter a valid email address."},
        "phone": {"invalid": "Please enter a valid phone number if provided."},
        "subject": {"invalid": "Subject cannot exceed 150 characters."},
        "message": {
            "required": "Message is required.",
            "invalid": "Message must be between 10 and 2000 characters.",
        },
    }


class CareerApplication(FormModel):
    """
    Job applications from the careers page
    Collection name: "careerapplication"

    The stored document also carries ``resume_path``, the opaque handle
    returned by the file storage for the uploaded resume.
    """
    name: str = Field(..., min_length=1, description="Applicant name")
    email: NormalizedEmail = Field(..., description="Applicant email")
    phone: Optional[Phone] = Field(None, description="Phone number")
    position: str = Field(..., min_length=1, description="Preferred position")
    experience: Optional[str] = Field(None, description="Experience level")
    message: Optional[str] = Field(None, max_length=2000, description="Additional information")

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "name": {"required": "Name is required."},
        "email": {"invalid": "Please enter a valid email."},
        "phone": {"invalid": "Valid phone number if provided."},
        "position": {"required": "Preferred position is required."},
        "message": {"invalid": "Message cannot exceed 2000 characters."},
    }


class NewsletterSubscription(FormModel):
    """
    Newsletter signups, one document per address
    Collection name: "newslettersubscription"
    """
    email: NormalizedEmail = Field(..., description="Subscriber email, unique")

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "email": {"invalid": "Please enter a valid email address."},
    }
