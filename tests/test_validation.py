from __future__ import annotations

from datetime import date

import pytest

from errors import ErrorKind, ValidationError
from schemas import Booking, CareerApplication, Contact, NewsletterSubscription
from validation import form_fields, validate


BOOKING = {
    "service": "s1",
    "serviceLabel": "Consulting",
    "date": "2025-01-15",
    "time": "10:00",
    "name": "Jane Doe",
    "email": "JANE@X.COM",
}


def _fields(exc_info):
    return [e["field"] for e in exc_info.value.errors]


def test_booking_is_normalized():
    form = validate(Booking, dict(BOOKING, name="  Jane Doe  ", company="", website=""))
    assert form.email == "jane@x.com"
    assert form.name == "Jane Doe"
    assert form.date == date(2025, 1, 15)
    assert form.company is None and form.website is None
    assert form.to_record()["service_label"] == "Consulting"


def test_email_is_trimmed_and_case_folded():
    form = validate(NewsletterSubscription, {"email": " Foo@Example.com "})
    assert form.email == "foo@example.com"


def test_every_invalid_field_is_reported():
    fields = {
        "service": "",
        "serviceLabel": "Consulting",
        "date": "15/01/2025",
        "time": "10:00",
        "name": "J",
        "email": "not-an-email",
        "website": "not a url",
    }
    with pytest.raises(ValidationError) as exc_info:
        validate(Booking, fields)
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert exc_info.value.status_code == 400
    assert sorted(_fields(exc_info)) == ["date", "email", "name", "service", "website"]


def test_required_and_invalid_messages_differ():
    with pytest.raises(ValidationError) as exc_info:
        validate(Booking, dict(BOOKING, name=""))
    assert exc_info.value.errors == [{"field": "name", "message": "Full name is required."}]

    with pytest.raises(ValidationError) as exc_info:
        validate(Booking, dict(BOOKING, name="J"))
    assert exc_info.value.errors == [{"field": "name", "message": "Name must be at least 2 characters long."}]


def test_missing_fields_use_wire_names():
    with pytest.raises(ValidationError) as exc_info:
        validate(Booking, {})
    assert set(_fields(exc_info)) == {"service", "serviceLabel", "date", "time", "name", "email"}


@pytest.mark.parametrize("length,ok", [(9, False), (10, True), (2000, True), (2001, False)])
def test_contact_message_length_bounds(length, ok):
    fields = {"name": "Jo", "email": "jo@x.com", "message": "m" * length}
    if ok:
        assert validate(Contact, fields).message == "m" * length
    else:
        with pytest.raises(ValidationError) as exc_info:
            validate(Contact, fields)
        assert exc_info.value.errors == [
            {"field": "message", "message": "Message must be between 10 and 2000 characters."}
        ]


def test_contact_message_is_trimmed_before_length_check():
    with pytest.raises(ValidationError):
        validate(Contact, {"name": "Jo", "email": "jo@x.com", "message": "   123456789   "})


def test_contact_subject_limit_and_phone():
    fields = {"name": "Jo", "email": "jo@x.com", "message": "Hello there, team", "subject": "s" * 151, "phone": "call me"}
    with pytest.raises(ValidationError) as exc_info:
        validate(Contact, fields)
    assert sorted(_fields(exc_info)) == ["phone", "subject"]


@pytest.mark.parametrize("phone", ["+1 (555) 123-4567", "054-1234567", "+972541234567"])
def test_loose_phone_accepts_common_formats(phone):
    form = validate(Contact, {"name": "Jo", "email": "jo@x.com", "message": "Hello there, team", "phone": phone})
    assert form.phone == phone


@pytest.mark.parametrize("website", ["acme.io", "https://www.acme.io/about", "http://acme.co.uk"])
def test_website_accepts_urls_with_or_without_scheme(website):
    assert validate(Booking, dict(BOOKING, website=website)).website == website


def test_website_rejects_hosts_without_domain():
    with pytest.raises(ValidationError) as exc_info:
        validate(Booking, dict(BOOKING, website="http://localhost"))
    assert exc_info.value.errors[0]["message"] == "If provided, website must be a valid URL."


def test_date_accepts_iso_datetime():
    assert validate(Booking, dict(BOOKING, date="2025-01-15T00:00:00.000Z")).date == date(2025, 1, 15)


def test_career_optional_message_limit():
    fields = {"name": "Ann", "email": "ann@x.com", "position": "Engineer", "message": "x" * 2001}
    with pytest.raises(ValidationError) as exc_info:
        validate(CareerApplication, fields)
    assert _fields(exc_info) == ["message"]
    assert validate(CareerApplication, dict(fields, message="")).message is None


def test_custom_rejection_message():
    with pytest.raises(ValidationError) as exc_info:
        validate(NewsletterSubscription, {"email": "nope"}, rejection="Validation failed. Please check your input.")
    assert exc_info.value.to_body() == {
        "message": "Validation failed. Please check your input.",
        "errors": [{"field": "email", "message": "Please enter a valid email address."}],
    }


def test_form_fields_drops_non_scalar_values():
    assert form_fields({"name": "Ann", "resumeFile": object(), "age": 3}) == {"name": "Ann", "age": 3}
