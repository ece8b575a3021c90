"""
The four website forms expressed as ``SubmissionKind`` values.
"""

from typing import Any, Dict, Tuple

from database import RecordStore, collection_name
from intake import SubmissionKind, SubmissionOrchestrator, SubmissionOutcome
from mailer import NotificationDispatcher
from notifications import MailContext, booking_notices, career_notices, contact_notices, long_date, newsletter_notices
from schemas import Booking, CareerApplication, Contact, NewsletterSubscription
from uploads import ResumeIntake


def _with_delivery(outcome: SubmissionOutcome, body: Dict[str, Any]) -> Dict[str, Any]:
    body["notificationsSent"] = outcome.notifications_sent
    return body


def booking_response(outcome: SubmissionOutcome) -> Tuple[int, Dict[str, Any]]:
    form = outcome.form
    if outcome.notifications_sent:
        message = "Booking successful and recorded! Confirmation emails have been sent."
    else:
        message = "Booking successful and recorded! We could not send the confirmation email, but our team has your booking."
    return 201, _with_delivery(outcome, {
        "message": message,
        "bookingDetails": {
            "id": outcome.record_id,
            "name": form.name,
            "email": form.email,
            "serviceLabel": form.service_label,
            "date": long_date(form.date),
            "time": form.time,
        },
    })


def contact_response(outcome: SubmissionOutcome) -> Tuple[int, Dict[str, Any]]:
    if outcome.notifications_sent:
        message = "Your message has been sent successfully and recorded! We will get back to you shortly."
    else:
        message = "Your message has been recorded! We will get back to you shortly."
    return 200, _with_delivery(outcome, {"message": message, "submissionId": outcome.record_id})


def career_response(outcome: SubmissionOutcome) -> Tuple[int, Dict[str, Any]]:
    message = "Application submitted successfully! We will review it and get in touch if your profile matches our needs."
    return 201, _with_delivery(outcome, {"message": message, "applicationId": outcome.record_id})


def newsletter_response(outcome: SubmissionOutcome) -> Tuple[int, Dict[str, Any]]:
    if outcome.duplicate:
        return 200, _with_delivery(outcome, {
            "message": "You are already subscribed to our newsletter!",
            "subscriptionId": outcome.record_id,
            "alreadySubscribed": True,
        })
    return 201, _with_delivery(outcome, {
        "message": "Successfully subscribed to the newsletter! Welcome aboard.",
        "subscriptionId": outcome.record_id,
        "alreadySubscribed": False,
    })


def build_orchestrators(db, dispatcher: NotificationDispatcher, resume: ResumeIntake, ctx: MailContext) -> Dict[str, SubmissionOrchestrator]:
    """Wire one orchestrator per form against the given database."""

    def store(model: type) -> RecordStore:
        return RecordStore(db[collection_name(model)])

    kinds = [
        SubmissionKind(
            name="booking",
            schema=Booking,
            store=store(Booking),
            notices=lambda form, record_id, record: booking_notices(form, record_id, ctx),
            respond=booking_response,
        ),
        SubmissionKind(
            name="contact",
            schema=Contact,
            store=store(Contact),
            notices=lambda form, record_id, record: contact_notices(form, record_id, ctx),
            respond=contact_response,
        ),
        SubmissionKind(
            name="career",
            schema=CareerApplication,
            store=store(CareerApplication),
            notices=lambda form, record_id, record: career_notices(form, record_id, ctx, record["resume_path"]),
            respond=career_response,
            resume=resume,
        ),
        SubmissionKind(
            name="newsletter",
            schema=NewsletterSubscription,
            store=store(NewsletterSubscription),
            notices=lambda form, record_id, record: newsletter_notices(form, record_id, ctx),
            respond=newsletter_response,
            unique_email=True,
            rejection_message="Validation failed. Please check your input.",
        ),
    ]
    return {kind.name: SubmissionOrchestrator(kind, dispatcher) for kind in kinds}
