"""
Email templates for the four forms.

Each ``*_notices`` function renders the confirmation sent to the submitter and,
where the form has one, the notice sent to the site admin. Submitted values are
HTML-escaped in the HTML bodies; optional fields only appear when present.
"""

from dataclasses import dataclass
from datetime import date
from html import escape
from typing import Optional

from schemas import Booking, CareerApplication, Contact, NewsletterSubscription


@dataclass(frozen=True)
class Notice:
    audience: str  # submitter | admin
    to: str
    subject: str
    text: str
    html: str


@dataclass(frozen=True)
class NoticeSet:
    submitter: Notice
    admin: Optional[Notice] = None


@dataclass(frozen=True)
class MailContext:
    company: str
    admin_email: Optional[str]
    notify_admin_of_subscriptions: bool = False


def long_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def _line(label: str, value: Optional[str]) -> str:
    return f"{label}: {value}\n" if value else ""


def _li(label: str, value: Optional[str]) -> str:
    return f"<li><strong>{label}:</strong> {escape(value)}</li>" if value else ""


def _link(url: str) -> str:
    href = url if "://" in url else f"http://{url}"
    return f'<a href="{escape(href)}" target="_blank">{escape(url)}</a>'


def _mailto(email: str) -> str:
    return f'<a href="mailto:{escape(email)}">{escape(email)}</a>'


def _paragraphs(text: str) -> str:
    return escape(text).replace("\n", "<br/>")


def _admin(ctx: MailContext, subject: str, text: str, html: str) -> Optional[Notice]:
    if not ctx.admin_email:
        return None
    return Notice("admin", ctx.admin_email, subject, text, html)


def booking_notices(form: Booking, record_id: str, ctx: MailContext) -> NoticeSet:
    when = long_date(form.date)
    name = escape(form.name)
    label = escape(form.service_label)
    website = _link(form.website) if form.website else ""
    company_p = f"<p><strong>Company:</strong> {escape(form.company)}</p>" if form.company else ""
    website_p = f"<p><strong>Website:</strong> {website}</p>" if website else ""
    website_li = f"<li><strong>Website:</strong> {website}</li>" if website else ""

    user_html = f"""
      <p>Dear {name},</p>
      <p>Thank you for booking a consultation with {escape(ctx.company)} for the <strong>{label}</strong> service.</p>
      <p>Your session is scheduled for:</p>
      <ul>
        <li><strong>Date:</strong> {when}</li>
        <li><strong>Time:</strong> {escape(form.time)}</li>
      </ul>
      {company_p}
      {website_p}
      <p>Your Booking ID: {record_id}</p>
      <p>We will send you a calendar invitation and any necessary meeting details shortly.</p>
      <p>Best regards,<br/>The {escape(ctx.company)} Team</p>
    """
    user_text = (
        f"Dear {form.name},\n\n"
        f"Thank you for booking a consultation with {ctx.company} for the {form.service_label} service.\n\n"
        f"Date: {when}\nTime: {form.time}\n"
        f"{_line('Company', form.company)}{_line('Website', form.website)}"
        f"Booking ID: {record_id}\n\n"
        "We will send you a calendar invitation and any necessary meeting details shortly.\n\n"
        f"Best regards,\nThe {ctx.company} Team"
    )
    submitter = Notice(
        "submitter",
        form.email,
        f'Your {ctx.company} Consultation for "{form.service_label}" is Booked!',
        user_text,
        user_html,
    )

    admin_html = f"""
      <p>A new consultation has been booked:</p>
      <ul>
        <li><strong>Client Name:</strong> {name}</li>
        <li><strong>Client Email:</strong> {_mailto(form.email)}</li>
        <li><strong>Service Requested:</strong> {label} (ID: {escape(form.service_id)})</li>
        <li><strong>Preferred Date:</strong> {when}</li>
        <li><strong>Preferred Time:</strong> {escape(form.time)}</li>
        {_li("Company", form.company)}
        {website_li}
        <li><strong>Booking ID:</strong> {record_id}</li>
      </ul>
      <p>Please follow up.</p>
    """
    admin_text = (
        "A new consultation has been booked:\n"
        f"Client Name: {form.name}\nClient Email: {form.email}\n"
        f"Service Requested: {form.service_label} (ID: {form.service_id})\n"
        f"Preferred Date: {when}\nPreferred Time: {form.time}\n"
        f"{_line('Company', form.company)}{_line('Website', form.website)}"
        f"Booking ID: {record_id}\n\nPlease follow up."
    )
    admin = _admin(ctx, f"New Consultation Booking: {form.service_label} - {form.name}", admin_text, admin_html)
    return NoticeSet(submitter, admin)


def contact_notices(form: Contact, record_id: str, ctx: MailContext) -> NoticeSet:
    topic = form.subject or "your inquiry"
    user_html = f"""
      <p>Dear {escape(form.name)},</p>
      <p>Thank you for contacting {escape(ctx.company)}! We have successfully received your message regarding "{escape(topic)}".</p>
      <p>Our team will review your submission and get back to you as soon as possible, typically within 1-2 business days.</p>
      <p>Sincerely,<br/>The {escape(ctx.company)} Team</p>
    """
    user_text = (
        f"Dear {form.name},\n\n"
        f'Thank you for contacting {ctx.company}! We have received your message regarding "{topic}".\n'
        "Our team will review your submission and get back to you soon.\n\n"
        f"Sincerely,\nThe {ctx.company} Team"
    )
    submitter = Notice("submitter", form.email, f"We've Received Your Message, {form.name}!", user_text, user_html)

    admin_html = f"""
      <p>You have received a new message via the {escape(ctx.company)} contact form:</p>
      <ul>
        <li><strong>Name:</strong> {escape(form.name)}</li>
        <li><strong>Email:</strong> {_mailto(form.email)}</li>
        {_li("Phone", form.phone)}
        {_li("Regarding Service", form.service)}
        <li><strong>Subject:</strong> {escape(form.subject or "Not specified")}</li>
      </ul>
      <hr>
      <h3>Message:</h3>
      <p style="white-space: pre-wrap;">{escape(form.message)}</p>
      <hr>
      <p>Database Record ID: {record_id}</p>
      <p>Please respond to this inquiry promptly.</p>
    """
    admin_text = (
        "New Contact Form Message:\n"
        f"Name: {form.name}\nEmail: {form.email}\n"
        f"{_line('Phone', form.phone)}{_line('Regarding Service', form.service)}"
        f"Subject: {form.subject or 'Not specified'}\n\n"
        f"Message:\n{form.message}\n\n"
        f"Database Record ID: {record_id}\nPlease respond promptly."
    )
    admin = _admin(
        ctx,
        f'New Contact Form Message from {form.name}: "{form.subject or "General Inquiry"}"',
        admin_text,
        admin_html,
    )
    return NoticeSet(submitter, admin)


def career_notices(form: CareerApplication, record_id: str, ctx: MailContext, resume_path: str) -> NoticeSet:
    user_html = f"""
        <p>Dear {escape(form.name)},</p>
        <p>Thank you for your interest in {escape(ctx.company)} and for submitting your application for the {escape(form.position)} role.</p>
        <p>We have successfully received your application (ID: {record_id}).</p>
        <p>Our hiring team will review your qualifications. If your profile matches our current needs, we will contact you for the next steps.</p>
        <p>Sincerely,<br/>The {escape(ctx.company)} Team</p>
    """
    user_text = (
        f"Dear {form.name},\n\n"
        f"Thank you for applying to {ctx.company} for the {form.position} role.\n"
        f"Your application ID is {record_id}.\n"
        "Our hiring team will review your qualifications and contact you if your profile matches our needs.\n\n"
        f"Sincerely,\nThe {ctx.company} Team"
    )
    submitter = Notice(
        "submitter",
        form.email,
        f"Your Application to {ctx.company} has been Received, {form.name}!",
        user_text,
        user_html,
    )

    info = f"<li><strong>Additional Info:</strong><br/>{_paragraphs(form.message)}</li>" if form.message else ""
    admin_html = f"""
      <p>A new career application has been submitted:</p>
      <ul>
        <li><strong>Name:</strong> {escape(form.name)}</li>
        <li><strong>Email:</strong> {_mailto(form.email)}</li>
        {_li("Phone", form.phone)}
        <li><strong>Preferred Position:</strong> {escape(form.position)}</li>
        {_li("Experience Level", form.experience)}
        {info}
        <li><strong>Resume:</strong> {escape(resume_path)}</li>
        <li><strong>Application ID:</strong> {record_id}</li>
      </ul>
      <p>Please review.</p>
    """
    admin_text = (
        f"New career application from {form.name} for {form.position}.\n"
        f"Email: {form.email}\n"
        f"{_line('Phone', form.phone)}{_line('Experience Level', form.experience)}"
        f"{_line('Additional Info', form.message)}"
        f"Resume: {resume_path}\nApplication ID: {record_id}"
    )
    admin = _admin(ctx, f"New Career Application: {form.position} - {form.name}", admin_text, admin_html)
    return NoticeSet(submitter, admin)


def newsletter_notices(form: NewsletterSubscription, record_id: str, ctx: MailContext) -> NoticeSet:
    company = escape(ctx.company)
    welcome_html = f"""
      <p>Hi there,</p>
      <p>Thank you for subscribing to the {company} newsletter!</p>
      <p>Stay tuned for updates, insights, and special offers.</p>
      <p>Best regards,<br/>The {company} Team</p>
    """
    welcome_text = (
        "Hi there,\n\n"
        f"Thank you for subscribing to the {ctx.company} newsletter!\n"
        "Stay tuned for updates, insights, and special offers.\n\n"
        f"Best regards,\nThe {ctx.company} Team"
    )
    submitter = Notice("submitter", form.email, f"Welcome to the {ctx.company} Newsletter!", welcome_text, welcome_html)

    admin = None
    if ctx.notify_admin_of_subscriptions:
        admin = _admin(
            ctx,
            "New Newsletter Subscription",
            f"New subscription from: {form.email}\nSubscription ID: {record_id}",
            f"<p>New newsletter subscription from: {escape(form.email)}</p><p>Subscription ID: {record_id}</p>",
        )
    return NoticeSet(submitter, admin)
