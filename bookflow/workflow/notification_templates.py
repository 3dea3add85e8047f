"""Message text for booking notifications.

Wording is free to change. Which audience receives a message, and which
booking it is linked to, is decided in notifications.py.
"""

from datetime import date
from typing import Optional

from bookflow.config import settings
from bookflow.schemas.booking_schema import Booking
from bookflow.tools.pricing import format_money
from bookflow.utils import short_id


def format_event_date(value: str) -> str:
    """Render an ISO event date as e.g. '15 Mar 2025'. Unparseable input is returned as-is."""
    try:
        return date.fromisoformat(value.strip()).strftime("%d %b %Y")
    except (ValueError, AttributeError):
        return value


def eta_admin_suffix(eta_minutes: Optional[int]) -> str:
    return f" with an ETA of {eta_minutes} minutes" if eta_minutes and eta_minutes > 0 else ""


def eta_client_suffix(eta_minutes: Optional[int]) -> str:
    return f" Their ETA is ~{eta_minutes} minutes." if eta_minutes and eta_minutes > 0 else ""


def join_names(names: list[str], separator: str = ", ") -> str:
    return separator.join(n for n in names if n) or "your selected performers"


# --- Request submission ---

def request_sent_client(performer_names: list[str]) -> str:
    return f"Booking Request Sent! We've notified {join_names(performer_names)} of your request."


def request_sent_admin(client_name: str, performer_names: list[str]) -> str:
    return (
        f"New Booking Request: for {client_name} with {join_names(performer_names)}. "
        "Awaiting performer acceptance."
    )


def performer_prompt(booking: Booking, total_cost: float, deposit: float) -> str:
    lines = [
        "New Booking Request!",
        f"From: {booking.client_name}",
        f"For: {format_event_date(booking.event_date)}",
        f"Event: {booking.event_type}",
        f"Guests: {booking.number_of_guests}",
        f"Total Value: {format_money(total_cost)}",
        f"Deposit: {format_money(deposit)}",
        "Please accept or decline this booking.",
    ]
    return "\n".join(lines)


# --- Performer response ---

def declined_admin(performer_name: str, client_name: str) -> str:
    return f"{performer_name} has DECLINED the booking request from {client_name}."


def declined_client(performer_name: str) -> str:
    return (
        f"We're sorry, {performer_name} is unable to accept your booking request at this time. "
        "Please try booking another performer."
    )


def accepted_admin(performer_name: str, client_name: str, eta: Optional[int]) -> str:
    return (
        f"{performer_name} has ACCEPTED the booking request from {client_name}"
        f"{eta_admin_suffix(eta)}. It is now pending your vetting."
    )


def accepted_client(performer_name: str, eta: Optional[int]) -> str:
    return (
        f"{performer_name} has accepted your request!{eta_client_suffix(eta)} "
        "Your booking is now with our admin team for final review."
    )


def accepted_performer(client_name: str) -> str:
    return (
        f"Thanks for accepting the booking from {client_name}. "
        "It is now with admin for vetting; we'll let you know once it's approved."
    )


def fast_path_admin(performer_name: str, client_name: str, eta: Optional[int]) -> str:
    return (
        f"{performer_name} has ACCEPTED the booking from verified client {client_name}"
        f"{eta_admin_suffix(eta)}. It has automatically skipped vetting and is awaiting deposit."
    )


def fast_path_client(performer_name: str, eta: Optional[int], deposit: float) -> str:
    return (
        f"{performer_name} has accepted your request!{eta_client_suffix(eta)} "
        f"As a verified client, you can now proceed to payment of the {format_money(deposit)} deposit."
    )


# --- Vetting ---

def vetted_performer(booking: Booking) -> str:
    return (
        f"Booking Vetted! The application from {booking.client_name} for "
        f"{format_event_date(booking.event_date)} has been approved. Awaiting deposit."
    )


def vetting_approved_client(booking: Booking, deposit: float) -> str:
    return (
        f"Booking Approved! Your application for {booking.event_type} with "
        f"{booking.performer_label} is approved. Please pay the {format_money(deposit)} "
        "deposit to confirm."
    )


def rejected_client(booking: Booking) -> str:
    return (
        f"Booking Rejected. Unfortunately, your application for {booking.event_type} "
        "has been rejected by administration."
    )


def rejected_performer(booking: Booking) -> str:
    return (
        f"Booking Rejected: The application from {booking.client_name} for "
        f"{format_event_date(booking.event_date)} has been rejected."
    )


def rejected_admin(booking: Booking) -> str:
    return f"Booking Rejected for {booking.client_name} with {booking.performer_label}."


# --- Deposit ---

def deposit_submitted_client() -> str:
    return "Deposit Submitted! We've received your confirmation. An admin will verify it shortly."


def deposit_submitted_admin(booking: Booking) -> str:
    return (
        f"Client for booking #{short_id(booking.id)} ({booking.client_name}) has confirmed "
        "deposit payment. Please verify."
    )


def confirmed_client(booking: Booking, balance: float) -> str:
    return (
        f"Booking Confirmed! Your event with {booking.performer_label} is locked in. "
        f"Final balance of {format_money(balance)} due in cash on arrival. "
        f"See you on {format_event_date(booking.event_date)}!"
    )


def confirmed_performer(booking: Booking) -> str:
    lines = [
        "DEPOSIT PAID! Your booking is confirmed:",
        f"Client: {booking.client_name}",
        f"Phone: {booking.client_phone}",
        f"Address: {booking.event_address}",
        f"When: {format_event_date(booking.event_date)}, {booking.event_time}",
        f"Guests: {booking.number_of_guests}",
    ]
    if booking.client_message:
        lines.append(f'Note: "{booking.client_message}"')
    return "\n".join(lines)


def confirmed_admin(booking: Booking) -> str:
    return (
        f"Booking Confirmed for {booking.client_name} with {booking.performer_label} on "
        f"{format_event_date(booking.event_date)}, {booking.event_time}. "
        f"Booking ID: #{short_id(booking.id)}"
    )


# --- Reassignment and overrides ---

def reassigned_admin(client_name: str, old_name: str, new_name: str) -> str:
    return f"Booking for {client_name} has been reassigned from {old_name} to {new_name}."


def reassigned_client(new_name: str) -> str:
    return (
        f"An update on your booking: {new_name} has now been assigned to your event. "
        "We are awaiting their confirmation."
    )


def reassigned_old_performer(client_name: str) -> str:
    return (
        f"Your booking for {client_name} has been reassigned to another performer "
        "by an administrator."
    )


def reassigned_new_performer(client_name: str) -> str:
    return (
        f"You have been newly assigned a booking for {client_name}. "
        "Please review and accept/decline."
    )


def override_performer(decision_past_tense: str, client_name: str) -> str:
    return f"An admin has {decision_past_tense} the booking from {client_name} on your behalf."


# --- Referral fee ---

def referral_fee_paid_admin(performer_name: str, client_name: str) -> str:
    return (
        f"{performer_name} has submitted their referral fee payment for the booking "
        f"with {client_name}."
    )


# --- Block-list and performer status ---

def dns_submitted_admin(submitter: str, client_name: str) -> str:
    return (
        f"New 'Do Not Serve' entry submitted by {submitter} for review "
        f'against "{client_name}".'
    )


def dns_reviewed(client_name: str, submitter: str, status: str) -> str:
    return (
        f"The 'Do Not Serve' submission for '{client_name}' submitted by {submitter} "
        f"has been {status}."
    )


def performer_status_changed(performer_name: str, status: str) -> str:
    return f"{performer_name}'s status changed to {status}."


# --- Outbound SMS / WhatsApp ---

def outbound_new_request(booking: Booking, total_cost: float) -> str:
    return "\n".join([
        "NEW BOOKING REQUEST!",
        f"Booking ID: {short_id(booking.id)}",
        f"Client: {booking.client_name}",
        f"Date: {format_event_date(booking.event_date)}",
        f"Time: {booking.event_time}",
        f"Payment: {format_money(total_cost)}",
        f"Login to your dashboard to accept or decline: {settings.delivery.app_url}",
        f"- {settings.platform_name}",
    ])


def outbound_deposit_request(booking: Booking, deposit: float) -> str:
    return (
        f"{settings.platform_name}: your booking with {booking.performer_label} is approved. "
        f"Please pay the {format_money(deposit)} deposit to lock it in. "
        f"Ref {short_id(booking.id)}."
    )


def outbound_confirmed_client(booking: Booking, balance: float) -> str:
    return (
        f"{settings.platform_name}: booking {short_id(booking.id)} is CONFIRMED for "
        f"{format_event_date(booking.event_date)} at {booking.event_time}. "
        f"Balance of {format_money(balance)} due on arrival."
    )
