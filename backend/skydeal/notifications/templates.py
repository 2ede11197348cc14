"""Plain-text and HTML content for deal e-mails."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from html import escape
from urllib.parse import quote, urlencode

from skydeal.core.config import settings
from skydeal.db.models.deal import Deal
from skydeal.db.models.flight import Flight
from skydeal.db.models.notification import Notification
from skydeal.db.models.user import User
from skydeal.notifications.email_sender import OutgoingEmail

CABIN_LABELS = {
    "economy": "Economy",
    "premium_economy": "Premium Economy",
    "business": "Business",
    "first": "First Class",
}


def format_cabin_class(cabin_class: str) -> str:
    return CABIN_LABELS.get(cabin_class, cabin_class)


def format_duration(minutes: int) -> str:
    return f"{minutes // 60}h {minutes % 60}m"


def _when(value: datetime | None, fmt: str) -> str:
    return value.strftime(fmt) if value else "Unknown"


def _city(flight: Flight, which: str) -> str:
    airport = getattr(flight, f"{which}_airport")
    code = getattr(flight, which)
    return airport.city if airport else code


def _airline_name(flight: Flight) -> str:
    return flight.airline_info.name if flight.airline_info else flight.airline


def _greeting_name(user: User) -> str:
    return user.first_name or "Traveler"


def deal_url(deal: Deal) -> str:
    return f"{settings.FRONTEND_URL}/deals/{deal.id}"


def unsubscribe_url(user: User) -> str:
    return f"{settings.FRONTEND_URL}/unsubscribe?email={quote(user.email)}"


def open_pixel_url(notification: Notification) -> str:
    return f"{settings.API_BASE_URL}{settings.API_V1_PREFIX}/notifications/track/open/{notification.id}"


def click_url(notification: Notification, target: str) -> str:
    query = urlencode({"redirect": target})
    return (
        f"{settings.API_BASE_URL}{settings.API_V1_PREFIX}"
        f"/notifications/track/click/{notification.id}?{query}"
    )


def _deal_fields(deal: Deal) -> dict:
    flight = deal.flight
    return {
        "origin_city": _city(flight, "origin"),
        "origin_code": flight.origin,
        "destination_city": _city(flight, "destination"),
        "destination_code": flight.destination,
        "airline": _airline_name(flight),
        "departure": _when(flight.departure_time, "%a, %b %d at %H:%M"),
        "arrival": _when(flight.arrival_time, "%H:%M"),
        "duration": format_duration(flight.duration_minutes),
        "regular_price": f"${deal.regular_price:,.2f}",
        "current_price": f"${flight.price:,.2f}",
        "discount": deal.discount_percentage,
        "quality": str(getattr(deal.deal_quality, "value", deal.deal_quality)).capitalize(),
        "cabin_class": format_cabin_class(flight.cabin_class),
        "expires": _when(deal.expires_at, "%a, %b %d %H:%M"),
    }


def render_deal_notification(notification: Notification) -> OutgoingEmail:
    """Build the alert e-mail for one pending notification."""
    user = notification.user
    deal = notification.deal
    data = _deal_fields(deal)
    view_url = click_url(notification, deal_url(deal))

    subject = (
        f"Flight Deal Alert: {data['origin_city']} to {data['destination_city']}"
        f" - {data['discount']}% Off!"
    )

    text = (
        "FLIGHT DEAL ALERT!\n\n"
        f"Hello {_greeting_name(user)},\n\n"
        "We've found a flight deal that matches your preferences:\n\n"
        f"{data['origin_city']} ({data['origin_code']}) to "
        f"{data['destination_city']} ({data['destination_code']}) - {data['discount']}% OFF\n\n"
        f"Regular Price: {data['regular_price']}\n"
        f"Current Price: {data['current_price']}\n\n"
        f"Airline: {data['airline']}\n"
        f"Departure: {data['departure']}\n"
        f"Arrival: {data['arrival']}\n"
        f"Duration: {data['duration']}\n"
        f"Cabin Class: {data['cabin_class']}\n"
        f"Deal Quality: {data['quality']}\n"
        f"Expires: {data['expires']}\n\n"
        f"This price is {data['discount']}% lower than the average price for this route!\n\n"
        f"View Deal: {view_url}\n\n"
        "Happy travels!\n"
        f"The {settings.PROJECT_NAME} Team\n\n"
        "---\n"
        f"Unsubscribe: {unsubscribe_url(user)}\n"
        f"Manage preferences: {settings.FRONTEND_URL}/preferences\n"
    )

    e = {key: escape(str(value)) for key, value in data.items()}
    html = f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Flight Deal Alert</title></head>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h1 style="background: #4A90E2; color: #fff; padding: 20px; text-align: center;">Flight Deal Alert!</h1>
  <p>Hello {escape(_greeting_name(user))},</p>
  <p>We've found a flight deal that matches your preferences:</p>
  <div style="background: #f8f8f8; border-radius: 8px; padding: 20px; margin: 20px 0;">
    <div style="font-size: 22px; font-weight: bold;">
      {e['origin_city']} ({e['origin_code']}) to {e['destination_city']} ({e['destination_code']})
      <span style="background: #e74c3c; color: #fff; padding: 4px 8px; border-radius: 4px;">{e['discount']}% OFF</span>
    </div>
    <p>
      <span style="text-decoration: line-through; color: #999;">{e['regular_price']}</span>
      <span style="font-size: 22px; font-weight: bold; color: #e74c3c;">{e['current_price']}</span>
    </p>
    <p>
      <b>Airline:</b> {e['airline']}<br>
      <b>Departure:</b> {e['departure']}<br>
      <b>Arrival:</b> {e['arrival']}<br>
      <b>Duration:</b> {e['duration']}<br>
      <b>Cabin Class:</b> {e['cabin_class']}<br>
      <b>Deal Quality:</b> {e['quality']}<br>
      <b>Expires:</b> {e['expires']}
    </p>
  </div>
  <p>This price is {e['discount']}% lower than the average price for this route!</p>
  <a href="{escape(view_url)}" style="display: inline-block; background: #4A90E2; color: #fff; padding: 12px 24px; text-decoration: none; border-radius: 4px;">View Deal</a>
  <p style="font-size: 12px; color: #999; margin-top: 30px;">
    You're receiving this email because you subscribed to flight deal alerts.
    <a href="{escape(unsubscribe_url(user))}">Unsubscribe</a> or
    <a href="{escape(settings.FRONTEND_URL)}/preferences">manage your preferences</a>.
  </p>
  <img src="{escape(open_pixel_url(notification))}" width="1" height="1" alt="">
</body>
</html>"""

    return OutgoingEmail(to_email=user.email, subject=subject, body_text=text, body_html=html)


def render_weekly_digest(user: User, deals: Sequence[Deal]) -> OutgoingEmail:
    """One e-mail listing the user's best deals of the week."""
    count = len(deals)
    subject = f"Your Weekly Flight Deals - Top {count} Deals This Week"

    lines = []
    items = []
    for deal in deals:
        data = _deal_fields(deal)
        lines.append(
            f"- {data['origin_city']} to {data['destination_city']} on {data['airline']}: "
            f"{data['current_price']} (was {data['regular_price']}, {data['discount']}% off) "
            f"{deal_url(deal)}"
        )
        items.append(
            f"<li><a href=\"{escape(deal_url(deal))}\">{escape(data['origin_city'])} to "
            f"{escape(data['destination_city'])}</a> on {escape(data['airline'])}: "
            f"<b>{escape(data['current_price'])}</b> "
            f"<s>{escape(data['regular_price'])}</s> ({data['discount']}% off)</li>"
        )

    text = (
        f"Hello {_greeting_name(user)},\n\n"
        f"Here are the top {count} flight deals matching your preferences this week:\n\n"
        + "\n".join(lines)
        + f"\n\nUnsubscribe: {unsubscribe_url(user)}\n"
    )
    html = (
        "<!DOCTYPE html><html lang=\"en\"><body style=\"font-family: Arial, sans-serif;\">"
        f"<p>Hello {escape(_greeting_name(user))},</p>"
        f"<p>Here are the top {count} flight deals matching your preferences this week:</p>"
        f"<ul>{''.join(items)}</ul>"
        f"<p style=\"font-size: 12px; color: #999;\"><a href=\"{escape(unsubscribe_url(user))}\">Unsubscribe</a></p>"
        "</body></html>"
    )
    return OutgoingEmail(to_email=user.email, subject=subject, body_text=text, body_html=html)
