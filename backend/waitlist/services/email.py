import logging
import smtplib
from email.message import EmailMessage
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from waitlist.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_PATH = Path(__file__).parent.parent / "templates" / "emails"
env = Environment(loader=FileSystemLoader(TEMPLATE_PATH), autoescape=select_autoescape(["html", "xml", "html.j2"]))

WELCOME_SUBJECT = "Welcome to Orbit!"


def _build_message(to_email: str, subject: str, text_body: str, html_body: str | None = None) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


def send_email(to_email: str, subject: str, text_body: str, html_body: str | None = None) -> bool:
    if not settings.smtp_enabled:
        return False
    msg = _build_message(to_email, subject, text_body, html_body)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_username and settings.smtp_password:
                smtp.login(settings.smtp_username, settings.smtp_password)
            smtp.send_message(msg)
        return True
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning("Email send failed: %s", exc)
        return False


def render_template(template_name: str, context: dict) -> tuple[str, str]:
    base_text = env.get_template("base.txt.j2")
    base_html = env.get_template("base.html.j2")
    context = {"site_url": settings.site_url.rstrip("/"), **context}
    body_text = env.get_template(template_name).render(**context)
    body_html = env.get_template(template_name.replace(".txt.j2", ".html.j2")).render(**context)
    return base_text.render(body=body_text, **context), base_html.render(body=body_html, **context)


def send_welcome_email(to_email: str) -> bool:
    """Send the "you're on the list" confirmation to a new subscriber."""
    text_body, html_body = render_template("welcome.txt.j2", {"title": "Welcome to Orbit"})
    sent = send_email(to_email, WELCOME_SUBJECT, text_body, html_body)
    if not sent:
        logger.warning("Welcome email not sent", extra={"smtp_enabled": settings.smtp_enabled})
    return sent
