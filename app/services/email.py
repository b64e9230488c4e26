"""Transactional email.

Templates live in ``settings.EMAIL_TEMPLATES_DIR`` and are rendered with
Jinja2. Delivery goes through a backend chosen by ``settings.EMAIL_BACKEND``:
``console`` logs the message (tests hand it a list to collect into), ``brevo``
posts it to the Brevo transactional API.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app import models
from app.core.config import settings
from app.core.monitoring import metrics

logger = logging.getLogger(__name__)

env = Environment(
    loader=FileSystemLoader(settings.EMAIL_TEMPLATES_DIR),
    autoescape=select_autoescape(['html', 'xml'])
)


class EmailDeliveryError(Exception):
    pass


def render_template(template_name: str, context: Dict[str, Any]) -> str:
    template = env.get_template(template_name)
    return template.render(
        project_name=settings.PROJECT_NAME,
        frontend_url=settings.FRONTEND_URL,
        year=datetime.utcnow().year,
        **context,
    )


class ConsoleEmailBackend:
    """Logs messages; only keeps them when given an ``outbox`` list to fill."""

    def __init__(self, outbox: Optional[List[Dict[str, Any]]] = None):
        self.outbox = outbox

    async def send(self, to_email: str, subject: str, html_content: str, **extra: Any) -> None:
        logger.info(f"Email to {to_email}: {subject}")
        if self.outbox is not None:
            self.outbox.append(
                {"to": to_email, "subject": subject, "html": html_content, **extra}
            )


class BrevoEmailBackend:
    def __init__(
        self,
        api_key: str,
        api_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.transport = transport

    async def send(self, to_email: str, subject: str, html_content: str, **extra: Any) -> None:
        payload = {
            "sender": {
                "name": settings.EMAIL_SENDER_NAME,
                "email": settings.EMAIL_SENDER_ADDRESS,
            },
            "to": [{"email": to_email, "name": extra.get("to_name") or to_email}],
            "subject": subject,
            "htmlContent": html_content,
        }
        headers = {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=10.0) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Brevo rejected email to {to_email}: {e}") from e


def build_backend():
    if settings.EMAIL_BACKEND == "brevo":
        return BrevoEmailBackend(settings.BREVO_API_KEY, settings.BREVO_API_URL)
    return ConsoleEmailBackend()


class EmailService:
    """Service for sending templated emails"""

    def __init__(self, backend=None):
        self.backend = backend or build_backend()

    async def send(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        to_name: Optional[str] = None,
    ) -> None:
        html_content = render_template(template_name, context)
        await self.backend.send(
            to_email,
            subject,
            html_content,
            to_name=to_name,
            template=template_name,
            context=context,
        )
        metrics.increment("emails.sent", tags={"template": template_name})

    async def send_application_received(self, owner: models.User, business: models.Business) -> None:
        await self.send(
            owner.email,
            "We received your business application",
            "application_received.html",
            {"name": owner.name, "business_name": business.business_name},
            to_name=owner.name,
        )

    async def send_business_approved(
        self, owner: models.User, business: models.Business, token: str
    ) -> None:
        await self.send(
            owner.email,
            "Your business has been approved",
            "business_approved.html",
            {
                "name": owner.name,
                "business_name": business.business_name,
                "set_password_url": f"{settings.FRONTEND_URL}/set-password?token={token}",
                "token": token,
                "expiry_hours": settings.BUSINESS_INVITE_EXPIRE_HOURS,
            },
            to_name=owner.name,
        )

    async def send_business_rejected(self, owner: models.User, business: models.Business) -> None:
        await self.send(
            owner.email,
            "Update on your business application",
            "business_rejected.html",
            {
                "name": owner.name,
                "business_name": business.business_name,
                "review_note": business.review_note,
                "help_url": f"{settings.FRONTEND_URL}/help/business-guidelines",
            },
            to_name=owner.name,
        )

    async def send_password_reset(self, user: models.User, token: str) -> None:
        await self.send(
            user.email,
            "Reset your password",
            "password_reset.html",
            {
                "name": user.name,
                "reset_url": f"{settings.FRONTEND_URL}/reset-password?token={token}",
                "token": token,
                "expiry_minutes": settings.PASSWORD_RESET_EXPIRE_MINUTES,
            },
            to_name=user.name,
        )

    async def send_otp(self, user: models.User, code: str) -> None:
        await self.send(
            user.email,
            "Your verification code",
            "otp.html",
            {
                "name": user.name,
                "code": code,
                "expiry_minutes": settings.OTP_EXPIRE_MINUTES,
            },
            to_name=user.name,
        )


email_service = EmailService()
