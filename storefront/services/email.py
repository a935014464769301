"""Transactional email via Resend.

The Resend SDK is synchronous, so sends run in a worker thread.
"""

import asyncio
import base64
import os
from html import escape
from typing import Any, Dict, List, Optional

import resend

from storefront.logging_config import get_logger

logger = get_logger(__name__)


class EmailService:
    """Send transactional emails through Resend.

    Usage:
        email = EmailService()
        await email.send_newsletter_welcome("reader@example.com", unsubscribe_url)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_address: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or os.environ.get("RESEND_API_KEY", "")
        self.from_address = from_address or os.environ.get(
            "EMAIL_FROM_ADDRESS", "Storefront <orders@example.com>"
        )
        self.base_url = (base_url or os.environ.get("FRONTEND_URL", "http://localhost:3000")).rstrip("/")
        resend.api_key = self.api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _send(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> Optional[str]:
        """Send one email and return the Resend message id."""
        params: Dict[str, Any] = {
            "from": self.from_address,
            "to": to,
            "subject": subject,
            "html": html,
        }
        if attachments:
            params["attachments"] = attachments

        response = await asyncio.to_thread(resend.Emails.send, params)
        email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info("Email sent", extra={"email_id": email_id, "subject": subject})
        return email_id

    async def send_newsletter_welcome(self, email: str, unsubscribe_token: str) -> Optional[str]:
        """Welcome a new or returning newsletter subscriber."""
        unsubscribe_url = f"{self.base_url}/newsletter/unsubscribe?token={unsubscribe_token}"
        html = f"""
            <h1>Welcome to our newsletter</h1>
            <p>Thanks for subscribing. You'll hear about new products and offers first.</p>
            <p style="color:#808080;font-size:12px">
                Don't want these emails? <a href="{escape(unsubscribe_url)}">Unsubscribe</a>.
            </p>
        """
        return await self._send(email, "Welcome to the newsletter", html)

    async def send_invoice(
        self,
        email: str,
        invoice_number: str,
        order_number: str,
        total: str,
        pdf_bytes: bytes,
    ) -> Optional[str]:
        """Email an invoice PDF as an attachment."""
        html = f"""
            <h1>Your invoice</h1>
            <p>Thank you for your order <strong>{escape(order_number)}</strong>.</p>
            <p>Invoice {escape(invoice_number)} for {escape(total)} is attached.</p>
        """
        attachment = {
            "filename": f"invoice-{invoice_number}.pdf",
            "content": base64.b64encode(pdf_bytes).decode("ascii"),
        }
        return await self._send(
            email,
            f"Invoice {invoice_number} for order {order_number}",
            html,
            attachments=[attachment],
        )

    async def send_order_message(
        self,
        to: str,
        subject: str,
        message: str,
        order_number: str,
    ) -> Optional[str]:
        """Send a free-form message from staff about an order."""
        body = escape(message).replace("\n", "<br>")
        html = f"""
            <p>{body}</p>
            <p><strong>Order number: {escape(order_number)}</strong></p>
            <p>Thank you for your business!</p>
        """
        return await self._send(to, subject, html)
