"""Email notifier using SMTP."""

import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

from pricewatch.models import DeliveryResult, PriceAlertNotification
from pricewatch.notifiers.base import (
    BaseNotifier,
    format_change_percent,
    format_price,
    format_subject,
    format_timestamp,
)

logger = logging.getLogger(__name__)

UPPER_ALERT_TEMPLATE = """
<html>
<body style="font-family: Arial, sans-serif; background-color: #050505; color: #e5e5e5;">
    <div style="max-width: 600px; margin: 0 auto; padding: 24px; border-radius: 8px;
                background-color: #141414; border-top: 4px solid #0fedbe;">
        <h1 style="color: #0fedbe; font-size: 22px;">Price Above Reached</h1>
        <p style="font-size: 13px; color: #9ca3af;">{timestamp}</p>
        <h2 style="margin-bottom: 4px;">{symbol}</h2>
        <p style="margin-top: 0; color: #9ca3af;">{company}</p>
        <table style="width: 100%; margin: 16px 0;">
            <tr><td>Current Price</td><td style="text-align: right; color: #0fedbe;"><strong>{current_price}</strong></td></tr>
            <tr><td>Target Price</td><td style="text-align: right;">{target_price}</td></tr>
            <tr><td>Change</td><td style="text-align: right;">{change_percent}</td></tr>
        </table>
        <p>{symbol} has risen above your target price of {target_price}.
        This alert is now inactive; reactivate it to keep watching.</p>
    </div>
</body>
</html>
"""

LOWER_ALERT_TEMPLATE = """
<html>
<body style="font-family: Arial, sans-serif; background-color: #050505; color: #e5e5e5;">
    <div style="max-width: 600px; margin: 0 auto; padding: 24px; border-radius: 8px;
                background-color: #141414; border-top: 4px solid #ff495b;">
        <h1 style="color: #ff495b; font-size: 22px;">Price Below Reached</h1>
        <p style="font-size: 13px; color: #9ca3af;">{timestamp}</p>
        <h2 style="margin-bottom: 4px;">{symbol}</h2>
        <p style="margin-top: 0; color: #9ca3af;">{company}</p>
        <table style="width: 100%; margin: 16px 0;">
            <tr><td>Current Price</td><td style="text-align: right; color: #ff495b;"><strong>{current_price}</strong></td></tr>
            <tr><td>Target Price</td><td style="text-align: right;">{target_price}</td></tr>
            <tr><td>Change</td><td style="text-align: right;">{change_percent}</td></tr>
        </table>
        <p>{symbol} has dropped below your target price of {target_price}.
        This alert is now inactive; reactivate it to keep watching.</p>
    </div>
</body>
</html>
"""


class EmailNotifier(BaseNotifier):
    """Send price alert emails via SMTP."""

    def __init__(
        self,
        smtp_server: str | None = None,
        smtp_port: int = 587,
        smtp_username: str | None = None,
        smtp_password: str | None = None,
        from_address: str | None = None,
        from_name: str = "PriceWatch Alerts",
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        """
        Initialize SMTP email notifier.

        Args:
            smtp_server: SMTP server hostname
            smtp_port: SMTP server port (587 for TLS, 465 for SSL, 25 for plain)
            smtp_username: SMTP authentication username
            smtp_password: SMTP authentication password
            from_address: Sender email address
            from_name: Display name of the sender
            use_tls: Whether to use STARTTLS
            timeout: Socket timeout in seconds
        """
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_address = from_address or smtp_username
        self.from_name = from_name
        self.use_tls = use_tls
        self.timeout = timeout

    def _template_values(self, notification: PriceAlertNotification) -> dict[str, str]:
        return {
            "symbol": notification.symbol,
            "company": notification.company,
            "timestamp": format_timestamp(notification.timestamp),
            "current_price": format_price(notification.current_price),
            "target_price": format_price(notification.target_price),
            "change_percent": format_change_percent(notification.change_percent),
        }

    def _format_html_body(self, notification: PriceAlertNotification) -> str:
        template = (
            UPPER_ALERT_TEMPLATE if notification.condition == "greater" else LOWER_ALERT_TEMPLATE
        )
        values = {
            key: html.escape(value) for key, value in self._template_values(notification).items()
        }
        return template.format(**values)

    def _format_text_body(self, notification: PriceAlertNotification) -> str:
        values = self._template_values(notification)
        direction = "above" if notification.condition == "greater" else "below"
        return (
            f"Your price alert for {values['symbol']} has been triggered.\n\n"
            f"{values['company']} ({values['symbol']}) is {direction} "
            f"your target of {values['target_price']}.\n"
            f"Current price: {values['current_price']} ({values['change_percent']})\n"
            f"Triggered: {values['timestamp']}"
        )

    def build_message(self, notification: PriceAlertNotification) -> MIMEMultipart:
        """Build the multipart message for a notification."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = format_subject(notification)
        msg["From"] = formataddr((self.from_name, self.from_address or ""))
        msg["To"] = notification.address
        msg.attach(MIMEText(self._format_text_body(notification), "plain", "utf-8"))
        msg.attach(MIMEText(self._format_html_body(notification), "html", "utf-8"))
        return msg

    def send_price_alert(self, notification: PriceAlertNotification) -> DeliveryResult:
        """Send a price alert email to the notification address."""
        if not self.is_configured():
            return DeliveryResult(success=False, error="SMTP server not configured")

        msg = self.build_message(notification)
        try:
            if self.smtp_port == 465:
                # SSL connection
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(
                    self.smtp_server, self.smtp_port, context=context, timeout=self.timeout
                ) as server:
                    if self.smtp_username and self.smtp_password:
                        server.login(self.smtp_username, self.smtp_password)
                    server.sendmail(self.from_address, [notification.address], msg.as_string())
            else:
                # Plain or STARTTLS connection
                with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                    if self.use_tls:
                        server.starttls()
                    if self.smtp_username and self.smtp_password:
                        server.login(self.smtp_username, self.smtp_password)
                    server.sendmail(self.from_address, [notification.address], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Price alert email for %s failed: %s", notification.symbol, e)
            return DeliveryResult(success=False, error=str(e) or type(e).__name__)

        logger.info("Price alert email sent to %s for %s", notification.address, notification.symbol)
        return DeliveryResult(success=True)

    def is_configured(self) -> bool:
        """Check if email sending is properly configured."""
        return bool(self.smtp_server and self.from_address)
