import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "email_templates")
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(["html"]))


class EmailDispatcher:
    """Sends transactional email over SMTP using the HTML templates in email_templates/."""

    def __init__(self, settings: Settings = default_settings):
        self.settings = settings

    def render(self, template_name: str, context: dict) -> str:
        template = env.get_template(template_name)
        return template.render(app_name=self.settings.APP_NAME, **context)

    def send_email(self, to_email: str, subject: str, template_name: str, context: dict) -> bool:
        try:
            html_content = self.render(template_name, context)

            msg = MIMEMultipart()
            msg['From'] = self.settings.mail_sender
            msg['To'] = to_email
            msg['Subject'] = subject

            msg.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.settings.SMTP_SERVER, self.settings.SMTP_PORT) as server:
                if self.settings.SMTP_USE_TLS:
                    server.starttls()
                if self.settings.SMTP_USER:
                    server.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD)
                server.sendmail(self.settings.mail_sender, to_email, msg.as_string())
            logger.info("Sent %s to %s", template_name, to_email)
            return True
        except Exception:
            logger.exception("Failed to send %s to %s", template_name, to_email)
            return False

    def send_otp_email(self, to_email: str, otp: str, user_name: Optional[str] = None) -> bool:
        return self.send_email(
            to_email=to_email,
            subject=f"Your OTP for {self.settings.APP_NAME} Registration",
            template_name="otp_verification.html",
            context={
                "otp": otp,
                "user_name": user_name or "there",
                "expires_in_minutes": self.settings.OTP_EXPIRE_MINUTES,
            }
        )

    def send_welcome_email(self, to_email: str, user_name: str) -> bool:
        return self.send_email(
            to_email=to_email,
            subject=f"Welcome to {self.settings.APP_NAME}!",
            template_name="welcome.html",
            context={"user_name": user_name}
        )
