# 메일 발송 서비스
# - 템플릿 이름으로 제목/본문(텍스트 + HTML)을 만들어 SMTP로 발송
# - 현재는 비밀번호 재설정 메일에만 사용

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Dict

from starlette.concurrency import run_in_threadpool

from ..core.config import settings
from ..core.exceptions import UpstreamFailure
from ..core.retry import create_retry_decorator

logger = logging.getLogger(__name__)

# 템플릿: (제목, 텍스트 본문, HTML 본문), str.format 으로 채움
TEMPLATES = {
    "password-reset": (
        "Your password reset link",
        (
            "Hello {name},\n\n"
            "You have requested a password reset. Please open the link below to continue.\n\n"
            "{reset_url}\n\n"
            "This link is valid for {ttl_minutes} minutes. If you didn't request this email, please ignore it."
        ),
        (
            "<p>Hello {name},</p>"
            "<p>You have requested a password reset. Please click the following button to continue.</p>"
            '<p><a href="{reset_url}" style="display:inline-block;padding:10px 20px;'
            'background:#303030;color:#fff;text-decoration:none;">Reset my Password</a></p>'
            "<p>If you can't click the button, copy this link into your browser: {reset_url}</p>"
            "<p>This link is valid for {ttl_minutes} minutes. If you didn't request this email, please ignore it.</p>"
        ),
    ),
}


def render(template_name: str, template_data: Dict[str, Any]):
    try:
        subject, text, html = TEMPLATES[template_name]
    except KeyError:
        raise ValueError(f"unknown mail template: {template_name}")
    escaped = {key: escape(str(value)) for key, value in template_data.items()}
    return subject.format(**template_data), text.format(**template_data), html.format(**escaped)


def build_message(recipient: str, subject: str, text: str, html: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.SMTP_FROM
    msg["To"] = recipient
    msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))
    return msg


@create_retry_decorator(
    max_attempts=settings.MAIL_SEND_ATTEMPTS,
    initial_wait=1.0,
    max_wait=10.0,
    exceptions=(smtplib.SMTPException, OSError),
)
def _deliver(recipient: str, msg: MIMEMultipart) -> None:
    server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10)
    try:
        if settings.SMTP_TLS:
            server.starttls()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.sendmail(settings.SMTP_FROM, [recipient], msg.as_string())
    finally:
        server.quit()


class MailService:
    async def send(self, recipient: str, template_name: str, template_data: Dict[str, Any]) -> None:
        subject, text, html = render(template_name, template_data)
        msg = build_message(recipient, subject, text, html)
        try:
            await run_in_threadpool(_deliver, recipient, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"[MailService] 메일 발송 실패: to={recipient} template={template_name} ({e})")
            raise UpstreamFailure("smtp", "Failed to send email. Please try again later.") from e
        logger.info(f"[MailService] 메일 발송: to={recipient} template={template_name}")


def get_mail_service() -> MailService:
    return MailService()
