"""이메일 발송 유틸리티 - SMTP (aiosmtplib).

SMTP 설정은 config.py의 SMTP_* 환경 변수로 관리.
SMTP가 설정되지 않은 경우 메일 내용을 로그로 출력합니다 (console fallback).
"""

import logging
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

import aiosmtplib

from app.config import settings

logger = logging.getLogger(__name__)


async def send_email(
    to: str | list[str],
    subject: str,
    html: str,
    text: str | None = None,
    cc: list[str] | None = None,
    bcc: list[str] | None = None,
) -> str:
    """이메일 발송.

    Args:
        to: 수신자 이메일 주소 또는 목록
        subject: 제목
        html: HTML 본문
        text: 플레인텍스트 본문 (선택)
        cc: 참조 수신자 목록
        bcc: 숨은 참조 수신자 목록

    Returns:
        str: 메시지 ID. SMTP 미설정 시 "simulated-<timestamp>" 형태
    """
    recipients: list[str] = [to] if isinstance(to, str) else list(to)
    message_id: str = make_msgid(domain=settings.SMTP_FROM_EMAIL.split("@")[-1] or None)

    if not settings.smtp_configured:
        # SMTP 미설정 - 콘솔 로그로 대체 (SMTP not configured, log instead)
        logger.warning(
            "SMTP not configured, email logged instead of sent",
            extra={"to": recipients, "cc": cc or [], "subject": subject, "body": text or html},
        )
        return f"simulated-{int(time.time() * 1000)}"

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{settings.SMTP_FROM_EMAIL}>"
    msg["To"] = ", ".join(recipients)
    msg["Message-ID"] = message_id
    if cc:
        msg["Cc"] = ", ".join(cc)

    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    await aiosmtplib.send(
        msg,
        recipients=recipients + (cc or []) + (bcc or []),
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        start_tls=settings.SMTP_PORT != 465,
        use_tls=settings.SMTP_PORT == 465,
    )
    logger.info("Email sent", extra={"to": recipients, "subject": subject})
    return message_id


async def send_verification_code(email: str, code: str) -> None:
    """로그인 인증 코드 메일을 발송합니다.

    Send the six-digit sign-in code. Without SMTP the code is written to the log.
    """
    subject: str = "Your Janus CRM verification code"
    html: str = (
        '<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 40px 20px;">'
        '<h1 style="color: #818cf8;">Janus CRM</h1>'
        "<p>Your verification code is:</p>"
        f'<p style="font-size: 36px; font-weight: bold; letter-spacing: 8px;">{code}</p>'
        f"<p>This code will expire in {settings.VERIFICATION_CODE_TTL_MINUTES} minutes.</p>"
        "<p>If you didn't request this code, you can safely ignore this email.</p>"
        "</div>"
    )

    if not settings.smtp_configured:
        logger.info("Verification code for %s: %s", email, code)
        return

    await send_email(email, subject, html, text=f"Your verification code is {code}")
