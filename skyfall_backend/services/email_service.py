"""Transactional email via the Brevo SMTP REST API."""

import html

import requests

BREVO_SEND_URL = 'https://api.brevo.com/v3/smtp/email'
DEFAULT_TIMEOUT_SECONDS = 15


def build_verification_email(link, app_name='Sky Fall'):
    """Return ``(subject, html_content, text_content)`` for a verification link."""
    safe_link = html.escape(link, quote=True)
    safe_name = html.escape(app_name)
    subject = f"Verify your {app_name} email"
    html_content = f"""
    <p>Hi,</p>
    <p>Thanks for signing up for {safe_name}! Confirm your email address to unlock referral rewards.</p>
    <p><a href="{safe_link}">Verify my email</a></p>
    <p>This link expires in 24 hours. If you did not create an account, you can ignore this message.</p>
    """.strip()
    text_content = (
        f"Thanks for signing up for {app_name}!\n\n"
        f"Verify your email: {link}\n\n"
        "This link expires in 24 hours."
    )
    return subject, html_content, text_content


def send_transactional_email(
    to_email,
    subject,
    html_content,
    text_content='',
    *,
    api_key,
    sender_email,
    sender_name,
    logger,
    http=requests,
    timeout=DEFAULT_TIMEOUT_SECONDS,
):
    """Send one email. Returns ``(ok, message_id_or_error)`` and never raises."""
    if not api_key or not sender_email:
        return False, 'Email delivery is not configured.'
    if not to_email:
        return False, 'Missing recipient.'

    payload = {
        'sender': {'name': sender_name, 'email': sender_email},
        'to': [{'email': to_email}],
        'subject': subject,
        'htmlContent': html_content,
    }
    if text_content:
        payload['textContent'] = text_content
    headers = {
        'api-key': api_key,
        'accept': 'application/json',
        'content-type': 'application/json',
    }
    try:
        resp = http.post(BREVO_SEND_URL, json=payload, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.error(f"Brevo request failed for {to_email}: {exc}")
        return False, 'Email provider unreachable.'

    try:
        data = resp.json()
    except ValueError:
        data = {}
    if resp.status_code >= 300:
        err_msg = (data.get('message') if isinstance(data, dict) else '') or (resp.text or '')[:300]
        logger.error(f"Brevo send failed ({resp.status_code}) for {to_email}: {err_msg}")
        return False, 'Email provider rejected the message.'
    message_id = data.get('messageId', '') if isinstance(data, dict) else ''
    logger.info(f"📧 Email sent to {to_email} ({message_id or 'no message id'})")
    return True, message_id
