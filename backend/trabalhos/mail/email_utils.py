import re
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import requests
from flask import current_app

from ..config.logging_config import app_logger


def _send_sendgrid(cfg, from_addr, subject, body_html, body_text, recipients, from_name=None):
    api_key = cfg.get('SENDGRID_API_KEY')
    if not api_key:
        raise ValueError('SendGrid não configurado: defina SENDGRID_API_KEY.')

    content = []
    if body_text:
        content.append({"type": "text/plain", "value": body_text})
    elif body_html:
        content.append({"type": "text/plain", "value": re.sub(r"<[^>]+>", "", body_html)})
    if body_html:
        content.append({"type": "text/html", "value": body_html})

    payload = {
        "from": {"email": from_addr, **({"name": from_name} if from_name else {})},
        "personalizations": [{
            "to": [{"email": r} for r in recipients],
            "subject": subject,
        }],
        "content": content or [{"type": "text/plain", "value": subject}],
    }

    base = cfg.get('SENDGRID_ENDPOINT', 'https://api.sendgrid.com')
    url = f"{base.rstrip('/')}/v3/mail/send"
    try:
        resp = requests.post(
            url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
            timeout=10,
        )
    except requests.RequestException as e:
        app_logger.error(f"Falha de rede no envio via SendGrid: {e}")
        raise

    if resp.status_code != 202:
        raise RuntimeError(f"SendGrid falhou ({resp.status_code}): {resp.text}")
    app_logger.info(f"E-mail (SendGrid) enviado para {recipients}")
    return True


def send_email_global(subject, body_html, recipients, from_name=None, body_text=None):
    """
    Envia um e-mail usando a configuração global.
    Suporta drivers: 'smtp' (padrão) e 'sendgrid' (HTTP API).
    Retorna True em caso de sucesso; lança exceção em falha.
    """
    cfg = current_app.config
    driver = (cfg.get('EMAIL_DRIVER') or 'smtp').lower()

    from_addr = cfg.get('SMTP_FROM') or cfg.get('SMTP_USER')
    if not from_addr:
        raise ValueError('Configuração de e-mail inválida: remetente (SMTP_FROM) ausente.')

    if driver == 'sendgrid':
        return _send_sendgrid(cfg, from_addr, subject, body_html, body_text, recipients, from_name)

    host = cfg.get('SMTP_HOST')
    if not host:
        raise ValueError('SMTP global não configurado (host ausente).')
    port = int(cfg.get('SMTP_PORT', 587))
    user = cfg.get('SMTP_USER')
    password = cfg.get('SMTP_PASSWORD')

    msg = MIMEMultipart('alternative')
    msg['Subject'] = subject
    msg['From'] = f"{from_name} <{from_addr}>" if from_name else from_addr
    msg['To'] = ", ".join(recipients)
    if body_text:
        msg.attach(MIMEText(body_text, 'plain'))
    if body_html:
        msg.attach(MIMEText(body_html, 'html'))

    try:
        if cfg.get('SMTP_USE_SSL', False):
            server = smtplib.SMTP_SSL(host, port, context=ssl.create_default_context(), timeout=10)
        else:
            server = smtplib.SMTP(host, port, timeout=10)
            if cfg.get('SMTP_USE_TLS', True):
                server.starttls()
        with server:
            if user and password:
                server.login(user, password)
            server.sendmail(from_addr, recipients, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        app_logger.error(f"Falha no envio de e-mail (SMTP): {e}")
        raise

    app_logger.info(f"E-mail (SMTP) enviado para {recipients}")
    return True
