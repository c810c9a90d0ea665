"""
Formulaire de contact: validation, nettoyage puis envoi SMTP au secrétariat.

- Entrées nettoyées (strip + html.escape) avant validation des longueurs.
- Mail non configuré: en développement le message est journalisé et un avertissement
  est renvoyé; en production MailUnavailable.
- Transport: smtplib (SSL sur 465, STARTTLS sinon), Reply-To = adresse du visiteur.
"""
from email.message import EmailMessage
from typing import Any, Dict
import html
import logging
import smtplib

from pydantic import EmailStr, TypeAdapter, ValidationError

from clinic import config
from clinic.errors import ContactValidationError, MailUnavailable

logger = logging.getLogger(__name__)

NAME_MIN, NAME_MAX = 2, 100
MESSAGE_MIN, MESSAGE_MAX = 10, 2000

_email_adapter = TypeAdapter(EmailStr)

# module clinic.contact.service
def clean_fields(name: Any, email: Any, message: Any) -> Dict[str, str]:
    """Valide et nettoie les champs; ContactValidationError au premier champ invalide."""
    if not name or not email or not message:
        raise ContactValidationError("All fields are required.")
    clean_name = html.escape(str(name).strip())
    clean_message = html.escape(str(message).strip())
    try:
        clean_email = str(_email_adapter.validate_python(str(email).strip())).lower()
    except ValidationError:
        raise ContactValidationError("Please provide a valid email address.")
    if not NAME_MIN <= len(clean_name) <= NAME_MAX:
        raise ContactValidationError(f"Name must be between {NAME_MIN} and {NAME_MAX} characters.")
    if not MESSAGE_MIN <= len(clean_message) <= MESSAGE_MAX:
        raise ContactValidationError(f"Message must be between {MESSAGE_MIN} and {MESSAGE_MAX} characters.")
    return {"name": clean_name, "email": clean_email, "message": clean_message}

def build_message(fields: Dict[str, str]) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = f"New Contact Form Submission from {fields['name']}"
    msg["From"] = f'"{config.MAIL_FROM_NAME}" <{config.MAIL_FROM_ADDRESS}>'
    msg["To"] = config.MAIL_TO_ADDRESS
    msg["Reply-To"] = fields["email"]
    msg.set_content(f"Name: {fields['name']}\nEmail: {fields['email']}\n\nMessage:\n{fields['message']}")
    body = fields["message"].replace("\n", "<br>")
    msg.add_alternative(
        "<p>You have a new contact form submission from:</p>"
        f"<ul><li><strong>Name:</strong> {fields['name']}</li>"
        f"<li><strong>Email:</strong> {fields['email']}</li></ul>"
        f"<p><strong>Message:</strong></p><p>{body}</p>",
        subtype="html",
    )
    return msg

def _connect() -> smtplib.SMTP:
    """Connexion SMTP authentifiée (à fermer par l'appelant)."""
    if config.MAIL_SECURE:
        smtp = smtplib.SMTP_SSL(config.MAIL_HOST, config.MAIL_PORT, timeout=config.MAIL_TIMEOUT_SECONDS)
    else:
        smtp = smtplib.SMTP(config.MAIL_HOST, config.MAIL_PORT, timeout=config.MAIL_TIMEOUT_SECONDS)
    try:
        if not config.MAIL_SECURE:
            smtp.starttls()
        if config.MAIL_USER:
            smtp.login(config.MAIL_USER, config.MAIL_PASS)
    except (smtplib.SMTPException, OSError):
        smtp.close()
        raise
    return smtp

def send_contact_message(name: Any, email: Any, message: Any) -> Dict[str, Any]:
    """
    Envoie le message du formulaire de contact.
    Retour: {"message": ...} (+ "warning" si le mail n'est pas configuré en développement).
    """
    fields = clean_fields(name, email, message)

    if not config.mail_configured():
        logger.warning("contact: mail not configured, submission not sent name=%s email=%s", fields["name"], fields["email"])
        if config.IS_PRODUCTION:
            raise MailUnavailable()
        logger.info("contact: message=%s", fields["message"])
        return {
            "message": "Message received! Email not configured - check server logs for the message.",
            "warning": "Email configuration incomplete. Message logged but not sent.",
        }

    try:
        with _connect() as smtp:
            smtp.send_message(build_message(fields))
    except (smtplib.SMTPException, OSError) as e:
        logger.error("contact: failed to send email: %s", e)
        raise MailUnavailable("Sorry, an error occurred. Please try again later.")
    logger.info("contact: email sent name=%s email=%s", fields["name"], fields["email"])
    return {"message": "Thank you! Your message has been sent."}

def mail_ready() -> bool:
    """True si le serveur SMTP répond et accepte l'authentification."""
    if not config.mail_configured():
        return False
    try:
        with _connect() as smtp:
            smtp.noop()
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("contact.mail_ready failed: %s", e)
        return False
