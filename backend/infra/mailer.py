"""
Transport SMTP unique, construit au démarrage (lifespan) puis injecté dans les pipelines.

- Port 465: TLS implicite (SMTP_SSL), sinon STARTTLS.
- verify_config(): échoue au démarrage (ConfigurationError) si un paramètre manque ou est invalide.
- Les mots de passe ne sont jamais journalisés.
"""
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import parseaddr
from typing import Optional

from backend import config
from backend.utils.errors import ConfigurationError, NetworkError, UpstreamError

logger = logging.getLogger(__name__)


def _looks_like_email(value: str) -> bool:
    _, addr = parseaddr(value or "")
    if "@" not in addr:
        return False
    local, _, domain = addr.rpartition("@")
    return bool(local) and "." in domain and " " not in addr


@dataclass(frozen=True)
class MailSettings:
    host: str
    port: str
    user: str
    password: str
    sender: str
    admin_email: str

    @classmethod
    def from_config(cls) -> "MailSettings":
        return cls(
            host=config.EMAIL_HOST,
            port=config.EMAIL_PORT,
            user=config.EMAIL_USER,
            password=config.EMAIL_PASS,
            sender=config.EMAIL_FROM,
            admin_email=config.ADMIN_EMAIL,
        )


class Mailer:
    def __init__(self, settings: MailSettings, timeout: float = 10.0):
        self.settings = settings
        self.timeout = timeout

    @property
    def admin_email(self) -> str:
        return self.settings.admin_email

    @property
    def port(self) -> int:
        return int(self.settings.port)

    def verify_config(self) -> None:
        """
        Vérifie la présence et le format des paramètres SMTP.
        Lève ConfigurationError en listant les variables manquantes (jamais leurs valeurs).
        """
        required = {
            "EMAIL_HOST": self.settings.host,
            "EMAIL_PORT": self.settings.port,
            "EMAIL_USER": self.settings.user,
            "EMAIL_PASS": self.settings.password,
            "EMAIL_FROM": self.settings.sender,
            "ADMIN_EMAIL": self.settings.admin_email,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Configuration e-mail incomplète: {', '.join(missing)}")
        try:
            port = int(self.settings.port)
        except ValueError:
            raise ConfigurationError("EMAIL_PORT doit être un entier")
        if not 1 <= port <= 65535:
            raise ConfigurationError("EMAIL_PORT hors plage (1-65535)")
        if not _looks_like_email(self.settings.sender):
            raise ConfigurationError("EMAIL_FROM n'est pas une adresse e-mail valide")
        if not _looks_like_email(self.settings.admin_email):
            raise ConfigurationError("ADMIN_EMAIL n'est pas une adresse e-mail valide")

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.settings.host, self.port, timeout=self.timeout, context=context)
        else:
            server = smtplib.SMTP(self.settings.host, self.port, timeout=self.timeout)
            server.starttls(context=context)
        server.login(self.settings.user, self.settings.password)
        return server

    def check_connection(self) -> None:
        """Ouvre puis ferme une session SMTP authentifiée (échec => ConfigurationError)."""
        try:
            server = self._connect()
            server.quit()
        except (smtplib.SMTPException, OSError) as e:
            raise ConfigurationError(f"Connexion SMTP impossible: {type(e).__name__}")

    def send(self, *, to: str, subject: str, html: str, text: Optional[str] = None, reply_to: Optional[str] = None) -> None:
        msg = EmailMessage()
        msg["From"] = self.settings.sender
        msg["To"] = to
        msg["Subject"] = subject
        if reply_to:
            msg["Reply-To"] = reply_to
        msg.set_content(text or "Ce message est au format HTML.")
        msg.add_alternative(html, subtype="html")
        try:
            server = self._connect()
            try:
                server.send_message(msg)
            finally:
                server.quit()
        except (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError) as e:
            raise NetworkError(f"SMTP injoignable: {type(e).__name__}")
        except smtplib.SMTPException as e:
            raise UpstreamError(f"Envoi SMTP refusé: {type(e).__name__}")
        except OSError as e:
            raise NetworkError(f"SMTP injoignable: {type(e).__name__}")
        logger.info("mailer.send ok subject=%s", subject)
