"""
MFA Service

TOTP secrets, provisioning QR codes, code verification, secret-at-rest
encryption and single-use backup codes.

TOTP secrets must round-trip (they are checked on every login), so they are
encrypted with a process-wide key. Backup codes only ever need equality
checks, so they are stored as SHA-256 digests.
"""

import base64
import hashlib
import hmac
import io
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import pyotp
import qrcode
from cryptography.fernet import Fernet, InvalidToken

from src.domain.entities import Account

logger = logging.getLogger(__name__)

TOTP_DIGITS = 6
TOTP_INTERVAL = 30
TOTP_VALID_WINDOW = 2  # +/- 2 steps (60 seconds) of clock drift
SECRET_LENGTH = 32  # base32 chars, 160 bits
BACKUP_CODE_COUNT = 10
BACKUP_CODE_LENGTH = 8
BACKUP_CODE_ALPHABET = string.ascii_uppercase + string.digits


class SecretDecryptionError(Exception):
    """Stored MFA secret could not be decrypted (wrong key or tampered data)"""


@dataclass(frozen=True)
class MFASecret:
    secret: str
    provisioning_uri: str
    manual_entry_key: str


class MFAService:
    """
    Stateless MFA engine.

    Args:
        encryption_key: Process-wide key used for every secret encrypt/decrypt
        issuer: Issuer name shown by authenticator apps
    """

    def __init__(self, encryption_key: str, issuer: str = "BookIt App"):
        if not encryption_key:
            raise ValueError("MFA encryption key must not be empty")
        derived = hashlib.sha256(encryption_key.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(derived))
        self.issuer = issuer

    # ------------------------------------------------------------------
    # TOTP
    # ------------------------------------------------------------------

    def generate_secret(self, label: str) -> MFASecret:
        """Generate a fresh base32 secret bound to label (account email) and issuer"""
        secret = pyotp.random_base32(length=SECRET_LENGTH)
        uri = pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL).provisioning_uri(
            name=label, issuer_name=self.issuer
        )
        return MFASecret(secret=secret, provisioning_uri=uri, manual_entry_key=secret)

    def generate_qr_code(self, provisioning_uri: str) -> str:
        """Render a provisioning URI as a PNG data URL"""
        qr = qrcode.QRCode(version=1, box_size=10, border=4)
        qr.add_data(provisioning_uri)
        qr.make(fit=True)
        image = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        data = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{data}"

    def verify_code(
        self, code: Optional[str], secret: Optional[str], for_time: Optional[datetime] = None
    ) -> bool:
        """
        Verify a 6-digit TOTP code, tolerating 2 steps of drift either way.

        Any fault (malformed secret, bad input) counts as a failed verification.
        """
        if not code or not secret:
            return False
        code = code.strip()
        if len(code) != TOTP_DIGITS or not code.isdigit():
            return False
        try:
            totp = pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL)
            return totp.verify(code, for_time=for_time, valid_window=TOTP_VALID_WINDOW)
        except Exception:
            logger.warning("TOTP verification failed with an error", exc_info=True)
            return False

    def current_code(self, secret: str, for_time: Optional[datetime] = None) -> str:
        """TOTP code for the given moment (now by default); aware datetimes expected"""
        totp = pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL)
        if for_time is None:
            return totp.now()
        return totp.at(for_time)

    # ------------------------------------------------------------------
    # Secret-at-rest encryption
    # ------------------------------------------------------------------

    def encrypt_secret(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt_secret(self, ciphertext: str) -> str:
        try:
            return self._fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")
        except (InvalidToken, ValueError, UnicodeError) as exc:
            raise SecretDecryptionError("Failed to decrypt MFA secret") from exc

    # ------------------------------------------------------------------
    # Backup codes
    # ------------------------------------------------------------------

    def generate_backup_codes(self, count: int = BACKUP_CODE_COUNT) -> List[str]:
        """Generate distinct high-entropy codes; shown to the user exactly once"""
        codes: List[str] = []
        while len(codes) < count:
            code = "".join(
                secrets.choice(BACKUP_CODE_ALPHABET) for _ in range(BACKUP_CODE_LENGTH)
            )
            if code not in codes:
                codes.append(code)
        return codes

    @staticmethod
    def hash_backup_code(code: str) -> str:
        normalized = code.strip().upper()
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()

    def verify_backup_code(self, code: Optional[str], hashed_codes: List[str]) -> bool:
        if not code or not hashed_codes:
            return False
        digest = self.hash_backup_code(code)
        return any(hmac.compare_digest(digest, stored) for stored in hashed_codes)

    def remove_backup_code(self, code: str, hashed_codes: List[str]) -> List[str]:
        """Return the codes without the matching digest (no-op when absent)"""
        digest = self.hash_backup_code(code)
        return [stored for stored in hashed_codes if stored != digest]

    @staticmethod
    def is_mfa_required(account: Account) -> bool:
        return account.mfa_required
