"""Pickup token and collection code generation."""
import re
import secrets

from canteen.core.errors import ValidationError

OTP_LENGTH = 6
TOKEN_LENGTH = 6
# No 0/O or 1/I so tokens can be read out loud at the counter
TOKEN_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"

_OTP_PATTERN = re.compile(r"[0-9]{6}")


def generate_otp() -> str:
    """Generate a uniform random 6-digit code, leading zeros kept."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def generate_token() -> str:
    """Generate a short human-readable pickup reference."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def check_otp_format(otp: str) -> str:
    """Return the code unchanged, or raise ValidationError if it is not exactly 6 digits."""
    if not otp or not _OTP_PATTERN.fullmatch(otp):
        raise ValidationError("OTP must be 6 digits")
    return otp


def otp_matches(stored: str, supplied: str) -> bool:
    """Constant-time comparison of collection codes."""
    return secrets.compare_digest(stored.encode(), supplied.encode())
