import hmac
import base64
import hashlib
import binascii
from typing import Literal
from datetime import datetime, UTC
from otp_tools.errors import GenerationError


Algorithm = Literal["SHA1", "SHA256", "SHA512"]

_DIGESTS = {
    "SHA1": hashlib.sha1,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


def _utc(at_time: datetime | None) -> datetime:
    if at_time is None:
        at_time = datetime.now(tz=UTC)
    assert at_time.tzinfo is not None
    return at_time.astimezone(UTC)


def totp_time_interval_index(at_time: datetime | None=None, period_seconds: int=30) -> int:
    """
    Returns the TOTP time interval index (the counter of RFC 6238) for the given time.
    Time-Based One-Time Password Algorithm is an open standard: https://www.rfc-editor.org/rfc/rfc6238
    """
    if period_seconds <= 0:
        raise GenerationError(f"Period must be a positive number of seconds, got {period_seconds}")
    return int(_utc(at_time).timestamp()) // period_seconds


def seconds_remaining(at_time: datetime | None=None, period_seconds: int=30) -> int:
    """
    Returns the number of seconds before the code valid at the given time expires
    """
    return period_seconds - int(_utc(at_time).timestamp()) % period_seconds


def decode_secret(base32_secret: str) -> bytes:
    """
    Decode a base32 shared secret, ignoring case, spaces, and missing padding
    """
    base32_secret = base32_secret.replace(" ", "").rstrip("=")
    base32_secret = base32_secret + "=" * ((8 - len(base32_secret) % 8) % 8)  # 5 bits/char * 8 char = 40 bits = 5 bytes
    try:
        secret = base64.b32decode(base32_secret, casefold=True)
    except (binascii.Error, ValueError) as e:
        raise GenerationError(f"Secret is not valid base32: {e}") from e
    if len(secret) == 0:
        raise GenerationError("Secret decodes to an empty key")
    return secret


def totp_code(base32_secret: str, time_interval_index: int, n_digits: int=6, algorithm: Algorithm="SHA1") -> str:
    """
    Returns the TOTP code for the given time interval index and secret.
    Time-Based One-Time Password Algorithm is an open standard: https://www.rfc-editor.org/rfc/rfc6238
    """
    if n_digits <= 0:
        raise GenerationError(f"Number of digits must be positive, got {n_digits}")
    digest = _DIGESTS.get(algorithm)
    if digest is None:
        raise GenerationError(f"Unsupported hash algorithm '{algorithm}'")
    secret = decode_secret(base32_secret)
    time_bytes = time_interval_index.to_bytes(8, "big")  # Pack counter into 8 bytes (big-endian)
    hmac_hash = hmac.new(secret, time_bytes, digest).digest()
    # Dynamic truncation (RFC 4226 section 5.3)
    offset = hmac_hash[-1] & 0x0F
    chunk = hmac_hash[offset:offset + 4]
    binary = int.from_bytes(chunk, "big") & 0x7fffffff
    return str(binary % (10 ** n_digits)).zfill(n_digits)


def generate(secret: str, period: int, digits: int, algorithm: Algorithm, timestamp: datetime) -> str:
    """
    Returns the code valid at 'timestamp'. Pure function of its inputs.
    """
    return totp_code(secret, totp_time_interval_index(timestamp, period), n_digits=digits, algorithm=algorithm)
