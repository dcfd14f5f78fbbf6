import re
import logging
from datetime import datetime
from urllib.parse import urlparse, parse_qs, unquote_plus, ParseResult
from pydantic import BaseModel, ConfigDict, PositiveInt
from otp_tools.totp import Algorithm, generate
from otp_tools.errors import UriParseError, SchemeError, MissingSecretError


logger = logging.getLogger(__name__)

DEFAULT_PERIOD = 30


class Credential(BaseModel):
    """
    Shared secret and display information read from an otpauth:// URI.
    https://github.com/google/google-authenticator/wiki/Key-Uri-Format
    """
    model_config = ConfigDict(frozen=True)

    secret: str
    period: PositiveInt = DEFAULT_PERIOD
    digits: PositiveInt = 6
    algorithm: Algorithm = "SHA1"
    issuer: str = ""
    label: str = ""

    def __repr__(self):
        return f"{type(self).__name__}(issuer={self.issuer!r}, label={self.label!r}, period={self.period}, digits={self.digits}, algorithm={self.algorithm})"

    def __str__(self):
        return self.provider

    @classmethod
    def from_uri(cls, raw_uri: str) -> "Credential":
        """
        Parse an otpauth:// URI. The 'period' falls back to its default when invalid,
        the 'secret' is mandatory.
        """
        try:
            uri = urlparse(raw_uri)
        except ValueError as e:
            raise UriParseError(f"Failed to parse otpauth URL: {e}") from e
        if uri.scheme != "otpauth":
            raise SchemeError(f"Expected the 'otpauth' scheme, got '{uri.scheme}'")
        query = parse_qs(uri.query, keep_blank_values=True)
        secret = _first(query, "secret")
        if not secret:
            raise MissingSecretError("No secret found in the otpauth URL")
        issuer, label = extract_issuer_and_label(uri)
        credential = cls(secret=secret, period=extract_period(query), issuer=issuer, label=label)
        logger.debug("Parsed %r", credential)
        return credential

    @property
    def provider(self) -> str:
        """
        Display name of the account: 'issuer (label)', or only the issuer when they are the same
        """
        if self.issuer and self.label and self.issuer.casefold() != self.label.casefold():
            return f"{self.issuer} ({self.label})"
        return self.issuer

    def code_at(self, timestamp: datetime) -> str:
        """
        Returns the code valid at the given time
        """
        return generate(self.secret, self.period, self.digits, self.algorithm, timestamp)


def _first(query: dict[str, list[str]], key: str) -> str:
    values = query.get(key)
    return values[0] if values else ""


def extract_period(query: dict[str, list[str]]) -> int:
    """
    Read the 'period' parameter, falling back to the default if it is absent, not an integer, or not positive
    """
    value = _first(query, "period")
    if not re.fullmatch(r"[+-]?[0-9]+", value):
        return DEFAULT_PERIOD
    period = int(value)
    return period if period > 0 else DEFAULT_PERIOD


def extract_issuer_and_label(uri: ParseResult) -> tuple[str, str]:
    """
    Returns the (issuer, label) of the URI.
    The issuer is the 'issuer' parameter if any, otherwise the path prefix before the first ':'.
    The label is always the path suffix after the first ':', independently of the 'issuer' parameter.
    Without ':' in the path, the whole path is used for both.
    """
    path = unquote_plus(uri.path.removeprefix("/"))
    prefix, colon, suffix = path.partition(":")
    issuer = _first(parse_qs(uri.query, keep_blank_values=True), "issuer")
    if not issuer:
        issuer = prefix
    label = suffix if colon else path
    return issuer, label.strip()


def parse_credential(raw_uri: str) -> Credential:
    return Credential.from_uri(raw_uri)
