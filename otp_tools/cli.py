import sys
import logging
import argparse
from typing import Sequence
from otp_tools import __version__
from otp_tools.qr import read_otpauth_uri
from otp_tools.credential import parse_credential
from otp_tools.settings import SessionSettings
from otp_tools.session import InteractiveSession, signal_cancellation
from otp_tools.one_shot import emit
from otp_tools.errors import OtpToolsException, ImageError, QrCodeError, CredentialError, GenerationError, ConfigError


logger = logging.getLogger(__name__)

PROG = "totp-qr"

DESCRIPTION = """\
This tool extracts TOTP codes from otpauth:// QR images.
It supports both interactive mode (live countdown, code copied to the clipboard)
and one-shot mode for scripting (used when the output is redirected).

Warning: QR codes contain unencrypted secrets. Keep the image files private."""

LOG_FORMAT = "%(asctime)s %(levelname)s %(filename)s:%(lineno)d: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        usage=f"{PROG} <image_file>",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("image", nargs="?", metavar="image_file", help="PNG or JPEG image of an otpauth:// QR code")
    parser.add_argument("--version", action="version", version=f"{PROG} version: {__version__}", help="Show version information")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages to stderr")
    return parser


def configure_logging(verbose: bool=False):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT, stream=sys.stderr)


def is_piped_output(stream=None) -> bool:
    """
    Whether the output goes to a pipe or a file rather than a terminal
    """
    stream = sys.stdout if stream is None else stream
    try:
        return not stream.isatty()
    except (AttributeError, ValueError, OSError) as e:
        logger.warning("Error checking output mode: %s", e)
        return False


def _error_context(error: OtpToolsException) -> str:
    if isinstance(error, (ImageError, QrCodeError)):
        return "Error parsing QR code"
    elif isinstance(error, CredentialError):
        return "Error reading otpauth URL"
    elif isinstance(error, GenerationError):
        return "Error generating TOTP"
    elif isinstance(error, ConfigError):
        return "Error in configuration"
    return "Error"


def run(image_path: str, settings: SessionSettings | None = None) -> int:
    """
    Read the credential from the image and either print one code or start the interactive session
    """
    credential = parse_credential(read_otpauth_uri(image_path))
    if is_piped_output():
        emit(credential)
        return 0
    settings = SessionSettings.from_env() if settings is None else settings
    session = InteractiveSession(credential, settings=settings)
    with signal_cancellation(session.cancel_token):
        session.run()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    if args.image is None:
        logger.error("Error: <image_file> argument is required")
        parser.print_help()
        return 1
    try:
        return run(args.image)
    except OtpToolsException as e:
        logger.error("%s: %s", _error_context(e), e)
        return 1
