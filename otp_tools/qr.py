import cv2
import pathlib
import logging
import numpy as np
from PIL import Image, UnidentifiedImageError
from otp_tools.errors import ImageOpenError, ImageDecodeError, QrRecognitionError, NoQrCodeError, NotOtpauthError


logger = logging.getLogger(__name__)

OTPAUTH_PREFIX = "otpauth://"


def load_image(path: str | pathlib.Path) -> Image.Image:
    """
    Open and fully decode a PNG/JPEG image from disk
    """
    try:
        f = open(path, "rb")
    except OSError as e:
        raise ImageOpenError(f"Failed to open image '{path}': {e}") from e
    with f:
        try:
            image = Image.open(f)
            image.load()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ImageDecodeError(f"Failed to decode image '{path}': {e}") from e
    logger.debug("Decoded %s image of size %sx%s", image.format, *image.size)
    return image


def decode_qr_payloads(image: Image.Image) -> list[str]:
    """
    Returns the payloads of all QR codes recognized in the image, in detection order
    """
    pixels = np.asarray(image.convert("L"), dtype=np.uint8)
    detector = cv2.QRCodeDetector()
    try:
        found, payloads, _, _ = detector.detectAndDecodeMulti(pixels)
        payloads = [p for p in payloads if p] if found else []
        if not payloads:
            payload, _, _ = detector.detectAndDecode(pixels)
            payloads = [payload] if payload else []
    except cv2.error as e:
        raise QrRecognitionError(f"Failed to recognize QR code: {e}") from e
    return payloads


def read_otpauth_uri(path: str | pathlib.Path) -> str:
    """
    Returns the otpauth:// URI stored in the first QR code of the image file
    """
    payloads = decode_qr_payloads(load_image(path))
    if len(payloads) == 0:
        raise NoQrCodeError("No QR code found in the image")
    payload = payloads[0]
    logger.debug("Found %d QR code(s)", len(payloads))
    if not payload.startswith(OTPAUTH_PREFIX):
        raise NotOtpauthError("QR code does not contain an otpauth URL")
    return payload
