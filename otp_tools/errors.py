class OtpToolsException(Exception):
    """
    Base class of every error raised by otp_tools
    """
    pass


class ConfigError(OtpToolsException):
    pass


class ImageError(OtpToolsException):
    pass


class ImageOpenError(ImageError):
    pass


class ImageDecodeError(ImageError):
    pass


class QrCodeError(OtpToolsException):
    pass


class QrRecognitionError(QrCodeError):
    pass


class NoQrCodeError(QrCodeError):
    pass


class NotOtpauthError(QrCodeError):
    pass


class CredentialError(OtpToolsException):
    pass


class UriParseError(CredentialError):
    pass


class SchemeError(UriParseError):
    pass


class MissingSecretError(CredentialError):
    pass


class GenerationError(OtpToolsException):
    pass


class ClipboardError(OtpToolsException):
    """
    The only recoverable error: callers log it and carry on
    """
    pass
