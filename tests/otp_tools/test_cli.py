import io
import os
import unittest
from unittest import mock
from contextlib import redirect_stdout
from otp_tools import __version__
from otp_tools.cli import main, is_piped_output
from otp_tools.credential import Credential
from otp_tools.errors import NoQrCodeError
from otp_tools._check_fail_context import check_fail


OTP_URL = "otpauth://totp/Example:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"


class TestCLI(unittest.TestCase):

    def test_version(self):
        out = io.StringIO()
        with redirect_stdout(out), check_fail(SystemExit) as exited:
            main(["--version"])
        assert exited.exception.code == 0
        assert out.getvalue().strip() == f"totp-qr version: {__version__}"

    def test_help(self):
        out = io.StringIO()
        with redirect_stdout(out), check_fail(SystemExit) as exited:
            main(["--help"])
        assert exited.exception.code == 0
        assert "usage: totp-qr <image_file>" in out.getvalue()
        assert "unencrypted secrets" in out.getvalue()

    def test_missing_argument(self):
        out = io.StringIO()
        with redirect_stdout(out), self.assertLogs("otp_tools.cli", level="ERROR") as logs:
            assert main([]) == 1
        assert "argument is required" in logs.output[0]
        assert "usage:" in out.getvalue()

    def test_bad_path(self):
        with self.assertLogs("otp_tools.cli", level="ERROR") as logs:
            assert main([os.path.join("does", "not", "exist.png")]) == 1
        assert "Error parsing QR code" in logs.output[0]

    @mock.patch("otp_tools.cli.is_piped_output", return_value=True)
    @mock.patch("otp_tools.cli.read_otpauth_uri", return_value=OTP_URL)
    def test_one_shot(self, read_otpauth_uri, is_piped_output):
        out = io.StringIO()
        with redirect_stdout(out):
            assert main(["qr.png"]) == 0
        read_otpauth_uri.assert_called_once_with("qr.png")
        code = out.getvalue()
        assert code.endswith("\n")
        assert len(code.strip()) == 6 and code.strip().isdigit()
        assert "Provider" not in code

    @mock.patch("otp_tools.cli.InteractiveSession")
    @mock.patch("otp_tools.cli.is_piped_output", return_value=False)
    @mock.patch("otp_tools.cli.read_otpauth_uri", return_value=OTP_URL)
    def test_interactive(self, read_otpauth_uri, is_piped_output, session):
        session.return_value.cancel_token = mock.MagicMock()
        with mock.patch.dict(os.environ, {"OTP_TOOLS_REFRESH_LIMIT": "5"}):
            assert main(["qr.png"]) == 0
        credential, = session.call_args.args
        assert credential == Credential.from_uri(OTP_URL)
        assert session.call_args.kwargs["settings"].refresh_limit == 5
        session.return_value.run.assert_called_once_with()

    @mock.patch("otp_tools.cli.is_piped_output", return_value=False)
    @mock.patch("otp_tools.cli.read_otpauth_uri", return_value=OTP_URL)
    def test_invalid_settings(self, read_otpauth_uri, is_piped_output):
        with mock.patch.dict(os.environ, {"OTP_TOOLS_TICK_SECONDS": "-1"}), self.assertLogs("otp_tools.cli", level="ERROR") as logs:
            assert main(["qr.png"]) == 1
        assert "Error in configuration" in logs.output[0]

    @mock.patch("otp_tools.cli.read_otpauth_uri", return_value="otpauth://totp/Example:alice?issuer=Example")
    def test_missing_secret(self, read_otpauth_uri):
        with self.assertLogs("otp_tools.cli", level="ERROR") as logs:
            assert main(["qr.png"]) == 1
        assert "No secret found" in logs.output[0]

    @mock.patch("otp_tools.cli.read_otpauth_uri", side_effect=NoQrCodeError("No QR code found in the image"))
    def test_no_qr_code(self, read_otpauth_uri):
        with self.assertLogs("otp_tools.cli", level="ERROR") as logs:
            assert main(["blank.png"]) == 1
        assert "No QR code found" in logs.output[0]


class TestOutputMode(unittest.TestCase):

    def test_piped(self):
        assert is_piped_output(io.StringIO())

    def test_terminal(self):
        terminal = mock.MagicMock()
        terminal.isatty.return_value = True
        assert not is_piped_output(terminal)

    def test_closed_stream(self):
        stream = io.StringIO()
        stream.close()
        with self.assertLogs("otp_tools.cli", level="WARNING"):
            assert not is_piped_output(stream)


if __name__ == "__main__":
    unittest.main()
