import io
import unittest
from unittest import mock
from datetime import datetime, UTC
from otp_tools.credential import Credential
from otp_tools.one_shot import emit


class TestOneShot(unittest.TestCase):

    def test_emit(self):
        credential = Credential(secret="GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", issuer="Example", label="alice")
        out = io.StringIO()
        code = emit(credential, datetime.fromtimestamp(1111111109, tz=UTC), stream=out)
        assert code == "081804"
        assert out.getvalue() == "081804\n"

    def test_emit_now(self):
        credential = Credential(secret="JBSWY3DPEHPK3PXP")
        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            code = emit(credential)
        assert out.getvalue() == code + "\n"
        assert len(code) == 6 and code.isdigit()


if __name__ == "__main__":
    unittest.main()
