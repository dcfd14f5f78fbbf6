import sys
from datetime import datetime, UTC
from typing import TextIO
from otp_tools.credential import Credential


def emit(credential: Credential, now: datetime | None = None, stream: TextIO | None = None) -> str:
    """
    Print the current code alone on its line, for use in shell pipelines
    """
    code = credential.code_at(datetime.now(tz=UTC) if now is None else now)
    print(code, file=sys.stdout if stream is None else stream)
    return code
