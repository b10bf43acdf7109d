import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def disable_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("time.sleep", lambda *_args, **_kwargs: None)


@pytest.fixture(autouse=True)
def block_external_http(monkeypatch: pytest.MonkeyPatch) -> None:
    import httpx

    _original_send = httpx.Client.send

    def _deny_real_network(self, request, *args, **kwargs):
        if not isinstance(self._transport, httpx.MockTransport):
            raise RuntimeError(f"External HTTP disabled during tests: {request.url}")
        return _original_send(self, request, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "send", _deny_real_network)
