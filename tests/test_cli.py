import json

import pytest

from tls_grader import __version__, cli
from tls_grader.errors import ConnectionFailedError
from tls_grader.models import ConnectionInfo
from tls_grader.report import PeerSession, build_report


@pytest.fixture(autouse=True)
def no_trust_store(monkeypatch):
    monkeypatch.setattr(cli, "load_trust_anchors", lambda store: [])
    for var in ("PORT", "TIMEOUT", "TRUST_STORE", "CLOSE_TIMEOUT", "LOG_LEVEL"):
        monkeypatch.delenv(f"TLS_GRADER_{var}", raising=False)


@pytest.mark.parametrize(
    "target,host",
    [
        ("example.com", "example.com"),
        ("https://example.com/path?q=1", "example.com"),
        ("http://Example.COM:8080", "example.com"),
        ("www.example.com/login", "www.example.com"),
        ("  example.com  ", "example.com"),
        ("https://bücher.example/", "xn--bcher-kva.example"),
        ("Bücher.Example", "xn--bcher-kva.example"),
    ],
)
def test_target_to_hostname(target, host):
    assert cli.target_to_hostname(target) == host


@pytest.mark.parametrize("target", ["", "https://", "http:///path", "https://a..b/"])
def test_target_to_hostname_rejects(target):
    with pytest.raises(ValueError, match="Invalid URL format"):
        cli.target_to_hostname(target)


def test_version(capsys):
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == __version__


def test_requires_a_target(capsys):
    assert cli.main([]) == 1
    assert "target" in capsys.readouterr().err


def test_invalid_target(capsys):
    assert cli.main(["https://"]) == 1
    assert "Invalid URL format" in capsys.readouterr().err


def test_report_payload(monkeypatch, capsys, pki):
    seen = {}

    async def fake_inspect(host, *, settings, anchors):
        seen["host"], seen["port"] = host, settings.port
        session = PeerSession(certificates=(pki.leaf, pki.root), protocol="TLSv1.3", cipher="X")
        conn = ConnectionInfo(protocol="TLSv1.3", cipher="X", authorized=True)
        return build_report(host, session, conn)

    monkeypatch.setattr(cli, "inspect_host", fake_inspect)
    assert cli.main(["https://localhost/", "--port", "8443"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert seen == {"host": "localhost", "port": 8443}
    assert payload["target"] == "localhost"
    assert payload["errors"] == []
    assert payload["result"]["grade"] == "A+"
    assert payload["trust_store"] == "mozilla"


def test_error_payload_and_exit_code(monkeypatch, capsys):
    async def fake_inspect(host, *, settings, anchors):
        raise ConnectionFailedError("refused", hostname=host)

    monkeypatch.setattr(cli, "inspect_host", fake_inspect)
    assert cli.main(["a.example", "b.example"]) == 3

    payload = json.loads(capsys.readouterr().out)
    assert [p["target"] for p in payload] == ["a.example", "b.example"]
    assert payload[0]["result"] is None
    assert payload[0]["errors"] == [{"error": "Connection failed: refused", "kind": "ConnectionError"}]


def test_text_output(monkeypatch, capsys, pki):
    async def fake_inspect(host, *, settings, anchors):
        session = PeerSession(certificates=(pki.leaf,), protocol="TLSv1.2", cipher="X")
        conn = ConnectionInfo(protocol="TLSv1.2", cipher="X", authorized=False, authorization_error="unknown CA")
        return build_report(host, session, conn)

    monkeypatch.setattr(cli, "inspect_host", fake_inspect)
    assert cli.main(["localhost", "--format", "text"]) == 0

    out = capsys.readouterr().out
    assert out.startswith("localhost: grade F")
    assert "[FAIL] Trust Status: Not trusted: unknown CA" in out
    assert "[WARN] Certificate Chain: Single certificate (no chain)" in out
    assert "0. End-Entity: CN=localhost, O=Example Org" in out
    assert "localhost, www.localhost" in out
