from __future__ import annotations

from fiableauto import main, serve


def test_server_options_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("RELOAD", "yes")
    monkeypatch.setenv("SSL_CERTFILE", "/etc/tls/cert.pem")
    monkeypatch.delenv("SSL_KEYFILE", raising=False)
    monkeypatch.delenv("SSL_KEYFILE_PASSWORD", raising=False)

    options = serve.server_options()

    assert options["port"] == 8080
    assert options["reload"] is True
    assert options["ssl_certfile"] == "/etc/tls/cert.pem"
    assert "ssl_keyfile" not in options


def test_server_defaults(monkeypatch):
    for name in ("PORT", "RELOAD", "SSL_CERTFILE", "SSL_KEYFILE", "SSL_KEYFILE_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    options = serve.server_options()

    assert options["port"] == 3000
    assert options["reload"] is False
    assert options["proxy_headers"] is True


def test_allowed_origins(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://app.fiableauto.fr, https://admin.fiableauto.fr,")
    assert main._allowed_origins() == ["https://app.fiableauto.fr", "https://admin.fiableauto.fr"]

    monkeypatch.delenv("CORS_ALLOWED_ORIGINS")
    assert "http://localhost:3000" in main._allowed_origins()
