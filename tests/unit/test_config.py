from clinic import config


def test_clean_env_strips_quotes_and_spaces():
    assert config._clean_env('  "abc" ') == "abc"
    assert config._clean_env("`x`") == "x"
    assert config._clean_env(None) == ""

def test_int_env_fallback(monkeypatch):
    monkeypatch.setenv("SOME_PORT", "not-a-number")
    assert config._int_env("SOME_PORT", 42) == 42
    monkeypatch.setenv("SOME_PORT", "8080")
    assert config._int_env("SOME_PORT", 42) == 8080

def test_validate_environment_reports_missing_and_placeholders(monkeypatch):
    monkeypatch.setattr(config, "PAYMENT_GATEWAY", "razorpay")
    monkeypatch.setattr(config, "ADMIN_PASS_HASH", "")
    monkeypatch.setenv("SESSION_SECRET", "x" * 40)
    monkeypatch.setenv("SUPABASE_URL", "https://your_project.supabase.co")
    monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)
    monkeypatch.delenv("RAZORPAY_KEY_SECRET", raising=False)
    monkeypatch.delenv("MAIL_HOST", raising=False)
    monkeypatch.delenv("ADMIN_PASS", raising=False)

    report = config.validate_environment()

    assert "SUPABASE_SERVICE_KEY" in report["missing"]
    assert "RAZORPAY_KEY_SECRET" in report["missing"]
    assert "ADMIN_PASS" in report["missing"]
    assert "SUPABASE_URL" in report["placeholders"]
    assert "MAIL_HOST" in report["mail"]

def test_validate_environment_security_warnings(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SECRET", "short")
    monkeypatch.setattr(config, "IS_PRODUCTION", True)
    monkeypatch.setattr(config, "ADMIN_PASS", "plain")
    monkeypatch.setattr(config, "ADMIN_PASS_HASH", "")
    monkeypatch.setattr(config, "PAYMENT_GATEWAY", "paypal")
    warnings = config.validate_environment()["warnings"]
    assert any("SESSION_SECRET" in w for w in warnings)
    assert any("ADMIN_PASS" in w for w in warnings)
    assert any("PAYMENT_GATEWAY" in w for w in warnings)

def test_mail_configured_rejects_placeholders(monkeypatch):
    for name, value in {
        "MAIL_HOST": "smtp.example.com", "MAIL_USER": "u", "MAIL_PASS": "p",
        "MAIL_FROM_ADDRESS": "a@b.c", "MAIL_TO_ADDRESS": "d@e.f",
    }.items():
        monkeypatch.setattr(config, name, value)
    assert config.mail_configured() is False
    monkeypatch.setattr(config, "MAIL_HOST", "smtp.clinic.in")
    assert config.mail_configured() is True
