from storefront.core.config import Settings, _parse_cors_origins


def test_cors_origins_comma_separated():
    assert _parse_cors_origins(" https://shop.riversidefc.org , http://localhost:3000,") == [
        "https://shop.riversidefc.org",
        "http://localhost:3000",
    ]


def test_cors_origins_json_array():
    assert _parse_cors_origins('["https://a.org", "https://b.org"]') == ["https://a.org", "https://b.org"]


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["https://shop.riversidefc.org"]')
    monkeypatch.setenv("MAX_VARIANTS_PER_PRODUCT", "64")

    s = Settings()

    assert s.CORS_ORIGINS == ["https://shop.riversidefc.org"]
    assert s.MAX_VARIANTS_PER_PRODUCT == 64
    assert s.STRIPE_WEBHOOK_TOLERANCE_SECONDS == 300
