from config import Settings
from services.domain_registry import DomainPolicy, DomainRegistry


def test_suffix_match_on_subdomain(registry):
    policy = registry.find_policy("https://sub.example.com")
    assert policy is not None
    assert policy.name == "example.com"


def test_exact_origin_matches(registry):
    assert registry.find_policy("https://example.com").name == "example.com"
    assert registry.find_policy("example.com").name == "example.com"


def test_no_match_when_domain_is_not_the_suffix(registry):
    assert registry.find_policy("example.com.evil.org") is None
    assert registry.find_policy("https://example.com.evil.org") is None


def test_no_match_across_label_boundary(registry):
    assert registry.find_policy("https://evilexample.com") is None


def test_empty_origin_is_not_found(registry):
    assert registry.find_policy("") is None
    assert registry.find_policy(None) is None


def test_first_registered_match_wins():
    registry = DomainRegistry([
        DomainPolicy("shop.example.com", secret_v2="first"),
        DomainPolicy("example.com", secret_v2="second"),
    ])

    assert registry.find_policy("https://shop.example.com").secret_v2 == "first"
    assert registry.find_policy("https://www.example.com").secret_v2 == "second"


def test_duplicate_names_are_logged(caplog):
    with caplog.at_level("WARNING"):
        registry = DomainRegistry([
            DomainPolicy("example.com", secret_v2="a"),
            DomainPolicy("example.com", secret_v2="b"),
        ])

    assert registry.find_policy("https://example.com").secret_v2 == "a"
    assert "registered more than once" in caplog.text


def test_policy_capabilities(registry):
    assert registry.find_policy("https://example.com").supports_v3
    assert not registry.find_policy("https://v2only.org").supports_v3
    assert not registry.find_policy("https://nothreshold.net").supports_v3
    assert not registry.find_policy("https://nothreshold.net").supports_v2


def test_cors_decision(registry):
    assert registry.is_origin_allowed("https://app.example.com")
    assert not registry.is_origin_allowed("https://attacker.org")
    assert not registry.is_origin_allowed("")
    assert not registry.is_origin_allowed(None)


def test_built_from_settings():
    settings = Settings(
        _env_file=None,
        domains=[
            {"name": "example.com", "secretKeyV2": "a", "secretKeyV3": "b", "scoreThreshold": 0.7},
            {"name": "other.org", "secret_key_v2": "c"},
        ],
    )

    registry = DomainRegistry.from_settings(settings)

    assert registry.names == ["example.com", "other.org"]
    policy = registry.find_policy("https://example.com")
    assert policy.secret_v3 == "b"
    assert policy.score_threshold == 0.7
    assert registry.find_policy("https://other.org").secret_v2 == "c"
