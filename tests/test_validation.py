import pytest

from core.domain.errors import DomainValidationError
from core.services.validation import MAX_DOMAIN_LENGTH, is_valid_domain, validate_domain


@pytest.mark.parametrize(
    "domain",
    ["example.com", "sub.example.com", "a-b.c-d.example.co", "xn--bcher-kva.example", "EXAMPLE.ORG"],
)
def test_accepts_host_shaped_domains(domain):
    request = validate_domain(domain)

    assert request.domain == domain


@pytest.mark.parametrize(
    "domain",
    [
        "localhost",
        "example",
        "-bad.example.com",
        "bad-.example.com",
        "exa_mple.com",
        "example.c",
        "example.c0m",
        "example..com",
        ".example.com",
        "example.com.",
        "https://example.com",
        "example.com/path",
        "exa mple.com",
    ],
)
def test_rejects_malformed_domains(domain):
    with pytest.raises(DomainValidationError):
        validate_domain(domain)


def test_empty_domain_fails_first():
    with pytest.raises(DomainValidationError, match="empty"):
        validate_domain("")


def test_length_is_checked_before_syntax():
    label = "a" * 63
    too_long = ".".join([label, label, label, label]) + ".com"
    assert len(too_long) > MAX_DOMAIN_LENGTH

    with pytest.raises(DomainValidationError, match="maximum length"):
        validate_domain(too_long)


def test_label_longer_than_63_chars_is_rejected():
    assert not is_valid_domain("a" * 64 + ".com")
    assert is_valid_domain("a" * 63 + ".com")


def test_request_is_immutable():
    request = validate_domain("example.com")

    with pytest.raises(Exception):
        request.domain = "other.com"
