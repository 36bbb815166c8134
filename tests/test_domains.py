import pytest

from relgraph.utils.domains import (
    candidates_for_domains,
    domain_candidates,
    humanize_domain,
    is_common_email_provider,
    registrable_domain,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "domain, expected",
    [
        ("mail.acme.com", "acme.com"),
        ("acme.com", "acme.com"),
        ("foo.acme.co.uk", "acme.co.uk"),
        ("a.b.acme.com.au", "acme.com.au"),
        ("deep.sub.acme.io", "acme.io"),
        ("https://www.acme.com/x", "acme.com"),
        ("", None),
    ],
)
def test_registrable_domain(domain, expected):
    assert registrable_domain(domain) == expected


@pytest.mark.unit
def test_domain_candidates_order_and_dedupe():
    assert domain_candidates("mail.acme.com") == ["mail.acme.com", "acme.com", "www.acme.com"]
    assert domain_candidates("acme.com") == ["acme.com", "www.acme.com"]
    assert domain_candidates("https://www.acme.com") == ["acme.com", "www.acme.com"]
    assert domain_candidates(None) == []


@pytest.mark.unit
def test_candidates_for_domains_unions_in_first_seen_order():
    assert candidates_for_domains(["eu.acme.com", "acme.com", None]) == [
        "eu.acme.com",
        "acme.com",
        "www.acme.com",
    ]


@pytest.mark.unit
@pytest.mark.parametrize(
    "domain, expected",
    [
        ("gmail.com", True),
        ("outlook.co.uk", True),
        ("Yahoo.com", True),
        ("acme.com", False),
        ("mail.hooli.xyz", False),
        ("mail.com", True),
        ("eu.gmail.com", True),
        (None, False),
    ],
)
def test_is_common_email_provider(domain, expected):
    assert is_common_email_provider(domain) is expected


@pytest.mark.unit
def test_humanize_domain():
    assert humanize_domain("acme-labs.com") == "Acme Labs"
    assert humanize_domain("https://www.stripe.com") == "Stripe"
    assert humanize_domain("mail.hooli.xyz") == "Hooli"
    assert humanize_domain(None) == ""
