"""
Tests for challenge page detection.

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|---------------------|---------------------------------------|-----------------|-------|
| TC-CP-N-01 | Cloudflare interstitial | Equivalence – normal | True, "cloudflare" | - |
| TC-CP-N-02 | Turnstile widget | Equivalence – normal | True, "turnstile" | - |
| TC-CP-N-03 | reCAPTCHA widget | Equivalence – normal | True, "recaptcha" | - |
| TC-CP-N-04 | hCaptcha iframe | Equivalence – normal | True, "hcaptcha" | - |
| TC-CP-N-05 | PerimeterX block | Equivalence – normal | True, "blocked" | - |
| TC-CP-N-06 | Tiny cf-ray page | Equivalence – headers | True | - |
| TC-CP-A-01 | Part detail page | Equivalence – abnormal | False | - |
| TC-CP-A-02 | CAPTCHA mention only | Equivalence – abnormal | False | false positive test |
| TC-CP-B-01 | Empty content | Boundary – empty | False | - |
"""

import pytest

from partscout.crawler.challenge_detector import detect_challenge_type, is_challenge_page

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("html", "expected_type"),
    [
        (
            "<title>Just a moment...</title><script>window._cf_chl_opt={}</script>",
            "cloudflare",
        ),
        (
            '<div class="cf-turnstile" data-sitekey="0x4AAA"></div>',
            "turnstile",
        ),
        (
            '<div class="g-recaptcha" data-sitekey="6Lc"></div>',
            "recaptcha",
        ),
        (
            '<iframe src="https://hcaptcha.com/captcha/v1"></iframe>',
            "hcaptcha",
        ),
        (
            '<div id="px-captcha"></div><p>Press and hold</p>',
            "blocked",
        ),
    ],
    ids=["TC-CP-N-01", "TC-CP-N-02", "TC-CP-N-03", "TC-CP-N-04", "TC-CP-N-05"],
)
def test_challenge_pages_detected_and_classified(html: str, expected_type: str) -> None:
    """Given a challenge page, When inspected, Then it is detected with the right type."""
    assert is_challenge_page(html) is True
    assert detect_challenge_type(html) == expected_type


def test_small_cloudflare_page_with_ray_header_is_challenge() -> None:
    """Test TC-CP-N-06: Given a tiny body behind Cloudflare with cf-ray, When inspected, Then True."""
    html = "<html><body><div>One moment</div></body></html>"
    headers = {"server": "cloudflare", "cf-ray": "8a1b2c3d4e5f-IAD"}

    assert is_challenge_page(html, headers) is True


def test_part_page_is_not_challenge(part_page_html: str) -> None:
    """Test TC-CP-A-01: Given a real part page, When inspected, Then False."""
    assert is_challenge_page(part_page_html) is False


def test_captcha_mention_is_not_challenge() -> None:
    """Test TC-CP-A-02: Given prose mentioning CAPTCHA, When inspected, Then False."""
    html = "<p>Our checkout never asks you to solve a CAPTCHA or reCAPTCHA.</p>"

    assert is_challenge_page(html) is False


def test_empty_content_is_not_challenge() -> None:
    """Test TC-CP-B-01: Given empty content, When inspected, Then False."""
    assert is_challenge_page("") is False
