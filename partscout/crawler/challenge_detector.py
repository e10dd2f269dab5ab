"""Anti-bot challenge page detection for rendered pages."""

from collections.abc import Mapping

# Patterns that indicate an ACTIVE challenge, not a reference to one
_CLOUDFLARE_INDICATORS = (
    "cf-browser-verification",
    "_cf_chl_opt",
    "checking your browser before accessing",
    "please wait while we verify your browser",
    "ray id:</strong>",
)

_CAPTCHA_INDICATORS = (
    'src="https://hcaptcha.com',
    'src="https://www.hcaptcha.com',
    "data-sitekey=",
    'class="h-captcha"',
    'class="g-recaptcha"',
    'id="captcha-container"',
    "grecaptcha.execute",
    "hcaptcha.execute",
)

_TURNSTILE_INDICATORS = (
    'class="cf-turnstile"',
    "challenges.cloudflare.com/turnstile",
)

# Akamai / PerimeterX block pages served in place of content
_BLOCK_INDICATORS = (
    "access denied</title>",
    "px-captcha",
    "_pxhd",
    "reference&#32;&#35;",
)


def is_challenge_page(content: str, headers: Mapping[str, str] | None = None) -> bool:
    """Check if a rendered page is a challenge/captcha page.

    Cookie banners and article text that merely mention CAPTCHA services
    must not match, so only widget containers, challenge scripts and
    challenge-page wording are considered.

    Args:
        content: Page HTML.
        headers: Response headers (lower-cased keys), if known.

    Returns:
        True if a challenge was detected.
    """
    if not content:
        return False

    content_lower = content.lower()

    if any(ind in content_lower for ind in _CLOUDFLARE_INDICATORS):
        return True

    if "just a moment" in content_lower and (
        "cloudflare" in content_lower or "_cf_" in content_lower
    ):
        return True

    if any(ind in content_lower for ind in _CAPTCHA_INDICATORS):
        return True

    if any(ind in content_lower for ind in _TURNSTILE_INDICATORS):
        return True

    if any(ind in content_lower for ind in _BLOCK_INDICATORS):
        return True

    # Challenge pages behind Cloudflare are tiny and carry a cf-ray header
    headers = headers or {}
    server = headers.get("server", "").lower()
    if "cloudflare" in server and headers.get("cf-ray") and len(content) < 5000:
        if "<body" in content_lower and content_lower.count("<div") < 10:
            return True

    return False


def detect_challenge_type(content: str) -> str:
    """Classify a page already known to be a challenge.

    Args:
        content: Page HTML.

    Returns:
        One of "turnstile", "hcaptcha", "recaptcha", "captcha", "blocked",
        "js_challenge" or "cloudflare".
    """
    content_lower = content.lower()

    if any(ind in content_lower for ind in _TURNSTILE_INDICATORS):
        return "turnstile"

    if 'src="https://hcaptcha.com' in content_lower or 'class="h-captcha"' in content_lower:
        return "hcaptcha"

    if 'class="g-recaptcha"' in content_lower or "grecaptcha.execute" in content_lower:
        return "recaptcha"

    if "data-sitekey=" in content_lower:
        if "hcaptcha" in content_lower:
            return "hcaptcha"
        if "recaptcha" in content_lower:
            return "recaptcha"
        return "captcha"

    if any(ind in content_lower for ind in _BLOCK_INDICATORS):
        return "blocked"

    if "just a moment" in content_lower and "cloudflare" in content_lower:
        return "js_challenge"

    return "cloudflare"
