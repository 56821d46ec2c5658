"""
Helpers for deriving organisation domains from email addresses.
"""

from typing import Iterable, List, Optional


def extract_domain(email: Optional[str]) -> str:
    """
    Return the lowercased domain part of an email address.

    Args:
        email: Address such as ``john@Acme.com``

    Returns:
        ``acme.com``, or an empty string when the address has no ``@``
    """
    if not email or "@" not in email:
        return ""
    return email.split("@", 1)[1].strip().lower()


def extract_company(email: Optional[str]) -> str:
    """Company label for an address; currently the full domain."""
    return extract_domain(email)


def unique_companies(emails: Iterable[Optional[str]]) -> List[str]:
    """Distinct non-empty companies in first-seen order."""
    seen: List[str] = []
    for email in emails:
        company = extract_company(email)
        if company and company not in seen:
            seen.append(company)
    return seen
