"""Identifier rules for apps, components and capabilities."""

import re

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
CAPABILITY_ID_PATTERN = re.compile(
    r"^[a-z0-9]+(?:-[a-z0-9]+)*(?:\.[a-z0-9]+(?:-[a-z0-9]+)*)+$"
)

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CASE_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Kebab-case slug of a folder or class name.

    >>> slugify("HelloWorld")
    'hello-world'
    >>> slugify("HTTPServer")
    'http-server'
    >>> slugify("order_desk")
    'order-desk'
    """
    text = _ACRONYM_BOUNDARY.sub(r"\1-\2", name)
    text = _CASE_BOUNDARY.sub(r"\1-\2", text)
    text = _NON_ALNUM.sub("-", text.lower())
    return text.strip("-")


def is_valid_slug(value: str) -> bool:
    return bool(SLUG_PATTERN.match(value))


def is_valid_capability_id(value: str) -> bool:
    return bool(CAPABILITY_ID_PATTERN.match(value))


def snake_case(name: str) -> str:
    """``InvoiceServiceInterface`` -> ``invoice_service_interface``."""
    return slugify(name).replace("-", "_")


def pascal_case(name: str) -> str:
    """``order_desk`` -> ``OrderDesk``."""
    return "".join(part.capitalize() for part in slugify(name).split("-"))


def table_token(value: str) -> str:
    """Slug or app id as it appears inside a table name."""
    return value.replace("-", "_")
