"""
Text normalization shared by the adapters.
"""
from bs4 import BeautifulSoup

MAX_DESCRIPTION_LENGTH = 300


def strip_markup(text: str) -> str:
    if not text:
        return ""
    if "<" not in text and "&" not in text:
        return " ".join(text.split())
    soup = BeautifulSoup(text, "html.parser")
    return " ".join(soup.get_text(" ", strip=True).split())


def truncate(text: str, limit: int = MAX_DESCRIPTION_LENGTH, ellipsis: bool = False) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + ("..." if ellipsis else "")


def clean_description(text: str, limit: int = MAX_DESCRIPTION_LENGTH) -> str:
    return truncate(strip_markup(text), limit)
