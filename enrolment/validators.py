import re
from typing import Optional

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


class IsbnValidator:
    """ISBN-10 / ISBN-13 checks for the optional ``isbn`` of a book."""

    @staticmethod
    def normalize(raw: Optional[str]) -> str:
        if raw is None:
            return ""
        return re.sub(r"[^0-9Xx]", "", raw).upper()

    @staticmethod
    def is_valid(isbn: Optional[str]) -> bool:
        digits = IsbnValidator.normalize(isbn)
        if len(digits) == 10:
            if not digits[:-1].isdigit():
                return False
            check = digits[-1]
            if check != "X" and not check.isdigit():
                return False
            # weights 10..1, X counts as 10
            total = sum((10 - i) * int(ch) for i, ch in enumerate(digits[:-1]))
            total += 10 if check == "X" else int(check)
            return total % 11 == 0
        if len(digits) == 13 and digits.isdigit():
            total = sum((1 if i % 2 == 0 else 3) * int(ch) for i, ch in enumerate(digits[:-1]))
            return (10 - total % 10) % 10 == int(digits[-1])
        return False


class StudentValidator:
    """Field rules for student names and email addresses."""

    @staticmethod
    def normalize_email(email: Optional[str]) -> str:
        return (email or "").strip().lower()

    @staticmethod
    def is_valid_email(email: Optional[str]) -> bool:
        return bool(_EMAIL_RE.match(StudentValidator.normalize_email(email)))

    @staticmethod
    def is_valid_name(name: Optional[str]) -> bool:
        # must contain at least one letter, digits-only names are rejected
        if name is None:
            return False
        stripped = name.strip()
        return bool(stripped) and any(c.isalpha() for c in stripped)

    @staticmethod
    def sanitize_text(text: Optional[str]) -> str:
        if text is None:
            return ""
        return re.sub(r"<[^>]*>", "", text).strip()


class CatalogueValidator:
    """Field rules for book titles and authors."""

    @staticmethod
    def is_valid_title(title: Optional[str]) -> bool:
        return bool(title and title.strip())

    @staticmethod
    def is_valid_author(author: Optional[str]) -> bool:
        # must not be digits only
        if author is None:
            return False
        stripped = author.strip()
        return bool(stripped) and not stripped.isdigit()
