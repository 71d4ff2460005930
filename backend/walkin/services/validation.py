"""
Signup and password rules shared by the auth endpoints.
Error helpers return the first failing rule's message, or None.
"""
import re
from typing import Optional

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_LETTER_RE = re.compile(r"[a-zA-Z]")
_DIGIT_RE = re.compile(r"[0-9]")

PASSWORD_MIN_LENGTH = 8
NAME_MIN_LENGTH = 2

WEAK_PASSWORDS = frozenset([
    "111111", "123456", "123456789", "12345678", "1234567890",
    "password", "password123", "qwerty", "abc123", "000000",
    "654321", "123123", "888888", "666666", "555555",
    "admin", "admin123", "root", "test", "guest",
    "1q2w3e4r", "qwertyuiop", "asdfghjkl", "zxcvbnm",
])


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def validate_password(password: str) -> bool:
    """
    A valid password is at least 8 characters, contains a letter and a
    digit, and is not on the common weak-password list.
    """
    return get_password_error(password) is None


def is_weak_password(password: str) -> bool:
    """Used to warn existing users whose password predates the rules"""
    return not validate_password(password)


def validate_password_match(password: str, confirm_password: str) -> bool:
    return password == confirm_password


def validate_name(name: str) -> bool:
    return len(name.strip()) >= NAME_MIN_LENGTH


def get_email_error(email: str) -> Optional[str]:
    if not email:
        return "이메일을 입력해주세요"
    if not validate_email(email):
        return "올바른 이메일 형식이 아닙니다"
    return None


def get_password_error(password: str) -> Optional[str]:
    if not password:
        return "비밀번호를 입력해주세요"
    if len(password) < PASSWORD_MIN_LENGTH:
        return "비밀번호는 최소 8자 이상이어야 합니다"
    if not _LETTER_RE.search(password):
        return "비밀번호에 영문자를 포함해야 합니다"
    if not _DIGIT_RE.search(password):
        return "비밀번호에 숫자를 포함해야 합니다"
    if password.lower() in WEAK_PASSWORDS:
        return "너무 흔한 비밀번호입니다. 다른 비밀번호를 사용해주세요"
    return None


def get_password_confirm_error(password: str, confirm_password: str) -> Optional[str]:
    if not confirm_password:
        return "비밀번호 확인을 입력해주세요"
    if not validate_password_match(password, confirm_password):
        return "비밀번호가 일치하지 않습니다"
    return None


def get_name_error(name: str) -> Optional[str]:
    if not name:
        return "이름을 입력해주세요"
    if not validate_name(name):
        return "이름은 최소 2자 이상이어야 합니다"
    return None
