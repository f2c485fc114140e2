from __future__ import annotations

import re

TRAIN_IDENTITY_RE = re.compile(r"\d[A-Za-z]\d\d")
TRAIN_UID_RE = re.compile(r"[A-Za-z]\d{5}")


def validate_train_identity(train_identity: str | None) -> bool:
    """
    Проверяет только формат <цифра><буква><цифра><цифра>, а не существование поезда.
    """
    if train_identity is None:
        return False
    return TRAIN_IDENTITY_RE.fullmatch(train_identity) is not None


def validate_train_uid(train_uid: str | None) -> bool:
    """
    Проверяет только формат <буква><5 цифр>.
    """
    if train_uid is None:
        return False
    return TRAIN_UID_RE.fullmatch(train_uid) is not None
