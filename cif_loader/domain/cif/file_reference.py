from __future__ import annotations

import string

_ALNUM = set(string.ascii_letters + string.digits)

_WRAP = {"9": ("0", "1"), "z": ("a", "a"), "Z": ("A", "A")}


def _successor(value: str) -> str:
    """
    Лексический преемник строки: инкремент последнего алфавитно-цифрового
    символа с переносом влево (9->0, z->a, Z->A).
    """
    if not value:
        return value
    chars = list(value)
    pos = _prev_alnum(chars, len(chars) - 1)
    if pos < 0:
        chars[-1] = chr(ord(chars[-1]) + 1)
        return "".join(chars)

    while True:
        current = chars[pos]
        if current not in _WRAP:
            chars[pos] = chr(ord(current) + 1)
            return "".join(chars)
        chars[pos], carry = _WRAP[current]
        left = _prev_alnum(chars, pos - 1)
        if left < 0:
            chars.insert(pos, carry)
            return "".join(chars)
        pos = left


def _prev_alnum(chars: list[str], start: int) -> int:
    pos = start
    while pos >= 0 and chars[pos] not in _ALNUM:
        pos -= 1
    return pos


def next_file_reference(last_file_ref: str) -> str:
    """
    Назначение:
        Следующая ссылка на файл мейнфрейма после last_file_ref.

    Поведение:
        - Последний символ 'Z' -> первые шесть символов + 'A', без переноса
          в предыдущий разряд.
        - Иначе - обычный лексический преемник.
    """
    if last_file_ref[-1:] == "Z":
        return last_file_ref[0:6] + "A"
    return _successor(last_file_ref)
