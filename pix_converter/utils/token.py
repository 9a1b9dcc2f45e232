"""Prism name tokens.

Names of bones, parts, locators, looks and variants are stored as 64-bit
tokens: up to 12 characters packed in base 38, least significant digit
first.
"""

TOKEN_ALPHABET = "\0" "0123456789" "abcdefghijklmnopqrstuvwxyz" "_"
TOKEN_BASE = len(TOKEN_ALPHABET)


def token_to_string(value):
    chars = []
    while value:
        value, digit = divmod(value, TOKEN_BASE)
        chars.append(TOKEN_ALPHABET[digit])
    return "".join(chars).rstrip("\0")


def string_to_token(text):
    """Inverse of :func:`token_to_string` (used to build test fixtures)."""
    value = 0
    for ch in reversed(text):
        digit = TOKEN_ALPHABET.find(ch)
        if digit <= 0:
            raise ValueError(f"Character {ch!r} cannot be stored in a token")
        value = value * TOKEN_BASE + digit
    return value
