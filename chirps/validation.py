"""
chirps/validation.py -- Body rules applied before a chirp is stored.

Two rules:
  - bodies longer than MAX_CHIRP_LENGTH characters are rejected;
  - profane words are masked with "****". Matching is case-insensitive and
    word-based: the body is split on single spaces, so "Kerfuffle!" (with
    punctuation attached) is left alone.
"""

from __future__ import annotations

MAX_CHIRP_LENGTH = 140

PROFANE_WORDS: frozenset[str] = frozenset({"kerfuffle", "sharbert", "fornax"})

_MASK = "****"


class ChirpTooLong(ValueError):
    pass


def clean_body(body: str, banned: frozenset[str] = PROFANE_WORDS) -> str:
    """Return body with every banned word replaced by ****."""
    words = body.split(" ")
    return " ".join(_MASK if word.lower() in banned else word for word in words)


def validate_body(body: str) -> str:
    """Enforce the length limit and return the cleaned body.

    Raises ChirpTooLong if the body exceeds MAX_CHIRP_LENGTH.
    """
    if len(body) > MAX_CHIRP_LENGTH:
        raise ChirpTooLong(f"Chirp is too long (max {MAX_CHIRP_LENGTH} characters)")
    return clean_body(body)
