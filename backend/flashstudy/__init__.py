"""Flashstudy: AI flashcards with contribution tracking and study sessions."""

__version__ = "0.1.0"
