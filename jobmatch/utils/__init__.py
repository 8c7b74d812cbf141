"""Utility modules."""

from .parser import extract_json, normalize_profile, parse_profile_response

__all__ = ["extract_json", "normalize_profile", "parse_profile_response"]
