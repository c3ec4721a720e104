"""Input validation schemas with XSS checks.

User text is stored as sent; escaping is left to whatever renders it.
"""

from pydantic import BaseModel, Field, field_validator
import re


class SafeStringMixin:
    """Mixin for XSS-safe string validation"""

    @staticmethod
    def validate_no_script(value: str) -> str:
        """Block common XSS patterns"""
        if not value:
            return value

        dangerous_patterns = [
            r'<script[^>]*>',
            r'javascript:',
            r'<[^>]*\bon\w+\s*=',  # event handler attributes inside a tag
            r'<iframe',
        ]

        for pattern in dangerous_patterns:
            if re.search(pattern, value, re.IGNORECASE):
                raise ValueError("Invalid characters detected")

        return value


class SearchQuerySchema(BaseModel, SafeStringMixin):
    """Validated free-text catalog search"""
    query: str = Field(..., min_length=1, max_length=200)
    page: int = Field(1, ge=1, le=500)

    @field_validator('query')
    @classmethod
    def clean_query(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Query cannot be blank")
        return cls.validate_no_script(v)
