# src/shared/__init__.py
"""
Общий код: DTO и Pydantic-модели.
"""

__all__: list[str] = []
