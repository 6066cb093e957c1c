from .token_validator import TokenValidator, ValidationResult

__all__ = ["TokenValidator", "ValidationResult"]
