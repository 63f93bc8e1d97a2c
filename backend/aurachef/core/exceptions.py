"""
Exception classes for the recipe recovery pipeline
"""


class RecipeRecoveryError(Exception):
    """Base exception for recipe output recovery"""
    kind = "recovery_error"


class EmptyOutputError(RecipeRecoveryError):
    """Raised when the generator returned nothing worth parsing"""
    kind = "empty_output"

    def __init__(self, length: int = 0):
        self.length = length
        super().__init__(f"AI returned empty output ({length} chars)")


class StructuralExtractionError(RecipeRecoveryError):
    """Raised when no JSON array/object boundaries exist in the text"""
    kind = "structural_extraction"

    def __init__(self, shape: str):
        self.shape = shape
        super().__init__(f"Could not locate JSON {shape} brackets")


class DecodeError(RecipeRecoveryError):
    """Raised when both strict and lenient decoding failed"""
    kind = "decode"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Final parse failure after JSON & JSON5 attempts: {reason}")


class UnrecoverableParseError(RecipeRecoveryError):
    """Raised when retry and salvage are exhausted"""
    kind = "unrecoverable_parse"

    def __init__(self, reason: str, salvaged: int = 0):
        self.reason = reason
        self.salvaged = salvaged
        super().__init__(f"AI response parsing failed: {reason}")


class GenerationClientError(RecipeRecoveryError):
    """Raised when the generation client cannot be used"""
    kind = "engine_offline"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"AI Engine Initialization Failed. Reason: {reason}")
