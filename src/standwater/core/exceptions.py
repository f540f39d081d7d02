"""
Custom exception hierarchy for the standwater package.
Provides clear error categories and rich error information.
"""
from typing import Optional, Any, Dict
from dataclasses import dataclass


@dataclass
class ErrorContext:
    """Context information for errors"""
    site_id: Optional[str] = None
    step: Optional[int] = None
    component: Optional[str] = None
    operation: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class StandWaterError(Exception):
    """Base exception for all standwater errors"""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        context_str = ""
        if self.context.site_id:
            context_str += f" [Site: {self.context.site_id}]"
        if self.context.step is not None:
            context_str += f" [Step: {self.context.step}]"
        if self.context.component:
            context_str += f" [Component: {self.context.component}]"
        if self.context.operation:
            context_str += f" [Operation: {self.context.operation}]"

        return f"{self.__class__.__name__}: {self.message}{context_str}"


# Configuration errors
class ConfigurationError(StandWaterError):
    """Configuration error"""
    pass


class SoilTextureError(ConfigurationError):
    """Unrecognised soil texture class"""
    pass


# Physics model errors
class PhysicsModelError(StandWaterError):
    """Base class for physics model errors"""
    pass


class ParameterError(PhysicsModelError):
    """Invalid model parameters"""
    pass


# Input errors
class ForcingError(StandWaterError):
    """Meteorological or upstream forcing is missing or malformed"""
    pass


def handle_exception(exc: Exception, context: Optional[ErrorContext] = None) -> StandWaterError:
    """
    Wrap generic exceptions in the StandWaterError hierarchy.
    Useful for catching and categorizing third-party exceptions.
    """
    if isinstance(exc, StandWaterError):
        return exc

    error_map = {
        KeyError: ForcingError,
        FileNotFoundError: ConfigurationError,
        ValueError: ParameterError,
        ZeroDivisionError: PhysicsModelError,
        ArithmeticError: PhysicsModelError,
    }

    for exc_type, mapped_type in error_map.items():
        if isinstance(exc, exc_type):
            return mapped_type(str(exc), context)

    return StandWaterError(str(exc), context)
