"""Custom exceptions for template compilation and evaluation."""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for errors raised while compiling a template."""

    def __init__(
        self,
        message: str,
        *,
        template: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message)
        self.template = template
        self.position = position


class TemplateSyntaxError(TemplateError):
    """Raised when a template or interpolation token is malformed."""


class UnknownFilterError(TemplateError):
    """Raised when a pipeline names a filter missing from the registry."""

    def __init__(self, filter_name: str, *, template: str | None = None) -> None:
        super().__init__(f"Unknown filter: {filter_name}", template=template)
        self.filter_name = filter_name


class UnquotedFormatArgumentError(TemplateError):
    """Raised when a format filter receives a bare pattern argument."""

    def __init__(
        self,
        filter_name: str,
        argument: str,
        *,
        template: str | None = None,
    ) -> None:
        super().__init__(
            f"Format pattern for '{filter_name}' must be quoted, got: {argument}",
            template=template,
        )
        self.filter_name = filter_name
        self.argument = argument


class FilterArgumentError(TemplateError):
    """Raised when filter arguments do not match the filter's parameters."""

    def __init__(self, filter_name: str, message: str, *, template: str | None = None) -> None:
        super().__init__(f"Invalid arguments for '{filter_name}': {message}", template=template)
        self.filter_name = filter_name


class InvalidFormatPatternError(TemplateError):
    """Raised when a number/time pattern cannot be parsed into a formatter."""

    def __init__(self, family: str, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid {family} format pattern {pattern!r}: {reason}")
        self.family = family
        self.pattern = pattern


class FilterValueError(ValueError):
    """Raised at evaluation when a format filter gets an unsupported value.

    Only raised when the engine runs with ``format_error_mode: raise``.
    """

    def __init__(self, filter_name: str, value: object) -> None:
        super().__init__(f"Filter '{filter_name}' cannot format {type(value).__name__}: {value!r}")
        self.filter_name = filter_name
        self.value = value
