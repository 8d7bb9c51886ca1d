# lotus/procedural/errors.py

"""
Error taxonomy for the procedural event pipeline.

Only LibraryEmptyError is allowed to stop the program (at startup).
Everything under GenerationError is caught by the generator and retried.
"""


class ProceduralError(Exception):
    """Base class for every error raised by the procedural package."""
    pass


class ConfigError(ProceduralError):
    pass


class ConfigParseError(ConfigError):
    """A single source or situation entry could not be parsed."""

    def __init__(self, source, message, index=None):
        self.source = source
        self.index = index
        where = f"{source}[{index}]" if index is not None else source
        super().__init__(f"{where}: {message}")


class LibraryEmptyError(ConfigError):
    """No template survived loading. Nothing to generate from."""
    pass


class GenerationError(ProceduralError):
    pass


class SelectionExhausted(GenerationError):
    pass


class ChoiceSetInvalid(GenerationError):
    pass


class UnresolvedPlaceholder(GenerationError):
    def __init__(self, tokens):
        self.tokens = list(tokens)
        super().__init__(f"Unresolved placeholders: {', '.join(self.tokens)}")
