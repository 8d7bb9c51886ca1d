# lotus/procedural/__init__.py

"""
Lotus Procedural Event Module
"""

from .context import ContextTracker
from .errors import (
    ChoiceSetInvalid,
    ConfigError,
    ConfigParseError,
    GenerationError,
    LibraryEmptyError,
    ProceduralError,
    SelectionExhausted,
    UnresolvedPlaceholder,
)
from .generator import GeneratedChoice, GeneratedEvent, ProceduralGenerator, generate
from .library import (
    ChoiceArchetype,
    ChoiceType,
    NarrativeFragments,
    Severity,
    SituationTemplate,
    TemplateLibrary,
    VariableLibraries,
    load_library,
)
from .player import PlayerState

__all__ = [
    'ContextTracker',
    'ChoiceSetInvalid',
    'ConfigError',
    'ConfigParseError',
    'GenerationError',
    'LibraryEmptyError',
    'ProceduralError',
    'SelectionExhausted',
    'UnresolvedPlaceholder',
    'GeneratedChoice',
    'GeneratedEvent',
    'ProceduralGenerator',
    'generate',
    'ChoiceArchetype',
    'ChoiceType',
    'NarrativeFragments',
    'Severity',
    'SituationTemplate',
    'TemplateLibrary',
    'VariableLibraries',
    'load_library',
    'PlayerState',
]
