# lotus/engine/__init__.py

"""
Lotus Game Engine Module
"""

from .core import GameEngine
from .game_state import GameState
from .event_manager import EventManager

__all__ = [
    'GameEngine',
    'GameState',
    'EventManager'
]
