# lotus/__init__.py

"""
Lotus: a tier/life-stage board game with procedurally generated events.
"""
