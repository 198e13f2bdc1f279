"""Configuration-driven HTTP proxy for the LUIS and Rasa NLU backends."""

__version__ = "1.0.0"
