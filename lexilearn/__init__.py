"""LexiLearn embedded data layer"""

__version__ = "1.0.0"
