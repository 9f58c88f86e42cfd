"""
Mood interpretation: free text -> Gemini -> bulb command.
"""
from .interpreter import MoodInterpreter
from .parser import extract_command, extract_explanation

__all__ = ["MoodInterpreter", "extract_command", "extract_explanation"]
