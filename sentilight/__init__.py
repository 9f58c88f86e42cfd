"""
SentiLight: spoken mood -> Gemini -> Tasmota bulb command.
"""
