"""
Gemini relay: forwards prompts to the Generative Language API with retries
and model fallback.
"""

__version__ = "0.1.0"
