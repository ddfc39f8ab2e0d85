"""
FUTURE.AI financial profile questionnaire.

A conversational questionnaire that walks a user through financial-planning
questions and classifies the answers into one of four financial profiles.
"""

__version__ = "0.1.0"
