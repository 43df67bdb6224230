"""
rulekit: discover, validate, and install plugin content (agents, skills, rules).
"""

__version__ = "0.1.0"
