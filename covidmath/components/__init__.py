"""
System components for covidmath.
"""

from covidmath.components.config import Config, ConfigManager
