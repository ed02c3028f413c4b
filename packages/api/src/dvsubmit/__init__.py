# This project was developed with assistance from AI tools.
"""DVSubmit API package."""

__version__ = "0.1.0"
