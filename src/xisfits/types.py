"""
Type definitions for xisfits.

This module provides type aliases shared by the conversion modules.
"""

from typing import Tuple, Union
from pathlib import Path

# Type aliases for common data structures
FilePath = Union[str, Path]
HeaderCard = str
HeaderCards = Tuple[HeaderCard, ...]
AxisSizes = Tuple[int, ...]
