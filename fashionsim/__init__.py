"""
FASHIONSIM - A Fashion Retail Season Simulation

A turn-based business game: players run a fashion retail operation
across a fixed 15-week season, deciding pricing, design, procurement,
production, marketing and markdowns each week. A deterministic
settlement engine resolves every week into the next state.

This package provides:
- Weekly settlement engine (procurement, production, sales, cash)
- Pre-commit validation with blocking errors and warnings
- JSON/YAML decision files and persistent game stores
- CLI interface for playing the game
- Configurable constants catalog for balance tuning
"""

__version__ = "0.1.0"

from fashionsim.config.defaults import DEFAULT_CONFIG

__all__ = [
    "__version__",
    "DEFAULT_CONFIG",
]
