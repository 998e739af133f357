"""Kconfig expressions and their simplification, config file line formats, make dependency fixing and documentation templates."""

__version__ = "0.1.0"
__all__ = ["confdata", "docproc", "expr", "fixdep", "simplify"]