"""Analyzers for lua_commenter

This module contains the analysis passes run on the code tree.

Modules:
- TypeAnalyzer: Scope-aware parameter, variable and return type inference
"""

from lua_commenter.analyzers.type_analyzer import TypeAnalyzer, analyze

__all__ = [
    'TypeAnalyzer',
    'analyze',
]
