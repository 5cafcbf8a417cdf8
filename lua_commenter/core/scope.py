"""Scope management for lua_commenter

Manages variable scoping during type analysis:
- Each function body gets its own scope
- Lookups walk outward through enclosing scopes
- Inner scopes shadow outer scopes with the same name
- The global scope is the outermost scope and is never popped

Scopes live in an arena addressed by index. A scope refers to its
parent by index only, so entering a function never copies the
enclosing mappings and nothing is written through a parent link.
"""

from typing import Dict, List, Optional

from lua_commenter.core.type_system import TypeInfo, UNKNOWN

GLOBAL_SCOPE = 0


class ScopeContext:
    """One lexical scope: name -> type mapping plus parent index"""

    def __init__(self, parent: Optional[int] = None) -> None:
        """Initialize scope

        Args:
            parent: Arena index of the enclosing scope (None for global scope)
        """
        self.parent = parent
        self.variables: Dict[str, TypeInfo] = {}

    def __repr__(self) -> str:
        return f"ScopeContext(parent={self.parent}, variables={sorted(self.variables)})"


class ScopeManager:
    """Arena of scopes with a current-scope cursor"""

    def __init__(self) -> None:
        """Initialize scope manager with global scope"""
        self._arena: List[ScopeContext] = [ScopeContext()]
        self._current = GLOBAL_SCOPE

    @property
    def current_index(self) -> int:
        """Get arena index of the current scope"""
        return self._current

    @property
    def current_scope(self) -> ScopeContext:
        """Get current scope"""
        return self._arena[self._current]

    @property
    def global_scope(self) -> ScopeContext:
        """Get global scope"""
        return self._arena[GLOBAL_SCOPE]

    def push_scope(self, variables: Optional[Dict[str, TypeInfo]] = None) -> int:
        """Push a new scope whose parent is the current scope

        Args:
            variables: Initial bindings (function parameters)

        Returns:
            Arena index of the new scope
        """
        scope = ScopeContext(parent=self._current)
        if variables:
            scope.variables.update(variables)
        self._arena.append(scope)
        self._current = len(self._arena) - 1
        return self._current

    def pop_scope(self) -> ScopeContext:
        """Pop current scope, making its parent current

        The record is released from the arena once nothing above it
        refers to it, so a long analysis does not accumulate scopes.

        Returns:
            Popped scope

        Raises:
            RuntimeError: If trying to pop global scope
        """
        if self._current == GLOBAL_SCOPE:
            raise RuntimeError("Cannot pop global scope")
        popped = self._arena[self._current]
        if self._current == len(self._arena) - 1:
            self._arena.pop()
        self._current = popped.parent
        return popped

    def define(self, name: str, type_info: TypeInfo) -> None:
        """Bind a name in the current scope

        Args:
            name: Variable name
            type_info: Inferred type
        """
        self._arena[self._current].variables[name] = type_info

    def lookup(self, name: str) -> TypeInfo:
        """Look up a name, walking outward through parent scopes

        Args:
            name: Variable name

        Returns:
            Bound type, or UNKNOWN when no scope in the chain binds it
        """
        index: Optional[int] = self._current
        while index is not None:
            scope = self._arena[index]
            if name in scope.variables:
                return scope.variables[name]
            index = scope.parent
        return UNKNOWN

    def is_defined(self, name: str) -> bool:
        """Check if any scope in the chain binds the name"""
        index: Optional[int] = self._current
        while index is not None:
            scope = self._arena[index]
            if name in scope.variables:
                return True
            index = scope.parent
        return False

    def current_depth(self) -> int:
        """Get current nesting depth

        Returns:
            Nesting depth (0 for global scope)
        """
        depth = 0
        index = self._arena[self._current].parent
        while index is not None:
            depth += 1
            index = self._arena[index].parent
        return depth
