from __future__ import annotations

from .symbols import Symbol, SymbolTable


class Partitioner:
    """Split type symbols into external and target ones for one generation pass.

    A type symbol is external iff its owning package is not a target. The
    target set is fixed at construction, so the classification never changes
    during a pass. `claim` records which symbols were already emitted into
    which artifact.
    """

    def __init__(self, table: SymbolTable):
        self._table = table
        self.targets = table.target_paths
        self._emitted: dict[str, set[str]] = {}

    def is_external(self, sym: Symbol) -> bool:
        return sym.is_type and sym.pkg.path not in self.targets

    def external_types(self) -> list[Symbol]:
        """External type symbols in global symbol order (not grouped by package)."""
        return [s for s in self._table.symbols if self.is_external(s)]

    def package_types(self, pkg_path: str) -> list[Symbol]:
        return [s for s in self._table.symbols if s.is_type and s.pkg.path == pkg_path]

    def claim(self, artifact: str, sym: Symbol) -> bool:
        """Mark `sym` as emitted into `artifact`; False if it already was."""
        seen = self._emitted.setdefault(artifact, set())
        if sym.id in seen:
            return False
        seen.add(sym.id)
        return True

    def emitted(self, artifact: str) -> frozenset[str]:
        return frozenset(self._emitted.get(artifact, ()))
