"""
Result objects for core operations.

Provides a unified result structure so the CLI (or any other front end)
can display operation outcomes consistently.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any


@dataclass
class OperationResult:
    """
    Unified result object for all core operations.

    Attributes:
        ok: Whether the operation completed successfully
        operation: Name of the operation (e.g., "convert_edition", "read_error_codes")
        target: Dump file path or serial port the operation worked on
        bytes_len: Number of bytes processed
        hashes: Dict of hash values (before/after)
        lines: User-facing output lines (fault descriptions, raw UART lines)
        warnings: Non-blocking issues encountered
        errors: Blocking errors that caused failure
        metadata: Additional operation-specific data
        logs: Captured log lines from the operation
    """
    ok: bool
    operation: str
    target: str = ""
    bytes_len: int = 0
    hashes: Dict[str, str] = field(default_factory=dict)
    lines: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark result as failed."""
        self.errors.append(message)
        self.ok = False

    def to_summary(self) -> str:
        """One status line, then indented detail lines."""
        status = "OK" if self.ok else "FAILED"
        out = [f"[{status}] {self.operation}" + (f" ({self.target})" if self.target else "")]

        if self.bytes_len:
            out.append(f"  Image: {self.bytes_len:,} bytes")
        out.extend(f"  {name} sha256: {value[:16]}..." for name, value in self.hashes.items() if value)
        out.extend(f"  {line}" for line in self.lines)
        out.extend(f"  warning: {warn}" for warn in self.warnings)
        out.extend(f"  error: {err}" for err in self.errors)
        return "\n".join(out)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "operation": self.operation,
            "target": self.target,
            "bytes_len": self.bytes_len,
            "hashes": self.hashes,
            "lines": self.lines,
            "warnings": self.warnings,
            "errors": self.errors,
            "metadata": self.metadata,
            "logs": self.logs,
        }

    @classmethod
    def success(
        cls,
        operation: str,
        target: str = "",
        bytes_len: int = 0,
        **kwargs,
    ) -> "OperationResult":
        """Create a successful result."""
        return cls(
            ok=True,
            operation=operation,
            target=target,
            bytes_len=bytes_len,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        operation: str,
        error: str,
        target: str = "",
        **kwargs,
    ) -> "OperationResult":
        """Create a failed result."""
        result = cls(
            ok=False,
            operation=operation,
            target=target,
            **kwargs,
        )
        result.errors.append(error)
        return result
