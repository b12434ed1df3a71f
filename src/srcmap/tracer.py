"""Trace sink that annotates execution steps with source locations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

if TYPE_CHECKING:
    from srcmap.index import SourceMapIndex


@runtime_checkable
class ExecutionTracer(Protocol):
    """Instrumentation hooks an execution engine calls while running bytecode.

    Only ``capture_state`` and ``capture_fault`` carry source mapping
    information; the lifecycle hooks exist for engines that call every hook.
    """

    def capture_tx_start(self, gas_limit: int) -> None: ...

    def capture_tx_end(self, rest_gas: int) -> None: ...

    def capture_start(self, **context: object) -> None: ...

    def capture_end(self, output: bytes, gas_used: int, error: object | None) -> None: ...

    def capture_enter(self, **context: object) -> None: ...

    def capture_exit(self, output: bytes, gas_used: int, error: object | None) -> None: ...

    def capture_state(self, pc: int, op_name: str) -> None: ...

    def capture_fault(self, pc: int, op_name: str, error: object) -> None: ...


class SourceMapTracer:
    """Write one source-annotated line per executed step or fault.

    The tracer only observes: it never raises into the engine for missing
    mapping data and keeps no state besides the index and the output stream.
    """

    def __init__(self, index: SourceMapIndex, out: TextIO, *, flush: bool = True) -> None:
        self._index = index
        self._out = out
        self._flush = flush

    @property
    def index(self) -> SourceMapIndex:
        """Index used to resolve offsets."""
        return self._index

    def _write(self, line: str) -> None:
        self._out.write(line)
        self._out.write("\n")
        if self._flush:
            self._out.flush()

    def capture_tx_start(self, gas_limit: int) -> None:
        pass

    def capture_tx_end(self, rest_gas: int) -> None:
        pass

    def capture_start(self, **context: object) -> None:
        pass

    def capture_end(self, output: bytes, gas_used: int, error: object | None) -> None:
        pass

    def capture_enter(self, **context: object) -> None:
        pass

    def capture_exit(self, output: bytes, gas_used: int, error: object | None) -> None:
        pass

    def capture_state(self, pc: int, op_name: str) -> None:
        """Write the step line for an executed instruction."""
        formatted = self._index.format(pc)
        raw = self._index.mapping(pc)
        self._write(f"{formatted}: pc {pc:x} opcode {op_name}  map {raw}")

    def capture_fault(self, pc: int, op_name: str, error: object) -> None:
        """Write the fault line for an instruction that failed."""
        self._write(f"{self._index.format(pc)}: FAULT {op_name} {error}")


__all__ = ["ExecutionTracer", "SourceMapTracer"]
