"""
Execution context for the q9 interpreter.

Holds the global variable table, the function table and a stack of scope
frames. A function call pushes a root frame (no parent), so a callee never
sees its caller's locals; a bare block pushes a child of the current frame,
so its locals vanish when the block ends. Execution is "global" exactly
when the frame stack is empty.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
from contextlib import contextmanager

from .values import Value, EvalFunction, EvalVariable


@dataclass
class Frame:
    """
    A single scope containing variable bindings.

    Frames of one activation form a chain via `parent`; the root frame of
    a function call has no parent.
    """
    variables: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Frame"] = None
    name: str = "block"  # For debugging
    is_call: bool = False

    def get(self, name: str) -> Optional[Value]:
        """Look up a variable in this frame or its parents."""
        if name in self.variables:
            return self.variables[name]
        if self.parent:
            return self.parent.get(name)
        return None

    def set(self, name: str, value: Value) -> None:
        self.variables[name] = value

    def update(self, name: str, value: Value) -> bool:
        """
        Update an existing variable.

        Searches up the frame chain; returns False if the name is unbound.
        """
        if name in self.variables:
            self.variables[name] = value
            return True
        if self.parent:
            return self.parent.update(name, value)
        return False


@dataclass
class ExecutionContext:
    """
    The mutable state one interpreter runs against.

    Tracks:
    - Global variable table (lives for the whole run)
    - Function table (entries are never removed or replaced)
    - Frame stack (one frame per active call or bare block)
    - Pending return value
    """
    globals: Dict[str, Value] = field(default_factory=dict)
    functions: Dict[str, EvalFunction] = field(default_factory=dict)
    frames: List[Frame] = field(default_factory=list)

    # Control flow flags
    _should_return: bool = False
    _return_value: Optional[Value] = None

    @property
    def is_global(self) -> bool:
        """True while no call or block frame is active."""
        return not self.frames

    @property
    def current_frame(self) -> Optional[Frame]:
        return self.frames[-1] if self.frames else None

    @property
    def call_depth(self) -> int:
        return sum(1 for frame in self.frames if frame.is_call)

    @property
    def in_function(self) -> bool:
        return self.call_depth > 0

    # --- Variables ---

    def get_variable(self, name: str) -> Optional[Value]:
        """Global table first, then the current activation's frames."""
        if name in self.globals:
            return self.globals[name]
        frame = self.current_frame
        if frame is not None:
            return frame.get(name)
        return None

    def is_defined(self, name: str) -> bool:
        return self.get_variable(name) is not None

    def define_variable(self, name: str, value: Value) -> None:
        """Bind in the innermost frame, or the global table at global scope."""
        frame = self.current_frame
        if frame is None:
            self.globals[name] = value
        else:
            frame.set(name, value)

    def update_variable(self, name: str, value: Value) -> bool:
        """Overwrite an existing binding, global table first."""
        if name in self.globals:
            self.globals[name] = value
            return True
        frame = self.current_frame
        if frame is not None:
            return frame.update(name, value)
        return False

    def local_variables(self) -> Dict[str, Value]:
        """All locals visible in the current activation, innermost wins."""
        chain = []
        frame = self.current_frame
        while frame is not None:
            chain.append(frame)
            frame = frame.parent
        merged: Dict[str, Value] = {}
        for frame in reversed(chain):
            merged.update(frame.variables)
        return merged

    # --- Functions ---

    def get_function(self, name: str) -> Optional[EvalFunction]:
        return self.functions.get(name)

    def define_function(self, function: EvalFunction) -> None:
        self.functions[function.name] = function

    # --- Scopes ---

    @contextmanager
    def block_scope(self) -> Iterator[Frame]:
        """
        Context manager for a bare block.

        Usage:
            with ctx.block_scope():
                # variables defined here are local to the block
                ctx.define_variable("x", num_val(1))
        """
        frame = Frame(parent=self.current_frame, name="block")
        self.frames.append(frame)
        try:
            yield frame
        finally:
            self.frames.pop()

    @contextmanager
    def call_scope(self, name: str, bindings: List[EvalVariable]) -> Iterator[Frame]:
        """Context manager for one function activation with its parameters bound."""
        frame = Frame(
            variables={var.name: var.value for var in bindings},
            name=name,
            is_call=True,
        )
        self.frames.append(frame)
        try:
            yield frame
        finally:
            self.frames.pop()

    # --- Return signalling ---

    def signal_return(self, value: Value) -> None:
        """Signal an early return from the current activation."""
        self._should_return = True
        self._return_value = value

    @property
    def should_return(self) -> bool:
        return self._should_return

    @property
    def return_value(self) -> Optional[Value]:
        return self._return_value

    def clear_return(self) -> None:
        """Clear the return signal (used after handling return)."""
        self._should_return = False
        self._return_value = None

    def reset(self) -> None:
        """Drop all frames and pending control flow, keeping globals and functions."""
        self.frames.clear()
        self.clear_return()
