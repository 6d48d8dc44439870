"""Testing utilities: scripted model fakes, a mock comments source, stream assertions."""

from .assertions import assert_well_formed, chunk_text
from .fakes import (
    SAMPLE_COMMENTS,
    AlwaysToolInvoker,
    ModelCall,
    RecordsServer,
    ScriptedInvoker,
    answer,
    records_transport,
    tool_call,
)

__all__ = [
    "ScriptedInvoker", "AlwaysToolInvoker", "ModelCall", "tool_call", "answer",
    "RecordsServer", "records_transport", "SAMPLE_COMMENTS",
    "assert_well_formed", "chunk_text",
]
