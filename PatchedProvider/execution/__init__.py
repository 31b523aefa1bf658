"""Out-of-process invocation of the external Java tools."""

from .models import ExecutionResult
from .runner import build_java_command, check_result, log_output, run_command
from .tools import (
    AccessWidenTool,
    BinaryPatchTool,
    JavaAccessTransformerTool,
    JavaBinaryPatchTool,
    JavaMergeTool,
    JavaToolchain,
    MergeTool,
    SpecialSourceRemapTool,
    SymbolRemapTool,
    TinyRemapperTool,
)

__all__ = [
	"AccessWidenTool",
	"BinaryPatchTool",
	"ExecutionResult",
	"JavaAccessTransformerTool",
	"JavaBinaryPatchTool",
	"JavaMergeTool",
	"JavaToolchain",
	"MergeTool",
	"SpecialSourceRemapTool",
	"SymbolRemapTool",
	"TinyRemapperTool",
	"build_java_command",
	"check_result",
	"log_output",
	"run_command",
]
