from .registry import ExecutionStatus, Tool, ToolCreation, ToolExecution, ToolRegistry

__all__ = ["ExecutionStatus", "Tool", "ToolCreation", "ToolExecution", "ToolRegistry"]
