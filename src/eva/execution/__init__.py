"""Order execution: swappable paper and live executors."""

from eva.execution.executor import Executor
from eva.execution.live_executor import LiveExecutor
from eva.execution.paper_executor import PaperExecutor

__all__ = ["Executor", "LiveExecutor", "PaperExecutor"]
