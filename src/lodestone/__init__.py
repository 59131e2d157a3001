__all__ = [
    "LoadTester",
    "RequestExecutor",
    "URLSource",
    "collect",
    "calculate_statistics",
    "render_statistics",
    "Options",
    "RequestOutcome",
    "Summary",
]


from .core import LoadTester, RequestExecutor, URLSource, collect
from .metrics import calculate_statistics
from .models import Options, RequestOutcome, Summary
from .rendering import render_statistics
