"""
Command Line Interface for PyFastImg

Terminal access to the benchmark suite without writing Python scripts.

Available Commands:
- bench: Run one or all registered benchmark pipelines
- list_benchmarks: Print the registered benchmarks

Author: B.G.
"""

_CLI_SUBMODULES = {
    "bench": (".bench_commands", "bench"),
    "list_benchmarks": (".bench_commands", "list_benchmarks"),
}

__all__ = list(_CLI_SUBMODULES.keys())


def __getattr__(name):
    info = _CLI_SUBMODULES.get(name)
    if info is None:
        raise AttributeError(name)
    pkg, attr = info
    import importlib
    mod = importlib.import_module(pkg, __package__)
    obj = getattr(mod, attr)
    globals()[name] = obj
    return obj
