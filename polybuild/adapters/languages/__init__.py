"""Language adapters — node, python, rust."""

from polybuild.adapters.languages.base import AdapterContext, LanguageAdapter
from polybuild.adapters.languages.node import NodeAdapter
from polybuild.adapters.languages.python import PythonAdapter
from polybuild.adapters.languages.rust import RustAdapter

__all__ = [
    "AdapterContext",
    "LanguageAdapter",
    "NodeAdapter",
    "PythonAdapter",
    "RustAdapter",
]
