# codesync/chunking/plugins/__init__.py
from codesync.chunking.plugins.java import JavaChunker
from codesync.chunking.plugins.python_code import PythonCodeChunker
from codesync.chunking.plugins.script import ScriptChunker
from codesync.chunking.plugins.window import WindowChunker

__all__ = ["JavaChunker", "PythonCodeChunker", "ScriptChunker", "WindowChunker"]
