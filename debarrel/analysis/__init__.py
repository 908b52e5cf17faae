"""
Analysis module for debarrel

Provides the per-file side of a run:
- Specifier parsing and module resolution
- tree-sitter parsing of TypeScript and JavaScript modules
- Export and import maps per file
- tsconfig, path alias and package entry point discovery
"""

__all__ = [
    "FileAnalyzer",
    "ModuleParser",
    "ModuleResolver",
    "parse_specifier",
]


def __getattr__(name: str):
    if name == "FileAnalyzer":
        from .file_analyzer import FileAnalyzer
        return FileAnalyzer
    if name == "ModuleParser":
        from .parser import ModuleParser
        return ModuleParser
    if name == "ModuleResolver":
        from .resolver import ModuleResolver
        return ModuleResolver
    if name == "parse_specifier":
        from .specifier import parse_specifier
        return parse_specifier
    raise AttributeError(name)
