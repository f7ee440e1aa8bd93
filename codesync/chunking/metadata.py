# codesync/chunking/metadata.py
"""
Cheap, regex-based facts about chunk text: complexity, keywords, imports,
exports and external dependencies.
"""

from __future__ import annotations

import re
from typing import Dict, List, Pattern

from codesync.chunking.base import ChunkMetadata

MAX_COMPLEXITY = 10
MAX_KEYWORDS = 30
MAX_IDENTIFIERS = 20

_CONTROL_FLOW = re.compile(r"\b(if|else|elif|for|while|switch|case|catch|except|try)\b")
_CALL = re.compile(r"\w+\s*\(")
_IDENTIFIER = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b")

LANGUAGE_KEYWORDS: Dict[str, frozenset] = {
    "javascript": frozenset({
        "function", "class", "const", "let", "var", "async", "await", "import", "export",
        "return", "extends", "new", "this", "default", "from", "yield", "typeof", "throw",
    }),
    "python": frozenset({
        "def", "class", "async", "await", "import", "from", "return", "yield", "lambda",
        "with", "raise", "self", "global", "nonlocal", "pass", "assert",
    }),
    "java": frozenset({
        "class", "interface", "enum", "record", "public", "private", "protected", "static",
        "final", "abstract", "extends", "implements", "import", "package", "return", "new",
        "throws", "void", "synchronized",
    }),
}
LANGUAGE_KEYWORDS["typescript"] = LANGUAGE_KEYWORDS["javascript"] | frozenset({
    "interface", "type", "enum", "implements", "readonly", "private", "public", "protected",
    "namespace", "declare", "abstract",
})

_COMMON_KEYWORDS = frozenset({
    "if", "else", "elif", "for", "while", "switch", "case", "catch", "except", "try",
    "finally", "break", "continue", "return", "true", "false", "null", "None", "True",
    "False", "and", "not", "or", "in", "is", "do",
})

_IMPORT_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "python": [
        re.compile(r"^\s*import\s+([\w.]+)", re.MULTILINE),
        re.compile(r"^\s*from\s+([\w.]+)\s+import\b", re.MULTILINE),
    ],
    "javascript": [
        re.compile(r"""^\s*import\s+(?:[\s\S]*?\s+from\s+)?['"]([^'"]+)['"]""", re.MULTILINE),
        re.compile(r"""\brequire\(\s*['"]([^'"]+)['"]\s*\)"""),
    ],
    "java": [
        re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+(?:\.\*)?)\s*;", re.MULTILINE),
    ],
    "go": [
        re.compile(r'^\s*import\s+(?:\w+\s+)?"([^"]+)"', re.MULTILINE),
    ],
}
_IMPORT_PATTERNS["typescript"] = _IMPORT_PATTERNS["javascript"]

_EXPORT_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "python": [
        re.compile(r"^(?:async\s+)?def\s+([A-Za-z]\w*)", re.MULTILINE),
        re.compile(r"^class\s+([A-Za-z]\w*)", re.MULTILINE),
    ],
    "javascript": [
        re.compile(
            r"^\s*export\s+(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?(?:async\s+)?"
            r"(?:function\*?|class|const|let|var|interface|type|enum)\s+(\w+)",
            re.MULTILINE,
        ),
        re.compile(r"^\s*export\s*\{([^}]*)\}", re.MULTILINE),
    ],
    "java": [
        re.compile(
            r"\bpublic\s+(?:(?:final|abstract|static)\s+)*(?:class|interface|enum|record)\s+(\w+)"
        ),
    ],
}
_EXPORT_PATTERNS["typescript"] = _EXPORT_PATTERNS["javascript"]


def calculate_complexity(text: str) -> int:
    """1 + control-flow keywords + calls/3 + braces/2, capped at 10."""
    control = len(_CONTROL_FLOW.findall(text))
    calls = len(_CALL.findall(text))
    braces = text.count("{")
    return min(MAX_COMPLEXITY, 1 + control + calls // 3 + braces // 2)


def extract_keywords(text: str, language: str) -> List[str]:
    """Language keywords present in the text, then the first identifiers longer than 2 chars."""
    language_keywords = LANGUAGE_KEYWORDS.get(language, frozenset())
    found: List[str] = []
    identifiers: List[str] = []
    seen = set()

    for token in _IDENTIFIER.findall(text):
        if token in seen:
            continue
        seen.add(token)
        if token in language_keywords:
            found.append(token)
        elif len(token) > 2 and token not in _COMMON_KEYWORDS and len(identifiers) < MAX_IDENTIFIERS:
            identifiers.append(token)

    return (found + identifiers)[:MAX_KEYWORDS]


def _dedupe(items: List[str]) -> List[str]:
    return list(dict.fromkeys(item for item in items if item))


def extract_imports(text: str, language: str) -> List[str]:
    specs: List[str] = []
    for pattern in _IMPORT_PATTERNS.get(language, []):
        specs.extend(pattern.findall(text))
    return _dedupe(specs)


def extract_exports(text: str, language: str) -> List[str]:
    names: List[str] = []
    for pattern in _EXPORT_PATTERNS.get(language, []):
        for match in pattern.findall(text):
            if "," in match or "{" in match or " as " in match or match.strip() != match:
                # export { a, b as c }
                for part in match.split(","):
                    name = part.split(" as ")[-1].strip()
                    if name:
                        names.append(name)
            else:
                names.append(match)
    return _dedupe(names)


def extract_dependencies(imports: List[str]) -> List[str]:
    """External package names: relative imports are dropped, scoped npm names kept whole."""
    deps: List[str] = []
    for spec in imports:
        if spec.startswith((".", "/")):
            continue
        if spec.startswith("@"):
            deps.append("/".join(spec.split("/")[:2]))
        elif "/" in spec:
            deps.append(spec.split("/")[0])
        else:
            deps.append(spec.split(".")[0])
    return _dedupe(deps)


def extract_metadata(text: str, language: str) -> ChunkMetadata:
    imports = extract_imports(text, language)
    return ChunkMetadata(
        language=language,
        complexity=calculate_complexity(text),
        keywords=extract_keywords(text, language),
        imports=imports,
        exports=extract_exports(text, language),
        dependencies=extract_dependencies(imports),
    )


__all__ = [
    "calculate_complexity",
    "extract_dependencies",
    "extract_exports",
    "extract_imports",
    "extract_keywords",
    "extract_metadata",
]
