# tests/test_chunk_metadata.py
"""Tests for regex-derived chunk metadata."""

from __future__ import annotations

import pytest

from codesync.chunking.metadata import (
    calculate_complexity,
    extract_dependencies,
    extract_exports,
    extract_imports,
    extract_keywords,
    extract_metadata,
)

pytestmark = pytest.mark.tier1


class TestComplexity:
    def test_minimum_is_one(self):
        assert calculate_complexity("x = 1") == 1

    def test_counts_control_flow_calls_and_braces(self):
        # 2 control keywords, 3 calls (-> 1), 2 braces (-> 1)
        text = "if (a) { f(); } else { g(); h(); }"
        assert calculate_complexity(text) == 1 + 2 + 1 + 1

    def test_capped(self):
        assert calculate_complexity("if x:\n" * 50) == 10


class TestKeywords:
    def test_language_keywords_first(self):
        keywords = extract_keywords("async def fetch_data(self): return await client.get()", "python")

        assert keywords[:4] == ["async", "def", "self", "return"]
        assert "fetch_data" in keywords
        assert "client" in keywords

    def test_common_words_skipped(self):
        keywords = extract_keywords("if True and None: pass", "python")
        assert "True" not in keywords
        assert "None" not in keywords

    def test_unknown_language(self):
        assert extract_keywords("hello world of code", "text") == ["hello", "world", "code"]


class TestImports:
    def test_python(self):
        text = "import os.path\nfrom collections import OrderedDict\nfrom . import sibling\n"
        imports = extract_imports(text, "python")

        assert imports == ["os.path", "collections", "."]
        assert extract_dependencies(imports) == ["os", "collections"]

    def test_javascript(self):
        text = (
            "import React from 'react';\n"
            "import { join } from \"node:path\";\n"
            "import './side-effect';\n"
            "const lodash = require('lodash');\n"
        )
        assert extract_imports(text, "javascript") == ["react", "node:path", "./side-effect", "lodash"]

    def test_java(self):
        text = "import java.util.List;\nimport static org.junit.Assert.*;\n"
        assert extract_imports(text, "java") == ["java.util.List", "org.junit.Assert.*"]

    def test_go(self):
        assert extract_imports('import "fmt"\n', "go") == ["fmt"]


class TestExports:
    def test_python_public_names(self):
        text = "def run():\n    pass\n\nclass Job:\n    pass\n\ndef _private():\n    pass\n"
        assert extract_exports(text, "python") == ["run", "Job"]

    def test_typescript(self):
        text = "export const a = 1;\nexport default function main() {}\nexport { b, c as d };\n"
        assert extract_exports(text, "typescript") == ["a", "main", "b", "d"]

    def test_java_public_types(self):
        assert extract_exports("public final class Orders {}", "java") == ["Orders"]


class TestDependencies:
    def test_relative_dropped(self):
        assert extract_dependencies(["./util", "../lib", "/abs"]) == []

    def test_scoped_npm_kept_whole(self):
        assert extract_dependencies(["@nestjs/core/testing", "lodash/fp", "react"]) == [
            "@nestjs/core",
            "lodash",
            "react",
        ]

    def test_dotted_modules(self):
        assert extract_dependencies(["os.path", "os", "numpy.linalg"]) == ["os", "numpy"]


class TestExtractMetadata:
    def test_combined(self):
        meta = extract_metadata("import numpy as np\n\ndef norm(v):\n    return np.sqrt(v)\n", "python")

        assert meta.language == "python"
        assert meta.imports == ["numpy"]
        assert meta.dependencies == ["numpy"]
        assert meta.exports == ["norm"]
        assert 1 <= meta.complexity <= 10
