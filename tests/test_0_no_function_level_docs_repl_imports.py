"""Guard: no function-level `import docs_repl` inside src/.

A function-level `import docs_repl.x.y` shadows the module-level `docs_repl`
binding for the ENTIRE enclosing function, causing UnboundLocalError on
any `docs_repl.` reference that precedes the import statement.

This file is named with `test_0_` so it runs first.
"""

import ast
import os


_SRC_ROOT = os.path.join(os.path.dirname(__file__), "..", "src", "docs_repl")


def _find_function_level_docs_repl_imports():
    """Walk all .py files and flag `import docs_repl.*` inside functions/methods."""
    violations = []
    for dirpath, _dirs, files in os.walk(_SRC_ROOT):
        for fname in files:
            if not fname.endswith(".py"):
                continue
            path = os.path.join(dirpath, fname)
            with open(path, encoding="utf-8") as f:
                tree = ast.parse(f.read(), filename=path)

            rel = os.path.relpath(path, _SRC_ROOT)
            for node in ast.walk(tree):
                if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                    continue
                for child in ast.walk(node):
                    if isinstance(child, ast.Import):
                        for alias in child.names:
                            if alias.name.startswith("docs_repl"):
                                violations.append(
                                    f"{rel}:{child.lineno} "
                                    f"function-level `import {alias.name}`"
                                )
    return violations


def test_src_root_exists():
    assert os.path.isdir(_SRC_ROOT)


def test_no_function_level_docs_repl_imports():
    violations = _find_function_level_docs_repl_imports()
    assert violations == [], (
        "Function-level `import docs_repl.*` shadows the module binding and "
        "causes UnboundLocalError. Move these to module level:\n"
        + "\n".join(f"  {v}" for v in violations)
    )
