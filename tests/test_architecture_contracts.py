# tests/test_architecture_contracts.py
"""
Architecture contract tests for django-casework.

These tests enforce structural invariants that unit tests don't catch:
- Pure modules (workflow, ledger) never touch the ORM
- Version consistency (__init__.py vs pyproject.toml)
- AUTH_USER_MODEL usage (not direct User imports)
- Lazy imports in __init__.py (prevent AppRegistryNotReady)
- Migrations match the models
- Document order is not hard-coded outside the workflow table
"""
from __future__ import annotations

import ast
import re
from io import StringIO
from pathlib import Path
from typing import Set

import pytest
from django.core.management import call_command

ROOT = Path(__file__).parent.parent
SRC_DIR = ROOT / "src" / "django_casework"

PURE_MODULES = ["workflow.py", "ledger.py"]


def get_imports_from_file(path: Path) -> Set[str]:
    """Extract all imported module names from a Python file."""
    tree = ast.parse(path.read_text())
    imports = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name)
        elif isinstance(node, ast.ImportFrom):
            prefix = "." * node.level
            imports.add(prefix + (node.module or ""))
    return imports


# -----------------------------
# 1) Pure modules
# -----------------------------

@pytest.mark.parametrize("filename", PURE_MODULES)
def test_pure_modules_do_not_import_orm(filename):
    """
    workflow.py and ledger.py hold the rules and arithmetic; they must stay
    importable and testable without a database.
    """
    imports = get_imports_from_file(SRC_DIR / filename)
    forbidden = {".models", "django.db.transaction", ".services"}
    assert not imports & forbidden, f"{filename} imports {sorted(imports & forbidden)}"


# -----------------------------
# 2) Version consistency
# -----------------------------

def test_version_consistency():
    """__init__.py __version__ must match pyproject.toml version."""
    pyproject_text = (ROOT / "pyproject.toml").read_text()
    match = re.search(r'^version\s*=\s*["\']([^"\']+)["\']', pyproject_text, re.MULTILINE)
    assert match, "pyproject.toml missing version"

    init_text = (SRC_DIR / "__init__.py").read_text()
    init_match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', init_text)
    assert init_match, "__init__.py missing __version__"

    assert match.group(1) == init_match.group(1)


# -----------------------------
# 3) AUTH_USER_MODEL usage
# -----------------------------

def test_uses_auth_user_model_not_direct_import():
    """Use settings.AUTH_USER_MODEL, not direct User imports."""
    violations = []
    for py_file in SRC_DIR.rglob("*.py"):
        source = py_file.read_text()
        if re.search(r'from django\.contrib\.auth\.models import.*\bUser\b', source):
            violations.append(str(py_file.relative_to(SRC_DIR)))

    assert not violations, (
        "Direct User imports detected (breaks swappable user model):\n"
        + "\n".join(violations)
    )


# -----------------------------
# 4) Lazy imports in __init__.py
# -----------------------------

def test_init_uses_lazy_imports():
    """Eager model imports in __init__.py cause AppRegistryNotReady."""
    source = (SRC_DIR / "__init__.py").read_text()
    assert not re.search(r'^from \.models import', source, re.MULTILINE)
    assert "__getattr__" in source


def test_lazy_attribute_resolves_model():
    import django_casework
    from django_casework.models import TravelCase

    assert django_casework.TravelCase is TravelCase
    with pytest.raises(AttributeError):
        django_casework.DoesNotExist


# -----------------------------
# 5) Migrations
# -----------------------------

@pytest.mark.django_db
def test_no_missing_migrations():
    """makemigrations --check must find nothing to write."""
    out = StringIO()
    call_command(
        "makemigrations", "django_casework", "--check", "--dry-run", stdout=out,
    )
    assert "No changes detected" in out.getvalue()


# -----------------------------
# 6) Workflow table is the only source of order
# -----------------------------

def test_services_do_not_hard_code_positions():
    """Services must ask the workflow table for positions and prerequisites."""
    violations = []
    for py_file in (SRC_DIR / "services").glob("*.py"):
        for i, line in enumerate(py_file.read_text().split("\n"), 1):
            if re.search(r'workflow_position\s*[<>=]=?\s*\d', line):
                violations.append(f"{py_file.name}:{i}: {line.strip()}")

    assert not violations, "Hard-coded workflow positions:\n" + "\n".join(violations)
