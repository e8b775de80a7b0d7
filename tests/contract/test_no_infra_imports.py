import ast
import pathlib

import pytest

SRC = pathlib.Path(__file__).resolve().parents[2] / "src"
CONTEXTS = ("appointments", "clinical", "pharmacy", "integrations")


def _imported_modules(path: pathlib.Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            yield node.module
        elif isinstance(node, ast.Import):
            for n in node.names:
                yield n.name


@pytest.mark.parametrize("context", CONTEXTS)
def test_no_infrastructure_imports_in_api(context):
    for api_py in (SRC / context).glob("api/**/*.py"):
        for module in _imported_modules(api_py):
            assert ".infrastructure" not in module, f"Infrastructure import in API file: {api_py} -> {module}"


@pytest.mark.parametrize("context", CONTEXTS)
def test_domain_layer_stays_framework_free(context):
    for domain_py in (SRC / context).glob("domain/**/*.py"):
        for module in _imported_modules(domain_py):
            root = module.split(".")[0]
            assert root not in {"sqlalchemy", "fastapi", "httpx", "redis"}, f"{domain_py} imports {module}"
            assert ".infrastructure" not in module, f"{domain_py} imports {module}"
