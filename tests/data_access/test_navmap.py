"""Every source module carries a NAVMAP header matching its contents."""

import importlib
import json
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parents[2] / "src"
MODULE_FILES = sorted((PACKAGE_ROOT / "RestScroll" / "DataAccess").rglob("*.py"))


def read_navmap(path):
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# === NAVMAP v1 ==="
    end = lines.index("# === /NAVMAP ===")
    return json.loads("\n".join(line[2:] for line in lines[1:end]))


@pytest.mark.parametrize("path", MODULE_FILES, ids=lambda p: str(p.relative_to(PACKAGE_ROOT)))
def test_navmap_matches_module(path):
    navmap = read_navmap(path)

    dotted = ".".join(path.relative_to(PACKAGE_ROOT).with_suffix("").parts)
    expected = dotted[: -len(".__init__")] if dotted.endswith(".__init__") else dotted
    assert navmap["module"] == expected

    module = importlib.import_module(expected)
    for section in navmap["sections"]:
        assert hasattr(module, section["name"]), section["name"]
