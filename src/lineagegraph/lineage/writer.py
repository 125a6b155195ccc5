"""Write generated test classes next to the sources they test."""

from __future__ import annotations

import logging
import re
from pathlib import Path, PurePosixPath

logger = logging.getLogger("lineagegraph.lineage")

_EXTENSIONS = {"java": ".java", "scala": ".scala", "python": ".py"}


class UnitTestWriter:
    """Places test files under the project's test tree.

    ``src/main/<lang>/pkg/Foo.java`` maps to ``src/test/<lang>/pkg/FooTest.java``.
    Sources outside a ``src/main`` tree get their tests in ``<root>/tests``.
    When the target exists and ``overwrite`` is off, the next free numeric
    suffix is used (``FooTest1``) and the class inside the code is renamed.
    """

    def __init__(self, root: Path, overwrite: bool = False) -> None:
        self.root = Path(root)
        self.overwrite = overwrite

    def test_dir_for(self, source_path: str) -> Path:
        parts = PurePosixPath(Path(source_path).as_posix()).parts
        for i in range(len(parts) - 1):
            if parts[i] == "src" and parts[i + 1] == "main":
                mirrored = parts[:i] + ("src", "test") + parts[i + 2 : -1]
                return self.root.joinpath(*mirrored)
        return self.root / "tests"

    def path_for(self, source_path: str, class_name: str, language: str) -> Path:
        ext = _EXTENSIONS.get(language.lower(), Path(source_path).suffix)
        return self.test_dir_for(source_path) / f"{class_name}{ext}"

    def write(self, source_path: str, class_name: str, code: str, language: str) -> Path:
        """Write ``code`` and return the path it was written to."""
        target = self.path_for(source_path, class_name, language)
        if target.exists() and not self.overwrite:
            suffix = 1
            while target.with_name(f"{class_name}{suffix}{target.suffix}").exists():
                suffix += 1
            new_name = f"{class_name}{suffix}"
            code = re.sub(
                rf"\bclass\s+{re.escape(class_name)}\b", f"class {new_name}", code, count=1
            )
            target = target.with_name(f"{new_name}{target.suffix}")

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(code if code.endswith("\n") else code + "\n", encoding="utf-8")
        logger.info("Wrote %s", target)
        return target
