from __future__ import annotations

import sys
from pathlib import Path

MAX_LINE_LENGTH = 100
CHECKED_DIRS = ("src", "tests", "scripts")


def iter_python_files(root: Path):
    for path in sorted(root.rglob("*.py")):
        if ".venv" in path.parts or "__pycache__" in path.parts:
            continue
        yield path


def lint_file(path: Path) -> list[str]:
    text = path.read_text(encoding="utf-8")
    errors = []
    for idx, line in enumerate(text.splitlines(), start=1):
        if "\t" in line:
            errors.append(f"{path}:{idx}: tabs are not allowed")
        if line != line.rstrip():
            errors.append(f"{path}:{idx}: trailing whitespace")
        if len(line) > MAX_LINE_LENGTH:
            errors.append(
                f"{path}:{idx}: line too long ({len(line)} > {MAX_LINE_LENGTH})"
            )
    if text and not text.endswith("\n"):
        errors.append(f"{path}: missing newline at end of file")
    return errors


def main(argv: list[str] | None = None) -> int:
    root = Path(__file__).resolve().parents[1]
    dirs = argv if argv else CHECKED_DIRS
    errors: list[str] = []
    for name in dirs:
        for path in iter_python_files(root / name):
            errors.extend(lint_file(path))
    if errors:
        print("\n".join(errors))
        return 1
    print("lint ok")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
