#!/usr/bin/env python3
"""Local checks for autopopulate: ``python dev_tasks.py format|lint|test|clean|all``."""

import os
import shutil
import subprocess
import sys

SOURCES = "autopopulate tests"


def run(command):
    print(f"$ {command}")
    return subprocess.run(command, shell=True).returncode == 0


def clean():
    for path in [".pytest_cache", ".mypy_cache", "htmlcov", ".coverage"]:
        if os.path.isdir(path):
            shutil.rmtree(path)
        elif os.path.exists(path):
            os.remove(path)
    for root, dirs, _ in os.walk("."):
        if "__pycache__" in dirs:
            shutil.rmtree(os.path.join(root, "__pycache__"))


def format_code():
    return run(f"black {SOURCES}") and run(f"isort {SOURCES}")


def lint():
    # run both so one report does not hide the other
    typed = run("mypy autopopulate")
    styled = run(f"flake8 {SOURCES}")
    return typed and styled


def test():
    return run("pytest --cov=autopopulate --cov-report=term-missing")


TASKS = {
    "clean": clean,
    "format": format_code,
    "lint": lint,
    "test": test,
}


def main():
    names = sys.argv[1:] or ["all"]
    if names == ["all"]:
        names = ["format", "lint", "test"]
    unknown = [n for n in names if n not in TASKS]
    if unknown:
        print(f"Unknown task(s): {', '.join(unknown)}; choose from {', '.join(TASKS)} or all")
        sys.exit(2)
    for name in names:
        if TASKS[name]() is False:
            sys.exit(1)


if __name__ == "__main__":
    main()
