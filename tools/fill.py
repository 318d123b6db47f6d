"""Regenerate Judge transaction fixtures from the pytest suite.

Only the ``tests/test_tx_*.py`` modules record cases through
``state_test_group``; the rest of the suite is skipped here.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import click

ROOT = Path(__file__).resolve().parent.parent


def tx_test_modules() -> list[Path]:
    return sorted((ROOT / "tests").glob("test_tx_*.py"))


@click.command()
@click.option("--out", default=str(ROOT / "fixtures"), show_default=True, help="Fixture output directory")
@click.option("--clean/--no-clean", default=True, help="Remove old fixtures first")
@click.option("-k", "keyword", default=None, help="Only fill cases matching this pytest -k expression")
def main(out: str, clean: bool, keyword: str | None) -> None:
    out_dir = Path(out)
    if clean and out_dir.exists():
        shutil.rmtree(out_dir)

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [sys.executable, "-m", "pytest", *map(str, tx_test_modules()), "-q", "--output", str(out_dir)]
    if keyword:
        cmd += ["-k", keyword]
    click.echo("Running: " + " ".join(cmd))

    code = subprocess.call(cmd, env=env, cwd=str(ROOT))
    written = sorted(out_dir.rglob("*.json")) if out_dir.exists() else []
    for path in written:
        click.echo(f"  {path.relative_to(out_dir)}")
    click.echo(f"{len(written)} fixture files in {out_dir}")
    sys.exit(code)


if __name__ == "__main__":
    main()
