from __future__ import annotations

import sys

from .apps.marbles_app import _run_cli, app


def main(argv: list[str] | None = None) -> int:
    return _run_cli(root_app=app, prog_name="marbles", argv=argv)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
