"""Entry point de desarrollo y de despliegue.

Permite ejecutar la CLI sin instalar el paquete:
- `python -m main spawn`
- `python -m main serve` (lo que arranca cada servicio desplegado)

Motivo:
- El código vive en `src/` (layout tipo "src"); si no hay editable install,
  Python no encuentra `cli`, `core`, etc.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    project_root = Path(__file__).resolve().parent
    src = project_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
