"""Script de ejecución.

Por qué existe:
- Permite ejecutar la CLI con `python -m main spawn` desde `src/` durante desarrollo.
- Mantiene un entrypoint simple además del script `replicator` del paquete.
"""

from __future__ import annotations

import sys

# Rich imprime flechas/viñetas: evita UnicodeEncodeError en consolas cp1252 de Windows.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
