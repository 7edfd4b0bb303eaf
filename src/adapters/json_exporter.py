"""Exportación JSON del resultado de una ejecución.

Por qué JSON:
- Interoperabilidad con scripts/pipelines que encadenan niveles.
- Deja constancia de servicios huérfanos sin depender del dashboard.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.services.provisioning import ProvisioningOutcome


def export_outcome_json(*, outcome: ProvisioningOutcome, output_path: Path) -> Path:
    """Exporta `ProvisioningOutcome` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = outcome.to_dict()
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
