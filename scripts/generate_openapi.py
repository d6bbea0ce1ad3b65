"""Generate the server OpenAPI document, including the metrics bearer scheme."""

from __future__ import annotations

import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
OUTPUT = ROOT / "docs" / "openapi" / "server.json"

sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(ROOT / "apps" / "sdk-python" / "src"))

from apps.server.app.config import ServerSettings  # noqa: E402
from apps.server.app.main import create_app  # noqa: E402

GUARDED_PATHS = ("/metrics", "/metrics/prometheus")


def build_openapi() -> dict:
    doc = create_app(ServerSettings()).openapi()
    components = doc.setdefault("components", {})
    components["securitySchemes"] = {
        "MetricsToken": {
            "type": "http",
            "scheme": "bearer",
            "description": "Required when METRICS_TOKEN is set: `Authorization: Bearer <token>`",
        }
    }
    for path in GUARDED_PATHS:
        operation = doc["paths"].get(path, {}).get("get")
        if operation is None:
            continue
        operation["security"] = [{"MetricsToken": []}]
        operation.setdefault("responses", {}).update(
            {
                "401": {"description": "Missing bearer token"},
                "403": {"description": "Bearer token does not match METRICS_TOKEN"},
            }
        )
    return doc


def main() -> None:
    openapi_doc = build_openapi()
    OUTPUT.parent.mkdir(parents=True, exist_ok=True)
    OUTPUT.write_text(json.dumps(openapi_doc, indent=2), encoding="utf-8")
    print(f"Wrote OpenAPI schema to {OUTPUT}")


if __name__ == "__main__":
    main()
