"""Write the API's OpenAPI schema to ``openapi.json``."""

import json
from pathlib import Path

from chathub.main import app


def main() -> None:
    schema = app.openapi()
    output = Path("openapi.json")
    output.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n")
    print(f"Generated {output} ({len(schema['paths'])} endpoints)")


if __name__ == "__main__":
    main()
