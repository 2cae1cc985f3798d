import sys
from pathlib import Path

from dotenv import load_dotenv

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.registry.config import load_settings  # noqa: E402
from app.registry.errors import AlreadyInitialized  # noqa: E402
from app.registry.service import create_registry  # noqa: E402


def init_registry(*, database_url: str | None = None) -> None:
    """
    Create tables and initialize the registry in an idempotent way.
    Does NOT change the owner of an already initialized registry.
    """
    settings = load_settings()
    db_url = (database_url or settings.database_url).strip()
    owner = settings.owner_address
    if not owner:
        raise SystemExit("REGISTRY_OWNER is required to initialize the registry.")

    registry = create_registry(db_url, env=settings.env)
    try:
        registry.initialize(owner)
        print(f"Registry initialized (owner={owner}).")
    except AlreadyInitialized:
        print("Registry already initialized; owner unchanged.")

    if not registry.is_owner(owner):
        raise SystemExit(f"REGISTRY_OWNER={owner} is not the owner of this registry.")

    for verifier in settings.verifier_addresses:
        added = registry.add_verifier(owner, verifier)
        print(f"Verifier {verifier}: {'added' if added else 'already present'}.")


def main() -> None:
    load_dotenv()
    init_registry()


if __name__ == "__main__":
    main()
