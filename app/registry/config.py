import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    env: str
    database_url: str

    owner_address: str
    verifier_addresses: tuple[str, ...]

    principal_header: str
    log_level: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _split_csv(raw: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_settings() -> Settings:
    return Settings(
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///registry.db"),
        owner_address=_getenv("REGISTRY_OWNER", ""),
        verifier_addresses=_split_csv(_getenv("REGISTRY_VERIFIERS", "")),
        principal_header=_getenv("PRINCIPAL_HEADER", "X-Principal"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "REGISTRY_OWNER": s.owner_address,
        "REGISTRY_VERIFIERS": s.verifier_addresses,
        "PRINCIPAL_HEADER": s.principal_header,
        "LOG_LEVEL": s.log_level,
    }
