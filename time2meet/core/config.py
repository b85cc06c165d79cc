import os


class ConfigError(RuntimeError):
    pass


def get_secret(secret_name: str) -> str | None:
    secret_path = f'/run/secrets/{secret_name}'
    try:
        with open(secret_path, 'r', encoding='utf-8') as secret_file:
            return secret_file.read().strip()
    except IOError:
        return os.getenv(secret_name)


def _build_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    user = os.getenv("POSTGRES_USER")
    password = get_secret('db_password')
    name = os.getenv("POSTGRES_DB")
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    if not (user and password and name):
        raise ConfigError("Can't build DATABASE_URL: POSTGRES_USER, db_password and POSTGRES_DB are required")
    if not port.isdigit() or not 0 < int(port) <= 65535:
        raise ConfigError(f"Invalid DB_PORT: {port!r}")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


DATABASE_URL = _build_database_url()
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))

# 0 disables the per-transaction deadline
TX_TIMEOUT_SECONDS = float(os.getenv("TX_TIMEOUT_SECONDS", "30"))

BATCH_MAX_ITEMS = int(os.getenv("BATCH_MAX_ITEMS", "5000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
