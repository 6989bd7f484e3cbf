from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# ----------------------------
# General / App settings
# ----------------------------
class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="APP_", env_file=".env", extra="ignore")

    app_name: str = "order-service"
    env_mode: str = "local"  # "local" or "docker"
    host: str = "127.0.0.1"
    port: int = 9002

    log_file: Optional[str] = "order-service.log"
    log_level: str = "INFO"


# ----------------------------
# PostgreSQL / DB settings
# ----------------------------
class PostgresSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="POSTGRES_", env_file=".env", extra="ignore")

    host_local: str = "127.0.0.1"
    host_docker: str = "polar-postgres"
    port: int = 5432
    user: str = "user"
    password: str = "password"
    db_name: str = "polardb_order"

    # full SQLAlchemy URL, wins over the individual fields when set
    url: Optional[str] = None
    echo: bool = False

    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def get_host(self, env_mode: str) -> str:
        return self.host_docker if env_mode == "docker" else self.host_local

    def get_database_url(self, env_mode: str) -> str:
        if self.url:
            return self.url
        host = self.get_host(env_mode)
        return f"postgresql+asyncpg://{self.user}:{self.password}@{host}:{self.port}/{self.db_name}"


# ----------------------------
# Kafka settings
# ----------------------------
class KafkaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KAFKA_", env_file=".env", extra="ignore")

    host_local: str = "127.0.0.1"
    host_docker: str = "polar-kafka"
    port: int = 9092

    group_id: str = "order-service"
    dlq_topic: Optional[str] = "order-service-dlq"

    max_retries: int = 5
    retry_backoff: float = 1.0

    def get_host(self, env_mode: str) -> str:
        return self.host_docker if env_mode == "docker" else self.host_local

    def get_bootstrap_servers(self, env_mode: str) -> str:
        return f"{self.get_host(env_mode)}:{self.port}"


# ----------------------------
# Event bus settings
# ----------------------------
class MessagingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MESSAGING_", env_file=".env", extra="ignore")

    transport: Literal["memory", "kafka"] = "memory"
    order_accepted_topic: str = "order-accepted"
    order_dispatched_topic: str = "order-dispatched"


# ----------------------------
# Catalog service client
# ----------------------------
class CatalogSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CATALOG_", env_file=".env", extra="ignore")

    base_url: str = "http://localhost:9001"
    timeout: float = 3.0
    max_retries: int = 3
    retry_backoff: float = 0.1


# ----------------------------
# Caller identity
# ----------------------------
class SecuritySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SECURITY_", env_file=".env", extra="ignore")

    # header holding the authenticated username, set by the edge gateway
    identity_header: str = "X-Auth-User"


# ----------------------------
# Top-level settings
# ----------------------------
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app: AppSettings = Field(default_factory=AppSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)
    messaging: MessagingSettings = Field(default_factory=MessagingSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @property
    def database_url(self) -> str:
        return self.postgres.get_database_url(self.app.env_mode)

    @property
    def kafka_bootstrap_servers(self) -> str:
        return self.kafka.get_bootstrap_servers(self.app.env_mode)
