from pydantic_settings import BaseSettings, SettingsConfigDict


class RabbitMQConfig(BaseSettings):
    """RabbitMQ settings, read from RABBITMQ_* environment variables"""
    model_config = SettingsConfigDict(env_prefix="RABBITMQ_", env_file=".env", extra="ignore")

    enabled: bool = False
    host: str = "localhost"
    port: int = 5672
    username: str = "guest"
    password: str = "guest"
    virtual_host: str = "/"
    heartbeat: int = 60

    events_exchange: str = "outings.events"
    expense_created_key: str = "expense.created"
    share_status_changed_key: str = "expense_share.status_changed"


rabbitmq_config = RabbitMQConfig()
