import logging
import pika
from .config import RabbitMQConfig, rabbitmq_config

logger = logging.getLogger(__name__)


class RabbitMQSetup:
    """Creates connections and declares the exchanges this service publishes to"""

    def __init__(self, config: RabbitMQConfig = rabbitmq_config):
        self.config = config

    def create_connection(self) -> pika.BlockingConnection:
        credentials = pika.PlainCredentials(self.config.username, self.config.password)
        parameters = pika.ConnectionParameters(
            host=self.config.host,
            port=self.config.port,
            virtual_host=self.config.virtual_host,
            credentials=credentials,
            heartbeat=self.config.heartbeat,
        )
        return pika.BlockingConnection(parameters)

    def declare_exchanges(self, channel) -> None:
        channel.exchange_declare(
            exchange=self.config.events_exchange,
            exchange_type="topic",
            durable=True,
        )


def init_rabbitmq() -> bool:
    """Declare exchanges at startup; a broker outage must not keep the API down"""
    if not rabbitmq_config.enabled:
        logger.info("RabbitMQ disabled, settlement events will not be published")
        return False

    setup = RabbitMQSetup()
    try:
        connection = setup.create_connection()
        try:
            setup.declare_exchanges(connection.channel())
        finally:
            connection.close()
        logger.info(f"RabbitMQ exchange {rabbitmq_config.events_exchange} declared")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize RabbitMQ: {e}")
        return False
