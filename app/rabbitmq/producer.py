import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
import pika
from .config import RabbitMQConfig, rabbitmq_config
from .setup import RabbitMQSetup

logger = logging.getLogger(__name__)


class SettlementEventProducer:
    """Publishes expense and settlement events for downstream consumers (e.g. notifications)"""

    def __init__(self, config: RabbitMQConfig = rabbitmq_config):
        self.config = config
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel = None
        self.setup = RabbitMQSetup(config)

    def connect(self) -> None:
        """Establish connection to RabbitMQ"""
        try:
            self.connection = self.setup.create_connection()
            self.channel = self.connection.channel()
            self.setup.declare_exchanges(self.channel)
            logger.info("RabbitMQ producer connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect RabbitMQ producer: {e}")
            raise

    def disconnect(self) -> None:
        """Close RabbitMQ connection"""
        if self.channel and not self.channel.is_closed:
            self.channel.close()
        if self.connection and not self.connection.is_closed:
            self.connection.close()
        logger.info("RabbitMQ producer disconnected")

    def _publish(self, routing_key: str, message_data: Dict[str, Any]) -> bool:
        if not self.config.enabled:
            logger.debug(f"RabbitMQ disabled, dropping {routing_key} event")
            return False

        try:
            if not self.connection or self.connection.is_closed:
                self.connect()

            message_data["timestamp"] = datetime.now(timezone.utc).isoformat()
            self.channel.basic_publish(
                exchange=self.config.events_exchange,
                routing_key=routing_key,
                body=json.dumps(message_data),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Make message persistent
                    content_type='application/json',
                )
            )
            logger.info(f"Published {routing_key} event")
            return True

        except Exception as e:
            logger.error(f"Failed to publish {routing_key} event: {e}")
            return False

    def publish_expense_created(self, expense_id: str, event_id: str, paid_by: str, debtor_ids: List[str]) -> bool:
        """
        Publish that an expense was logged and split

        Args:
            expense_id: The new expense
            event_id: Event the expense belongs to
            paid_by: Creditor of every share
            debtor_ids: Users holding a share, payer included

        Returns:
            bool: True if message published successfully, False otherwise
        """
        return self._publish(self.config.expense_created_key, {
            "expense_id": expense_id,
            "event_id": event_id,
            "paid_by": paid_by,
            "debtor_ids": debtor_ids,
        })

    def publish_share_status_changed(self, share_ids: List[str], status: str, actor_id: str) -> bool:
        """
        Publish that shares moved to a new settlement status

        Args:
            share_ids: Shares that were actually transitioned
            status: New status (verifying or settled)
            actor_id: Debtor or creditor who triggered the change

        Returns:
            bool: True if message published successfully, False otherwise
        """
        if not share_ids:
            return False
        return self._publish(self.config.share_status_changed_key, {
            "share_ids": share_ids,
            "status": status,
            "actor_id": actor_id,
        })


# Global producer instance
_event_producer: Optional[SettlementEventProducer] = None


def get_event_publisher() -> SettlementEventProducer:
    """Get or create the settlement event producer (connects lazily)"""
    global _event_producer
    if _event_producer is None:
        _event_producer = SettlementEventProducer()
    return _event_producer


def close_event_publisher() -> None:
    """Close RabbitMQ producer connection"""
    global _event_producer
    if _event_producer:
        _event_producer.disconnect()
        _event_producer = None
